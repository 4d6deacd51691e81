"""Lifestyle/health correlation engine.

Computes Pearson correlations over aligned series with coarse significance
banding. Significance bands, minimum sample sizes and interpretation cut-offs
are calibrated per metric pair and live in ``PAIR_SPECS``; there is no single
global cut-off.

The p-value is a categorical approximation (0.05 / 0.10 / 0.20) derived from
the t-statistic breakpoints 2.048 and 1.645. It is *not* an exact p-value, and
downstream consumers rely on those exact breakpoints.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Callable, Sequence

from hic.domains.health.domain_logic.aligner import (
    DAILY_TOLERANCE,
    SLOW_MARKER_TOLERANCE,
    align,
    align_window_mean,
    swap,
)
from hic.domains.health.domain_logic.models import (
    AlignedSample,
    CorrelationReport,
    CorrelationResult,
    LifestyleCorrelation,
    MeasurementRecord,
    Significance,
)
from hic.domains.health.domain_logic.series import labs_matching

logger = logging.getLogger(__name__)

# Minimum aligned pairs before a correlation is computed at all.
SAME_CADENCE_MIN_SAMPLES = 10
CROSS_DOMAIN_MIN_SAMPLES = 5


@dataclass(frozen=True)
class PairSpec:
    """Calibration constants for one lifestyle/health metric pair."""

    pair_id: str
    lifestyle_metric: str
    health_metric: str
    min_samples: int
    high_cutoff: float       # |r| > high_cutoff -> "high"
    medium_cutoff: float     # |r| > medium_cutoff -> "medium"
    magnitude_cutoff: float  # |r| > cutoff -> strong_label, else weak_label
    strong_label: str
    weak_label: str
    confidence: int


PAIR_SPECS: dict[str, PairSpec] = {
    spec.pair_id: spec
    for spec in (
        PairSpec(
            "sleep_duration_hrv", "Sleep Duration", "Heart Rate Variability",
            SAME_CADENCE_MIN_SAMPLES, 0.7, 0.4, 0.5, "Strong", "Moderate", 85,
        ),
        PairSpec(
            "steps_resting_hr", "Daily Steps", "Resting Heart Rate",
            SAME_CADENCE_MIN_SAMPLES, 0.6, 0.3, 0.5, "Strong", "Moderate", 78,
        ),
        PairSpec(
            "exercise_sleep_efficiency", "Exercise Minutes", "Sleep Efficiency",
            SAME_CADENCE_MIN_SAMPLES, 0.5, 0.3, 0.4, "Moderate", "Weak", 72,
        ),
        PairSpec(
            "activity_glucose", "Physical Activity", "Glucose Levels",
            CROSS_DOMAIN_MIN_SAMPLES, 0.6, 0.4, 0.5, "Strong", "Moderate", 82,
        ),
        PairSpec(
            "sleep_inflammation", "Sleep Quality", "Inflammatory Markers",
            CROSS_DOMAIN_MIN_SAMPLES, 0.5, 0.3, 0.4, "Moderate", "Weak", 75,
        ),
    )
}

GLUCOSE_KEYWORDS = ("glucose",)
INFLAMMATORY_KEYWORDS = ("crp", "esr", "inflammation")


# ---------------------------------------------------------------------------
# Statistics
# ---------------------------------------------------------------------------

def pearson(xs: Sequence[float], ys: Sequence[float]) -> float:
    """Pearson coefficient; 0.0 when either vector has zero variance."""
    n = len(xs)
    if n == 0 or n != len(ys):
        return 0.0
    if len(set(xs)) == 1 or len(set(ys)) == 1:
        return 0.0

    mean_x = math.fsum(xs) / n
    mean_y = math.fsum(ys) / n
    sxy = math.fsum((x - mean_x) * (y - mean_y) for x, y in zip(xs, ys))
    sxx = math.fsum((x - mean_x) ** 2 for x in xs)
    syy = math.fsum((y - mean_y) ** 2 for y in ys)

    denominator = math.sqrt(sxx * syy)
    if denominator == 0:
        return 0.0
    return max(-1.0, min(1.0, sxy / denominator))


def approximate_p_value(r: float, n: int) -> float:
    """Map the t-statistic of ``r`` onto the coarse 0.05 / 0.10 / 0.20 bands."""
    if n <= 2:
        return 0.20
    denom = 1 - r * r
    t = math.inf if denom <= 0 else abs(r) * math.sqrt((n - 2) / denom)
    if t > 2.048:
        return 0.05
    if t > 1.645:
        return 0.10
    return 0.20


def _significance(r: float, spec: PairSpec) -> Significance:
    magnitude = abs(r)
    if magnitude > spec.high_cutoff:
        return "high"
    if magnitude > spec.medium_cutoff:
        return "medium"
    return "low"


def _interpretation(r: float, spec: PairSpec) -> str:
    strength = spec.strong_label if abs(r) > spec.magnitude_cutoff else spec.weak_label
    direction = "positive" if r > 0 else "negative"
    return f"{strength} {direction} correlation"


def correlate(
    aligned: AlignedSample, pair: str | PairSpec = "sleep_duration_hrv"
) -> CorrelationResult | None:
    """Correlate an aligned sample using the calibration of ``pair``.

    Returns None (not an error) when the sample is below the pair's minimum
    size.
    """
    spec = pair if isinstance(pair, PairSpec) else PAIR_SPECS[pair]
    if len(aligned) < spec.min_samples:
        logger.debug(
            "Skipping %s: %d aligned pairs < %d", spec.pair_id, len(aligned), spec.min_samples
        )
        return None

    r = pearson([x for x, _ in aligned], [y for _, y in aligned])
    return CorrelationResult(
        coefficient=r,
        significance=_significance(r, spec),
        p_value=approximate_p_value(r, len(aligned)),
        sample_size=len(aligned),
        interpretation=_interpretation(r, spec),
    )


# ---------------------------------------------------------------------------
# Insight and recommendation text
# ---------------------------------------------------------------------------

def _sleep_hrv_text(r: float) -> tuple[str, str]:
    if r > 0.5:
        insight = (
            "Strong positive correlation detected: longer sleep duration is associated "
            "with improved heart rate variability, indicating better autonomic nervous "
            "system recovery."
        )
    elif r < -0.5:
        insight = (
            "Concerning negative correlation: longer sleep duration appears associated "
            "with lower HRV, which may indicate sleep quality issues."
        )
    else:
        insight = (
            "Moderate correlation between sleep duration and HRV suggests some "
            "relationship but other factors may be more influential."
        )
    if r > 0.3:
        rec = "Prioritize 7-9 hours of quality sleep nightly to optimize heart rate variability and recovery."
    else:
        rec = "Focus on sleep quality rather than just duration - consider sleep hygiene improvements."
    return insight, rec


def _steps_hr_text(r: float) -> tuple[str, str]:
    if r < -0.4:
        insight = (
            "Excellent correlation: increased daily activity is strongly associated with "
            "lower resting heart rate, indicating improved cardiovascular fitness."
        )
    else:
        insight = "Your activity levels show a positive relationship with heart rate improvements."
    if r < -0.3:
        rec = (
            "Continue current activity levels and gradually increase to 10,000+ steps "
            "daily for continued cardiovascular benefits."
        )
    else:
        rec = "Increase daily activity levels - aim for 8,000+ steps and 150 minutes of moderate exercise weekly."
    return insight, rec


def _exercise_sleep_text(r: float) -> tuple[str, str]:
    if r > 0.3:
        insight = (
            "Regular exercise is positively correlated with better sleep efficiency, "
            "supporting the beneficial cycle of fitness and recovery."
        )
    else:
        insight = (
            "Exercise and sleep quality show some relationship, but timing and intensity "
            "may be important factors."
        )
    rec = "Schedule exercise 3-4 hours before bedtime for optimal sleep benefits without disrupting sleep onset."
    return insight, rec


def _activity_glucose_text(r: float) -> tuple[str, str]:
    if r < -0.4:
        insight = (
            "Strong evidence: increased physical activity is associated with better "
            "glucose control, demonstrating metabolic benefits."
        )
    else:
        insight = "Your activity levels show some impact on glucose regulation."
    if r < -0.3:
        rec = "Maintain consistent daily activity to support glucose regulation - even short walks after meals help."
    else:
        rec = "Increase post-meal activity and overall daily movement to improve glucose metabolism."
    return insight, rec


def _sleep_inflammation_text(r: float) -> tuple[str, str]:
    if r < -0.3:
        insight = (
            "Better sleep quality is associated with lower inflammatory markers, "
            "highlighting sleep's role in immune system regulation."
        )
    else:
        insight = "Sleep quality shows some relationship with inflammatory processes in your body."
    rec = (
        "Optimize sleep hygiene and maintain consistent sleep schedule to support immune "
        "system regulation and reduce inflammation."
    )
    return insight, rec


_TEXT_BUILDERS: dict[str, Callable[[float], tuple[str, str]]] = {
    "sleep_duration_hrv": _sleep_hrv_text,
    "steps_resting_hr": _steps_hr_text,
    "exercise_sleep_efficiency": _exercise_sleep_text,
    "activity_glucose": _activity_glucose_text,
    "sleep_inflammation": _sleep_inflammation_text,
}


def summarize(correlations: Sequence[LifestyleCorrelation]) -> str:
    strong = sum(1 for c in correlations if c.correlation.significance == "high")
    return (
        f"Analysis identified {len(correlations)} lifestyle-health correlations, with "
        f"{strong} showing strong statistical significance. Focus on the "
        "high-confidence recommendations for maximum health impact."
    )


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

class CorrelationEngine:
    """Runs every configured lifestyle/health pair over a subject's series.

    Usage::

        engine = CorrelationEngine()
        report = engine.analyze(heart, sleep, activity, lab)
        report.to_dict()
    """

    def __init__(self, pair_specs: dict[str, PairSpec] | None = None) -> None:
        self._specs = pair_specs or PAIR_SPECS

    def aligned_pairs(
        self,
        heart: Sequence[MeasurementRecord],
        sleep: Sequence[MeasurementRecord],
        activity: Sequence[MeasurementRecord],
        lab: Sequence[MeasurementRecord],
    ) -> dict[str, AlignedSample]:
        """Build the aligned sample for every pair that has enough raw input."""
        samples: dict[str, AlignedSample] = {
            "sleep_duration_hrv": align(
                sleep, heart, "total_sleep_time", "hrv_rmssd", DAILY_TOLERANCE
            ),
            "steps_resting_hr": align(
                activity, heart, "steps_count", "resting_heart_rate", DAILY_TOLERANCE
            ),
            "exercise_sleep_efficiency": align(
                activity, sleep, "exercise_minutes", "sleep_efficiency", DAILY_TOLERANCE
            ),
        }

        glucose_tests = labs_matching(lab, *GLUCOSE_KEYWORDS)
        if len(glucose_tests) >= self._specs["activity_glucose"].min_samples:
            # Anchor on each test; x is the activity value.
            samples["activity_glucose"] = swap(
                align(glucose_tests, activity, "value", "steps_count", DAILY_TOLERANCE)
            )

        inflammatory_tests = labs_matching(lab, *INFLAMMATORY_KEYWORDS)
        if len(inflammatory_tests) >= self._specs["sleep_inflammation"].min_samples:
            samples["sleep_inflammation"] = align_window_mean(
                inflammatory_tests, sleep, "value", "sleep_efficiency", SLOW_MARKER_TOLERANCE
            )

        return samples

    def analyze(
        self,
        heart: Sequence[MeasurementRecord],
        sleep: Sequence[MeasurementRecord],
        activity: Sequence[MeasurementRecord],
        lab: Sequence[MeasurementRecord],
    ) -> CorrelationReport:
        """Correlate every pair; pairs below their sample floor are omitted."""
        found: list[LifestyleCorrelation] = []
        for pair_id, aligned in self.aligned_pairs(heart, sleep, activity, lab).items():
            spec = self._specs[pair_id]
            result = correlate(aligned, spec)
            if result is None:
                continue
            insight, recommendation = _TEXT_BUILDERS[pair_id](result.coefficient)
            found.append(
                LifestyleCorrelation(
                    pair=pair_id,
                    lifestyle_metric=spec.lifestyle_metric,
                    health_metric=spec.health_metric,
                    correlation=result,
                    insight=insight,
                    recommendation=recommendation,
                    confidence=spec.confidence,
                )
            )

        logger.info("Found %d lifestyle correlations", len(found))
        return CorrelationReport(correlations=found, summary=summarize(found))
