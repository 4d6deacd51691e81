"""Composite health score: breakpoint rubrics across five physiological domains.

Each domain is computed independently from the most recent 7 records of its
source series. All sub-scores are integers.

Cardiovascular and metabolic sub-scores come straight from source data and
default to 0 when their data is missing. The inflammatory, nutritional and
recovery domains rely on secondary signals (CRP, vitamin D, sleep score, HRV
rebound) that many subjects never record; when a signal is missing those
sub-scores take a fixed neutral placeholder, and every placeholder used is
named in ``HealthScore.approximations``. A request with no records at all
scores 0 everywhere.
"""

from __future__ import annotations

import logging
import statistics
from typing import Sequence

from hic.domains.health.domain_logic.models import (
    DOMAIN_MAX_POINTS,
    DomainScore,
    HealthScore,
    MeasurementRecord,
)
from hic.domains.health.domain_logic.series import (
    field_values,
    latest_lab,
    most_recent,
    recent_mean,
)

logger = logging.getLogger(__name__)

# (lower bound, points) pairs, checked in order with >=.
Rubric = Sequence[tuple[float, int]]

HRV_RUBRIC: Rubric = ((40, 10), (30, 8), (20, 6), (15, 3))
SLEEP_EFFICIENCY_RUBRIC: Rubric = ((85, 10), (80, 8), (75, 6), (70, 3))
STEPS_RUBRIC: Rubric = ((10000, 10), (8000, 8), (6000, 6), (3000, 3))
STRESS_RUBRIC: Rubric = ((40, 10), (30, 8), (20, 5), (15, 2))
VITAMIN_D_RUBRIC: Rubric = ((30, 10), (20, 6), (12, 3))
SLEEP_SCORE_RUBRIC: Rubric = ((85, 9), (75, 7), (65, 5), (50, 2))
HRV_REBOUND_RUBRIC: Rubric = ((1.0, 6), (0.9, 4), (0.8, 2))

# (upper bound, points) pairs, checked in order with <=.
RHR_RUBRIC: Rubric = ((60, 10), (70, 8), (80, 6), (90, 3))
SYSTOLIC_RUBRIC: Rubric = ((120, 5), (130, 4), (140, 2))
HBA1C_RUBRIC: Rubric = ((5.4, 5), (5.7, 4), (6.0, 2))
FASTING_GLUCOSE_RUBRIC: Rubric = ((85, 5), (99, 4), (125, 2))
CRP_RUBRIC: Rubric = ((1.0, 10), (3.0, 6), (10.0, 3))

# Neutral placeholders for secondary signals with no source data.
PLACEHOLDERS: dict[tuple[str, str], int] = {
    ("inflammatory", "crp"): 5,
    ("inflammatory", "stress"): 5,
    ("nutritional", "vitamins"): 5,
    ("nutritional", "hydration"): 2,
    ("recovery", "sleep_quality"): 4,
    ("recovery", "hrv_recovery"): 3,
}


def at_least(value: float | None, rubric: Rubric) -> int:
    """Points for the first bound that ``value`` meets or exceeds."""
    if value is None:
        return 0
    for bound, points in rubric:
        if value >= bound:
            return points
    return 0


def at_most(value: float | None, rubric: Rubric) -> int:
    """Points for the first bound that ``value`` does not exceed."""
    if value is None:
        return 0
    for bound, points in rubric:
        if value <= bound:
            return points
    return 0


class HealthScoreCalculator:
    """Maps recent biomarker aggregates onto the five-domain rubric.

    Usage::

        calculator = HealthScoreCalculator()
        health_score = calculator.score(heart, sleep, activity, lab)
        health_score.overall  # 0-100
    """

    def score(
        self,
        heart: Sequence[MeasurementRecord],
        sleep: Sequence[MeasurementRecord],
        activity: Sequence[MeasurementRecord],
        lab: Sequence[MeasurementRecord],
    ) -> HealthScore:
        has_any_data = bool(heart or sleep or activity or lab)
        approximations: list[str] = []

        def secondary(domain: str, name: str, points: int | None) -> int:
            if points is not None:
                return points
            if not has_any_data:
                return 0
            placeholder = PLACEHOLDERS[(domain, name)]
            approximations.append(
                f"{domain}.{name}: no source signal, neutral placeholder {placeholder}"
            )
            return placeholder

        domains = {
            "cardiovascular": self._cardiovascular(heart),
            "metabolic": self._metabolic(sleep, activity, lab),
            "inflammatory": DomainScore(
                max_points=DOMAIN_MAX_POINTS["inflammatory"],
                sub_scores={
                    "crp": secondary("inflammatory", "crp", self._crp_points(lab)),
                    "stress": secondary("inflammatory", "stress", self._stress_points(heart)),
                },
            ),
            "nutritional": DomainScore(
                max_points=DOMAIN_MAX_POINTS["nutritional"],
                sub_scores={
                    "vitamins": secondary("nutritional", "vitamins", self._vitamin_points(lab)),
                    "hydration": secondary("nutritional", "hydration", None),
                },
            ),
            "recovery": DomainScore(
                max_points=DOMAIN_MAX_POINTS["recovery"],
                sub_scores={
                    "sleep_quality": secondary(
                        "recovery", "sleep_quality", self._sleep_quality_points(sleep)
                    ),
                    "hrv_recovery": secondary(
                        "recovery", "hrv_recovery", self._hrv_recovery_points(heart)
                    ),
                },
            ),
        }

        result = HealthScore(domains=domains, approximations=approximations)
        logger.info(
            "Health score computed: overall=%d (%d placeholder sub-scores)",
            result.overall,
            len(approximations),
        )
        return result

    # ------------------------------------------------------------------
    # Primary domains
    # ------------------------------------------------------------------

    def _cardiovascular(self, heart: Sequence[MeasurementRecord]) -> DomainScore:
        return DomainScore(
            max_points=DOMAIN_MAX_POINTS["cardiovascular"],
            sub_scores={
                "hrv": at_least(recent_mean(heart, "hrv_rmssd"), HRV_RUBRIC),
                "rhr": at_most(recent_mean(heart, "resting_heart_rate"), RHR_RUBRIC),
                "blood_pressure": at_most(recent_mean(heart, "systolic_bp"), SYSTOLIC_RUBRIC),
            },
        )

    def _metabolic(
        self,
        sleep: Sequence[MeasurementRecord],
        activity: Sequence[MeasurementRecord],
        lab: Sequence[MeasurementRecord],
    ) -> DomainScore:
        return DomainScore(
            max_points=DOMAIN_MAX_POINTS["metabolic"],
            sub_scores={
                "sleep": at_least(
                    recent_mean(sleep, "sleep_efficiency"), SLEEP_EFFICIENCY_RUBRIC
                ),
                "activity": at_least(recent_mean(activity, "steps_count"), STEPS_RUBRIC),
                "glucose": self._glucose_points(lab),
            },
        )

    @staticmethod
    def _glucose_points(lab: Sequence[MeasurementRecord]) -> int:
        """Score only the single most recent glucose or HbA1c result."""
        test = latest_lab(lab, "glucose", "hba1c")
        if test is None:
            return 0
        if "hba1c" in test.label.lower():
            return at_most(test.get("value"), HBA1C_RUBRIC)
        return at_most(test.get("value"), FASTING_GLUCOSE_RUBRIC)

    # ------------------------------------------------------------------
    # Secondary domains (None -> no signal available)
    # ------------------------------------------------------------------

    @staticmethod
    def _crp_points(lab: Sequence[MeasurementRecord]) -> int | None:
        test = latest_lab(lab, "crp")
        return None if test is None else at_most(test.get("value"), CRP_RUBRIC)

    @staticmethod
    def _stress_points(heart: Sequence[MeasurementRecord]) -> int | None:
        avg = recent_mean(heart, "hrv_rmssd")
        return None if avg is None else at_least(avg, STRESS_RUBRIC)

    @staticmethod
    def _vitamin_points(lab: Sequence[MeasurementRecord]) -> int | None:
        test = latest_lab(lab, "vitamin d", "25-oh")
        return None if test is None else at_least(test.get("value"), VITAMIN_D_RUBRIC)

    @staticmethod
    def _sleep_quality_points(sleep: Sequence[MeasurementRecord]) -> int | None:
        avg = recent_mean(sleep, "sleep_score")
        return None if avg is None else at_least(avg, SLEEP_SCORE_RUBRIC)

    @staticmethod
    def _hrv_recovery_points(heart: Sequence[MeasurementRecord]) -> int | None:
        """Latest HRV relative to the recent mean (rebound above baseline)."""
        values = field_values(most_recent(heart), "hrv_rmssd")
        if len(values) < 2:
            return None
        baseline = statistics.fmean(values)
        if baseline <= 0:
            return 0
        return at_least(values[0] / baseline, HRV_REBOUND_RUBRIC)


def score(
    heart: Sequence[MeasurementRecord],
    sleep: Sequence[MeasurementRecord],
    activity: Sequence[MeasurementRecord],
    lab: Sequence[MeasurementRecord],
) -> HealthScore:
    """Module-level convenience wrapper around :class:`HealthScoreCalculator`."""
    return HealthScoreCalculator().score(heart, sleep, activity, lab)
