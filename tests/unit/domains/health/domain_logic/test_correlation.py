"""Tests for the lifestyle/health correlation engine."""

from __future__ import annotations

import math

import pytest
from conftest import daily_series, lab_series

from hic.domains.health.domain_logic.correlation import (
    PAIR_SPECS,
    CorrelationEngine,
    approximate_p_value,
    correlate,
    pearson,
    summarize,
)

XS = [1.0, 2.0, 3.0, 4.0, 5.0, 6.0, 7.0, 8.0, 9.0, 10.0, 11.0, 12.0]
NOISY = [2.1, 1.7, 3.9, 3.2, 5.8, 4.9, 7.4, 6.6, 9.3, 8.1, 10.2, 12.5]


# ---------------------------------------------------------------------------
# Pearson
# ---------------------------------------------------------------------------

class TestPearson:
    def test_identical_series_is_one(self):
        assert pearson(XS, XS) == pytest.approx(1.0)

    def test_linear_relation(self):
        assert pearson(XS, [2 * x for x in XS]) > 0.95

    def test_inverse_relation(self):
        assert pearson(XS, [-3 * x + 7 for x in XS]) == pytest.approx(-1.0)

    def test_symmetric(self):
        assert pearson(XS, NOISY) == pytest.approx(pearson(NOISY, XS))

    def test_bounded(self):
        r = pearson(XS, NOISY)
        assert -1.0 <= r <= 1.0

    def test_constant_series_is_zero(self):
        assert pearson(XS, [5.0] * len(XS)) == 0.0
        assert pearson([5.0] * len(XS), XS) == 0.0

    def test_empty_or_mismatched(self):
        assert pearson([], []) == 0.0
        assert pearson([1.0, 2.0], [1.0]) == 0.0


class TestPValue:
    def test_perfect_correlation_is_most_significant(self):
        assert approximate_p_value(1.0, 10) == 0.05

    def test_breakpoints(self):
        # t = r * sqrt((n - 2) / (1 - r^2)); n=12 -> t = r * sqrt(10 / (1 - r^2))
        assert approximate_p_value(0.6, 12) == 0.05   # t ~ 2.37
        assert approximate_p_value(0.5, 12) == 0.10   # t ~ 1.83
        assert approximate_p_value(0.3, 12) == 0.20   # t ~ 0.99

    def test_sign_does_not_matter(self):
        assert approximate_p_value(-0.6, 12) == approximate_p_value(0.6, 12)

    def test_tiny_sample(self):
        assert approximate_p_value(0.9, 2) == 0.20


# ---------------------------------------------------------------------------
# correlate()
# ---------------------------------------------------------------------------

class TestCorrelate:
    def test_below_minimum_sample_returns_none(self):
        aligned = list(zip(XS[:9], XS[:9]))
        assert correlate(aligned, "sleep_duration_hrv") is None

    def test_cross_domain_pairs_need_five(self):
        aligned = list(zip(XS[:5], [-x for x in XS[:5]]))
        result = correlate(aligned, "activity_glucose")
        assert result is not None
        assert result.sample_size == 5
        assert correlate(aligned[:4], "activity_glucose") is None

    def test_strong_positive(self):
        result = correlate(list(zip(XS, NOISY)), "sleep_duration_hrv")
        assert result is not None
        assert result.significance == "high"
        assert result.p_value == 0.05
        assert result.interpretation == "Strong positive correlation"
        assert result.sample_size == len(XS)

    def test_zero_coefficient_reads_negative(self):
        aligned = list(zip(XS, [5.0] * len(XS)))
        result = correlate(aligned, "sleep_duration_hrv")
        assert result.coefficient == 0.0
        assert result.significance == "low"
        assert result.interpretation == "Moderate negative correlation"

    def test_cutoffs_are_per_pair(self):
        """r ~ 0.65 is 'high' for steps/RHR but only 'medium' for sleep/HRV."""
        ys = [x + (5.0 if i % 2 else -5.0) for i, x in enumerate(XS)]
        r = pearson(XS, ys)
        assert 0.6 < r < 0.7
        aligned = list(zip(XS, ys))
        assert correlate(aligned, "sleep_duration_hrv").significance == "medium"
        assert correlate(aligned, "steps_resting_hr").significance == "high"

    def test_weak_labels_for_exercise_pair(self):
        ys = [x + (15.0 if i % 2 else -15.0) for i, x in enumerate(XS)]
        result = correlate(list(zip(XS, ys)), "exercise_sleep_efficiency")
        assert abs(result.coefficient) <= 0.4
        assert result.interpretation.startswith("Weak")

    def test_accepts_pair_spec(self):
        result = correlate(list(zip(XS, XS)), PAIR_SPECS["steps_resting_hr"])
        assert result.coefficient == pytest.approx(1.0)


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

def _days_of_data(n: int = 14):
    minutes = [360 + 10 * i for i in range(n)]
    hrv = [30 + 1.5 * i for i in range(n)]
    steps = [4000 + 500 * i for i in range(n)]
    rhr = [75 - 0.8 * i for i in range(n)]
    exercise = [10 + 3 * i for i in range(n)]
    efficiency = [78 + 0.9 * i for i in range(n)]

    heart = daily_series("heart", "hrv_rmssd", hrv, hour_offset=-5)
    for record, value in zip(heart, rhr):
        record.values["resting_heart_rate"] = value
    sleep = daily_series("sleep", "total_sleep_time", minutes, hour_offset=-4.5)
    for record, value in zip(sleep, efficiency):
        record.values["sleep_efficiency"] = value
    activity = daily_series("activity", "steps_count", steps, hour_offset=9)
    for record, value in zip(activity, exercise):
        record.values["exercise_minutes"] = value
    return heart, sleep, activity


class TestEngine:
    def test_empty_input_yields_no_correlations(self):
        report = CorrelationEngine().analyze([], [], [], [])
        assert report.correlations == []
        assert report.summary.startswith("Analysis identified 0 lifestyle-health correlations")

    def test_daily_pairs_found(self):
        heart, sleep, activity = _days_of_data()
        report = CorrelationEngine().analyze(heart, sleep, activity, [])
        pairs = {c.pair: c for c in report.correlations}
        assert set(pairs) == {
            "sleep_duration_hrv",
            "steps_resting_hr",
            "exercise_sleep_efficiency",
        }
        assert pairs["sleep_duration_hrv"].correlation.coefficient > 0.95
        assert pairs["steps_resting_hr"].correlation.coefficient < -0.95
        assert pairs["sleep_duration_hrv"].confidence == 85
        assert pairs["steps_resting_hr"].insight.startswith("Excellent correlation")

    def test_insufficient_days_omit_pairs(self):
        heart, sleep, activity = _days_of_data(n=6)
        assert CorrelationEngine().analyze(heart, sleep, activity, []).correlations == []

    def test_lab_pairs_require_enough_tests(self):
        heart, sleep, activity = _days_of_data(n=14)
        few = lab_series("Fasting Glucose", [95, 92, 90, 88], every_days=3)
        samples = CorrelationEngine().aligned_pairs(heart, sleep, activity, few)
        assert "activity_glucose" not in samples

    def test_glucose_pair_anchors_on_lab_tests(self):
        heart, sleep, activity = _days_of_data(n=14)
        glucose = lab_series("Fasting Glucose", [99, 97, 94, 91, 88], every_days=2)
        samples = CorrelationEngine().aligned_pairs(heart, sleep, activity, glucose)
        aligned = samples["activity_glucose"]
        assert len(aligned) == 5
        # x is the activity value, y the glucose result
        assert all(x >= 4000 for x, _ in aligned)
        assert [y for _, y in aligned] == [99.0, 97.0, 94.0, 91.0, 88.0]

    def test_inflammation_pair_uses_week_mean(self):
        heart, sleep, activity = _days_of_data(n=14)
        crp = lab_series("hs-CRP", [3.0, 2.6, 2.1, 1.8, 1.2], every_days=2)
        report = CorrelationEngine().analyze(heart, sleep, activity, crp)
        pairs = {c.pair: c for c in report.correlations}
        assert "sleep_inflammation" in pairs
        assert pairs["sleep_inflammation"].correlation.coefficient < 0

    def test_to_dict_shape(self):
        heart, sleep, activity = _days_of_data()
        data = CorrelationEngine().analyze(heart, sleep, activity, []).to_dict()
        first = data["correlations"][0]
        assert set(first) == {
            "pair", "lifestyle_metric", "health_metric",
            "correlation", "insight", "recommendation", "confidence",
        }
        assert set(first["correlation"]) == {
            "coefficient", "significance", "p_value", "sample_size", "interpretation",
        }
        assert not math.isnan(first["correlation"]["coefficient"])


def test_summary_counts_high_significance():
    heart, sleep, activity = _days_of_data()
    report = CorrelationEngine().analyze(heart, sleep, activity, [])
    high = sum(1 for c in report.correlations if c.correlation.significance == "high")
    assert report.summary == summarize(report.correlations)
    assert f"with {high} showing strong statistical significance" in report.summary
