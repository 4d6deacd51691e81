"""Tests for threshold-based biomarker alerts."""

from __future__ import annotations

from conftest import daily_series

from hic.domains.health.domain_logic.alerts import (
    ALERT_RULES,
    round_half_up,
    scan_alerts,
)


def _hrv(value: float, days: int = 7):
    return daily_series("heart", "hrv_rmssd", [value] * days)


class TestHRV:
    def test_exactly_at_critical_threshold_is_warning(self):
        alerts = scan_alerts(_hrv(15), [], [])
        assert len(alerts) == 1
        assert alerts[0].level == "warning"
        assert alerts[0].threshold == 25

    def test_below_critical_threshold(self):
        alert = scan_alerts(_hrv(14.9), [], [])[0]
        assert alert.level == "critical"
        assert alert.threshold == 15
        assert alert.current_value == 15
        assert alert.message == (
            "HRV critically low at 15ms. Indicates severe autonomic stress."
        )

    def test_exactly_at_warning_threshold_raises_nothing(self):
        assert scan_alerts(_hrv(25), [], []) == []

    def test_uses_mean_of_last_seven(self):
        heart = daily_series("heart", "hrv_rmssd", [60, 60, 10, 10, 10, 10, 10, 10, 10])
        alert = scan_alerts(heart, [], [])[0]
        assert alert.level == "critical"
        assert alert.current_value == 10

    def test_nulls_are_skipped_within_window(self):
        heart = daily_series("heart", "hrv_rmssd", [None, None, None, None, None, None, 12])
        alert = scan_alerts(heart, [], [])[0]
        assert alert.current_value == 12

    def test_window_counts_records_not_values(self):
        heart = daily_series("heart", "hrv_rmssd", [10, 10] + [None] * 7)
        assert scan_alerts(heart, [], []) == []

    def test_all_zero_window_is_treated_as_missing(self):
        assert scan_alerts(_hrv(0), [], []) == []

    def test_zero_readings_are_left_out_of_the_mean(self):
        heart = daily_series("heart", "hrv_rmssd", [0, 0, 0, 0, 0, 0, 14])
        assert scan_alerts(heart, [], [])[0].current_value == 14


class TestSleep:
    def test_low_efficiency_is_critical(self):
        sleep = daily_series("sleep", "sleep_efficiency", [60, 62, 58, 65, 61, 59, 63])
        alert = scan_alerts([], sleep, [])[0]
        assert alert.level == "critical"
        assert alert.category == "Sleep"
        assert alert.current_value == 61
        assert alert.threshold == 70

    def test_warning_band(self):
        sleep = daily_series("sleep", "sleep_efficiency", [75] * 7)
        alert = scan_alerts([], sleep, [])[0]
        assert alert.level == "warning"
        assert alert.message == "Sleep efficiency declining at 75%."


class TestRestingHeartRate:
    def test_above_critical(self):
        heart = daily_series("heart", "resting_heart_rate", [95] * 7)
        alert = scan_alerts(heart, [], [])[0]
        assert alert.level == "critical"
        assert alert.metric == "Resting Heart Rate"

    def test_at_warning_threshold_raises_nothing(self):
        heart = daily_series("heart", "resting_heart_rate", [75] * 7)
        assert scan_alerts(heart, [], []) == []

    def test_warning_band(self):
        heart = daily_series("heart", "resting_heart_rate", [80] * 7)
        assert scan_alerts(heart, [], [])[0].level == "warning"


class TestSteps:
    def test_very_low_steps_is_still_a_warning(self):
        activity = daily_series("activity", "steps_count", [2000] * 7)
        alert = scan_alerts([], [], activity)[0]
        assert alert.level == "warning"
        assert alert.threshold == 3000
        assert "Sedentary lifestyle detected" in alert.message

    def test_below_optimal(self):
        activity = daily_series("activity", "steps_count", [5000] * 7)
        alert = scan_alerts([], [], activity)[0]
        assert alert.threshold == 6000
        assert alert.message == "Daily steps below optimal at 5000."

    def test_days_without_steps_are_not_averaged_in(self):
        activity = daily_series("activity", "steps_count", [0, 0, 0, 7000, 7000, 7000, 7000])
        assert scan_alerts([], [], activity) == []


class TestOrdering:
    def test_critical_first_and_rule_order_kept(self):
        heart = daily_series("heart", "hrv_rmssd", [20] * 7)           # warning
        for record in heart:
            record.values["resting_heart_rate"] = 95                   # critical
        sleep = daily_series("sleep", "sleep_efficiency", [60] * 7)    # critical
        activity = daily_series("activity", "steps_count", [4000] * 7)  # warning

        alerts = scan_alerts(heart, sleep, activity)
        assert [(a.level, a.metric) for a in alerts] == [
            ("critical", "Resting Heart Rate"),
            ("critical", "Sleep Efficiency"),
            ("warning", "HRV (RMSSD)"),
            ("warning", "Daily Steps"),
        ]

    def test_at_most_one_alert_per_metric(self):
        heart = _hrv(5)
        alerts = scan_alerts(heart, [], [])
        assert len(alerts) == 1

    def test_no_data_no_alerts(self):
        assert scan_alerts([], [], []) == []

    def test_healthy_values_no_alerts(self):
        heart = daily_series("heart", "hrv_rmssd", [45] * 7)
        for record in heart:
            record.values["resting_heart_rate"] = 60
        sleep = daily_series("sleep", "sleep_efficiency", [88] * 7)
        activity = daily_series("activity", "steps_count", [9000] * 7)
        assert scan_alerts(heart, sleep, activity) == []


def test_round_half_up():
    assert round_half_up(60.5) == 61
    assert round_half_up(61.5) == 62
    assert round_half_up(60.49) == 60
    assert round_half_up(14.9) == 15


def test_every_rule_has_bands_most_severe_first():
    for rule in ALERT_RULES:
        assert rule.bands
        thresholds = [b.threshold for b in rule.bands]
        if rule.direction == "below":
            assert thresholds == sorted(thresholds)
        else:
            assert thresholds == sorted(thresholds, reverse=True)
