"""Tests for the deterministic mock measurement generators."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from hic.domains.health.connectors.mock_data import (
    LAB_INTERVAL_DAYS,
    MOCK_LAB_PANEL,
    get_mock_records,
)

UNTIL = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)
SINCE = UNTIL - timedelta(days=30)


class TestDeterminism:
    def test_same_inputs_same_records(self):
        first = get_mock_records("subject-1", "heart", SINCE, UNTIL)
        second = get_mock_records("subject-1", "heart", SINCE, UNTIL)
        assert first == second

    def test_subjects_differ(self):
        a = get_mock_records("subject-1", "sleep", SINCE, UNTIL)
        b = get_mock_records("subject-2", "sleep", SINCE, UNTIL)
        assert [r.values for r in a] != [r.values for r in b]

    def test_overlapping_windows_agree(self):
        wide = get_mock_records("subject-1", "activity", SINCE, UNTIL)
        narrow = get_mock_records("subject-1", "activity", UNTIL - timedelta(days=5), UNTIL)
        assert narrow == wide[-len(narrow):]


class TestShape:
    def test_records_inside_window_oldest_first(self):
        records = get_mock_records("subject-1", "sleep", SINCE, UNTIL)
        assert records
        assert all(SINCE <= r.timestamp <= UNTIL for r in records)
        assert records == sorted(records, key=lambda r: r.timestamp)

    def test_one_record_per_day(self):
        heart = get_mock_records("subject-1", "heart", SINCE, UNTIL)
        days = [r.timestamp.date() for r in heart]
        assert len(days) == len(set(days))

    def test_plausible_values(self):
        for record in get_mock_records("subject-1", "heart", SINCE, UNTIL):
            assert 10 < record.get("hrv_rmssd") < 90
            assert 40 < record.get("resting_heart_rate") < 90
        for record in get_mock_records("subject-1", "sleep", SINCE, UNTIL):
            assert 0 < record.get("sleep_efficiency") <= 97
            assert record.get("total_sleep_time") > 200

    def test_lab_panel_every_two_weeks(self):
        labs = get_mock_records("subject-1", "lab", SINCE, UNTIL)
        names = {name for name, *_ in MOCK_LAB_PANEL}
        assert {r.label for r in labs} == names
        for record in labs:
            assert record.timestamp.date().toordinal() % LAB_INTERVAL_DAYS == 0
            assert record.get("value") > 0

    def test_naive_datetimes_are_utc(self):
        naive = get_mock_records(
            "subject-1", "heart", SINCE.replace(tzinfo=None), UNTIL.replace(tzinfo=None)
        )
        assert naive == get_mock_records("subject-1", "heart", SINCE, UNTIL)

    def test_empty_window(self):
        assert get_mock_records("subject-1", "heart", UNTIL, SINCE) == []

    def test_unknown_category(self):
        assert get_mock_records("subject-1", "mood", SINCE, UNTIL) == []
