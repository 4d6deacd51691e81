"""Mock measurement generators for development and testing.

All mock data represents a median healthy adult — not in crisis, not perfectly
optimized. Series are deterministic: the same subject and window always
produce the same records, so analyses over mock data are reproducible.
"""

from __future__ import annotations

import math
import random
import zlib
from datetime import date, datetime, time, timedelta, timezone

from hic.domains.health.domain_logic.models import MeasurementRecord, as_utc

HEART_TIME = time(7, 0, tzinfo=timezone.utc)
SLEEP_TIME = time(7, 30, tzinfo=timezone.utc)
ACTIVITY_TIME = time(21, 0, tzinfo=timezone.utc)
LAB_TIME = time(9, 0, tzinfo=timezone.utc)

LAB_INTERVAL_DAYS = 14

# (test name, baseline, day-to-day spread, decimals)
MOCK_LAB_PANEL: tuple[tuple[str, float, float, int], ...] = (
    ("Fasting Glucose", 92.0, 6.0, 0),
    ("hs-CRP", 1.4, 0.6, 1),
    ("Vitamin D, 25-OH", 32.0, 4.0, 0),
)


def _rng(subject_id: str, day: date, salt: str) -> random.Random:
    seed = zlib.crc32(f"{subject_id}:{day.isoformat()}:{salt}".encode())
    return random.Random(seed)


def _days(since: datetime, until: datetime) -> list[date]:
    start, end = since.date(), until.date()
    if end < start:
        return []
    return [start + timedelta(days=i) for i in range((end - start).days + 1)]


def _sleep_minutes(subject_id: str, day: date) -> float:
    """Nightly sleep; shared by the sleep and heart generators so they correlate."""
    rng = _rng(subject_id, day, "sleep")
    weekly = 25 * math.sin(day.toordinal() * 2 * math.pi / 7)
    return round(420 + weekly + rng.gauss(0, 30))


def _steps(subject_id: str, day: date) -> float:
    rng = _rng(subject_id, day, "steps")
    return float(max(800, round(7800 + rng.gauss(0, 2400))))


def mock_heart(subject_id: str, day: date) -> MeasurementRecord:
    rng = _rng(subject_id, day, "heart")
    sleep_hours = _sleep_minutes(subject_id, day) / 60
    steps = _steps(subject_id, day - timedelta(days=1))
    return MeasurementRecord(
        subject_id=subject_id,
        category="heart",
        timestamp=datetime.combine(day, HEART_TIME),
        values={
            "hrv_rmssd": round(42 + 6 * (sleep_hours - 7) + rng.gauss(0, 3), 1),
            "resting_heart_rate": round(64 - (steps - 7800) / 1500 + rng.gauss(0, 1.5)),
            "systolic_bp": round(121 + rng.gauss(0, 4)),
            "diastolic_bp": round(78 + rng.gauss(0, 3)),
        },
    )


def mock_sleep(subject_id: str, day: date) -> MeasurementRecord:
    rng = _rng(subject_id, day, "sleep-quality")
    minutes = _sleep_minutes(subject_id, day)
    efficiency = min(97.0, round(84 + rng.gauss(0, 4), 1))
    return MeasurementRecord(
        subject_id=subject_id,
        category="sleep",
        timestamp=datetime.combine(day, SLEEP_TIME),
        values={
            "total_sleep_time": minutes,
            "sleep_efficiency": efficiency,
            "sleep_score": round(efficiency - 6 + (minutes - 420) / 20),
        },
    )


def mock_activity(subject_id: str, day: date) -> MeasurementRecord:
    rng = _rng(subject_id, day, "activity")
    steps = _steps(subject_id, day)
    return MeasurementRecord(
        subject_id=subject_id,
        category="activity",
        timestamp=datetime.combine(day, ACTIVITY_TIME),
        values={
            "steps_count": steps,
            "exercise_minutes": float(max(0, round(steps / 250 + rng.gauss(0, 6)))),
            "active_calories": round(steps * 0.04 + rng.gauss(0, 40)),
        },
    )


def mock_labs(subject_id: str, day: date) -> list[MeasurementRecord]:
    """One lab panel every two weeks (on days whose ordinal is a multiple)."""
    if day.toordinal() % LAB_INTERVAL_DAYS:
        return []
    records = []
    for name, baseline, spread, decimals in MOCK_LAB_PANEL:
        rng = _rng(subject_id, day, name)
        value = max(0.1, baseline + rng.gauss(0, spread))
        records.append(
            MeasurementRecord(
                subject_id=subject_id,
                category="lab",
                timestamp=datetime.combine(day, LAB_TIME),
                values={"value": round(value, decimals)},
                label=name,
            )
        )
    return records


def get_mock_records(
    subject_id: str, category: str, since: datetime, until: datetime
) -> list[MeasurementRecord]:
    """Mock records for one category, oldest first, clipped to [since, until].

    Naive datetimes are taken to be UTC.
    """
    since, until = as_utc(since), as_utc(until)
    records: list[MeasurementRecord] = []
    for day in _days(since, until):
        if category == "heart":
            records.append(mock_heart(subject_id, day))
        elif category == "sleep":
            records.append(mock_sleep(subject_id, day))
        elif category == "activity":
            records.append(mock_activity(subject_id, day))
        elif category == "lab":
            records.extend(mock_labs(subject_id, day))
    return [r for r in records if since <= r.timestamp <= until]
