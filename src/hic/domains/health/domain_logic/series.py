"""Small helpers over measurement series (recency windows, field extraction)."""

from __future__ import annotations

import statistics
from typing import Iterable, Sequence

from hic.domains.health.domain_logic.models import MeasurementRecord

RECENT_WINDOW = 7


def newest_first(records: Iterable[MeasurementRecord]) -> list[MeasurementRecord]:
    """Return records sorted newest first (stable for equal timestamps)."""
    return sorted(records, key=lambda r: r.timestamp, reverse=True)


def most_recent(
    records: Sequence[MeasurementRecord], n: int = RECENT_WINDOW
) -> list[MeasurementRecord]:
    """The ``n`` newest records, whatever order the caller supplied them in."""
    return newest_first(records)[:n]


def field_values(records: Iterable[MeasurementRecord], name: str) -> list[float]:
    """Non-null values of ``name`` in record order."""
    values = []
    for record in records:
        value = record.get(name)
        if value is not None:
            values.append(value)
    return values


def recent_mean(
    records: Sequence[MeasurementRecord],
    name: str,
    n: int = RECENT_WINDOW,
    *,
    zero_is_missing: bool = False,
) -> float | None:
    """Mean of ``name`` over the ``n`` newest records, or None if no values.

    The window is taken first and nulls filtered afterwards, so a record
    missing the field still occupies a slot in the window. With
    ``zero_is_missing`` zero readings are filtered like nulls.
    """
    values = field_values(most_recent(records, n), name)
    if zero_is_missing:
        values = [v for v in values if v != 0]
    if not values:
        return None
    return statistics.fmean(values)


def latest_lab(
    labs: Sequence[MeasurementRecord], *keywords: str
) -> MeasurementRecord | None:
    """Most recent lab whose name contains any keyword and has a value."""
    for record in newest_first(labs):
        name = record.label.lower()
        if any(k in name for k in keywords) and record.get("value") is not None:
            return record
    return None


def labs_matching(
    labs: Sequence[MeasurementRecord], *keywords: str
) -> list[MeasurementRecord]:
    """Labs (input order) whose name contains any keyword and has a value."""
    return [
        r
        for r in labs
        if any(k in r.label.lower() for k in keywords) and r.get("value") is not None
    ]
