"""Timestamp alignment of two measurement series into (x, y) pairs.

No interpolation or extrapolation is performed: a pair is emitted only when
both sides carry a real value. The data sizes involved (a few hundred
records at most) make the O(n*m) scan acceptable.
"""

from __future__ import annotations

import statistics
from typing import Sequence

from hic.domains.health.domain_logic.models import AlignedSample, MeasurementRecord

DAILY_TOLERANCE = 24 * 60 * 60
SLOW_MARKER_TOLERANCE = 7 * DAILY_TOLERANCE


def _delta_seconds(a: MeasurementRecord, b: MeasurementRecord) -> float:
    return abs((a.timestamp - b.timestamp).total_seconds())


def align(
    series_a: Sequence[MeasurementRecord],
    series_b: Sequence[MeasurementRecord],
    field_a: str,
    field_b: str,
    tolerance_seconds: float = DAILY_TOLERANCE,
) -> AlignedSample:
    """Pair each record in ``series_a`` with its nearest neighbour in ``series_b``.

    A neighbour qualifies when its timestamp is strictly closer than
    ``tolerance_seconds``. On exact ties the earliest candidate in
    ``series_b`` wins. The pair is dropped if either named field is null.

    Args:
        series_a: Anchor records; output order follows this sequence.
        series_b: Candidate records.
        field_a: Value field read from the anchor (becomes ``x``).
        field_b: Value field read from the match (becomes ``y``).
        tolerance_seconds: Maximum (exclusive) time distance.

    Returns:
        List of (x, y) float pairs; empty when either input is empty.
    """
    aligned: AlignedSample = []
    if not series_a or not series_b:
        return aligned

    for anchor in series_a:
        best: MeasurementRecord | None = None
        best_delta = float("inf")
        for candidate in series_b:
            delta = _delta_seconds(anchor, candidate)
            if delta < tolerance_seconds and delta < best_delta:
                best, best_delta = candidate, delta
        if best is None:
            continue
        x = anchor.get(field_a)
        y = best.get(field_b)
        if x is not None and y is not None:
            aligned.append((x, y))

    return aligned


def align_window_mean(
    anchors: Sequence[MeasurementRecord],
    series: Sequence[MeasurementRecord],
    anchor_field: str,
    series_field: str,
    tolerance_seconds: float = SLOW_MARKER_TOLERANCE,
) -> AlignedSample:
    """Pair each anchor with the mean of every ``series`` value within tolerance.

    Used for slowly changing markers (e.g. a CRP result against the week of
    sleep around it). ``x`` is the window mean, ``y`` the anchor value.
    """
    aligned: AlignedSample = []
    for anchor in anchors:
        y = anchor.get(anchor_field)
        if y is None:
            continue
        window: list[float] = []
        for record in series:
            if _delta_seconds(anchor, record) >= tolerance_seconds:
                continue
            value = record.get(series_field)
            if value is not None:
                window.append(value)
        if window:
            aligned.append((statistics.fmean(window), y))
    return aligned


def swap(aligned: AlignedSample) -> AlignedSample:
    """Exchange x and y in every pair."""
    return [(y, x) for x, y in aligned]
