"""Per-category summaries sent to the insight generator instead of raw records."""

from __future__ import annotations

import math
import statistics
from typing import Any, Mapping, Sequence

from hic.domains.health.domain_logic.models import MeasurementRecord
from hic.domains.health.domain_logic.series import field_values, newest_first

AGGREGATE_FIELDS: dict[str, tuple[str, ...]] = {
    "heart": ("hrv_rmssd", "resting_heart_rate", "systolic_bp"),
    "sleep": ("total_sleep_time", "sleep_efficiency", "sleep_score"),
    "activity": ("steps_count", "exercise_minutes", "active_calories"),
}

TREND_THRESHOLD_PCT = 5.0


def _mean(values: Sequence[float]) -> float | None:
    return statistics.fmean(values) if values else None


def trend(records: Sequence[MeasurementRecord], name: str) -> str:
    """'rising', 'falling' or 'stable': newer half vs older half, 5% dead band."""
    ordered = newest_first(records)
    if len(ordered) < 2:
        return "stable"
    half = math.ceil(len(ordered) / 2)
    recent = _mean(field_values(ordered[:half], name))
    older = _mean(field_values(ordered[half:], name))
    if recent is None or older is None or older == 0:
        return "stable"
    change = (recent - older) / abs(older) * 100
    if change > TREND_THRESHOLD_PCT:
        return "rising"
    if change < -TREND_THRESHOLD_PCT:
        return "falling"
    return "stable"


def aggregate(records_by_category: Mapping[str, Sequence[MeasurementRecord]]) -> dict[str, Any]:
    """Summarize each category as count, per-field mean and trend.

    Labs are summarized as the latest value per test name.
    """
    summary: dict[str, Any] = {}
    for category, fields in AGGREGATE_FIELDS.items():
        records = records_by_category.get(category, [])
        entry: dict[str, Any] = {"count": len(records)}
        for name in fields:
            entry[f"{name}_avg"] = _mean(field_values(records, name))
            entry[f"{name}_trend"] = trend(records, name)
        summary[category] = entry

    labs = records_by_category.get("lab", [])
    latest: dict[str, float] = {}
    for record in newest_first(labs):
        value = record.get("value")
        if record.label and value is not None and record.label not in latest:
            latest[record.label] = value
    summary["lab"] = {"count": len(labs), "latest": latest}
    return summary
