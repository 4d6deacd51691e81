"""Threshold alerts over the 7-day averages of core biomarkers.

Every rule averages its field over the 7 newest records and compares that
average with strict inequalities. A record whose value is null or 0 keeps
its slot in the window but is left out of the mean. The critical band is
checked before the warning band and at most one alert is raised per metric.
Output is sorted critical-first with the relative order of equal levels
preserved.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Literal, Sequence

from hic.domains.health.domain_logic.models import Alert, AlertLevel, MeasurementRecord
from hic.domains.health.domain_logic.series import recent_mean

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Band:
    level: AlertLevel
    threshold: int
    message: str  # formatted with {value}
    action: str


@dataclass(frozen=True)
class AlertRule:
    """One metric with its bands, most severe first."""

    source: Literal["heart", "sleep", "activity"]
    field_name: str
    category: str
    metric: str
    direction: Literal["below", "above"]
    bands: tuple[Band, ...]

    def breached(self, value: float, band: Band) -> bool:
        if self.direction == "below":
            return value < band.threshold
        return value > band.threshold


ALERT_RULES: tuple[AlertRule, ...] = (
    AlertRule(
        source="heart",
        field_name="hrv_rmssd",
        category="Cardiovascular",
        metric="HRV (RMSSD)",
        direction="below",
        bands=(
            Band(
                "critical",
                15,
                "HRV critically low at {value}ms. Indicates severe autonomic stress.",
                "Schedule comprehensive blood panel immediately. Consider cardiac evaluation.",
            ),
            Band(
                "warning",
                25,
                "HRV declining at {value}ms. Monitor closely for autonomic dysfunction.",
                "Implement stress reduction protocol. Consider lifestyle modifications.",
            ),
        ),
    ),
    AlertRule(
        source="heart",
        field_name="resting_heart_rate",
        category="Cardiovascular",
        metric="Resting Heart Rate",
        direction="above",
        bands=(
            Band(
                "critical",
                90,
                "Resting heart rate elevated at {value} bpm. May indicate cardiac stress.",
                "Blood pressure monitoring. Consider thyroid function tests (TSH, T3, T4).",
            ),
            Band(
                "warning",
                75,
                "Resting heart rate trending high at {value} bpm.",
                "Monitor sleep quality and stress levels. Consider cardiovascular evaluation.",
            ),
        ),
    ),
    AlertRule(
        source="sleep",
        field_name="sleep_efficiency",
        category="Sleep",
        metric="Sleep Efficiency",
        direction="below",
        bands=(
            Band(
                "critical",
                70,
                "Sleep efficiency critically low at {value}%. Impacts immune function.",
                "Consider sleep study. Check glucose tolerance test and inflammatory markers (CRP).",
            ),
            Band(
                "warning",
                80,
                "Sleep efficiency declining at {value}%.",
                "Optimize sleep hygiene. Consider magnesium supplementation.",
            ),
        ),
    ),
    AlertRule(
        source="activity",
        field_name="steps_count",
        category="Activity",
        metric="Daily Steps",
        direction="below",
        bands=(
            Band(
                "warning",
                3000,
                "Daily steps critically low at {value}. Sedentary lifestyle detected.",
                "Increase daily movement. Consider liver enzyme testing due to inactivity.",
            ),
            Band(
                "warning",
                6000,
                "Daily steps below optimal at {value}.",
                "Gradual increase in daily activity. Aim for 8,000+ steps.",
            ),
        ),
    ),
)


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (not banker's rounding)."""
    return int(math.floor(value + 0.5))


def scan_alerts(
    heart: Sequence[MeasurementRecord],
    sleep: Sequence[MeasurementRecord],
    activity: Sequence[MeasurementRecord],
    rules: Sequence[AlertRule] = ALERT_RULES,
) -> list[Alert]:
    """Evaluate every rule and return the triggered alerts, critical first.

    A metric with no values in its recent window raises nothing.
    """
    sources = {"heart": heart, "sleep": sleep, "activity": activity}
    alerts: list[Alert] = []

    for rule in rules:
        avg = recent_mean(sources[rule.source], rule.field_name, zero_is_missing=True)
        if avg is None:
            logger.debug("No recent %s values; skipping alert rule", rule.field_name)
            continue
        for band in rule.bands:
            if rule.breached(avg, band):
                shown = round_half_up(avg)
                alerts.append(
                    Alert(
                        level=band.level,
                        category=rule.category,
                        metric=rule.metric,
                        current_value=shown,
                        threshold=band.threshold,
                        message=band.message.format(value=shown),
                        recommended_action=band.action,
                    )
                )
                break

    # sorted() is stable, so equal levels keep rule order.
    alerts = sorted(alerts, key=lambda a: 0 if a.level == "critical" else 1)
    if alerts:
        logger.info(
            "Biomarker scan raised %d alert(s), %d critical",
            len(alerts),
            sum(1 for a in alerts if a.level == "critical"),
        )
    return alerts
