"""Daily briefing: today's focus, energy prediction and a short action plan.

Rules run in a fixed order (sleep, HRV, activity, metabolic, hydration) and
recommendations are kept in that generation order when truncated, so the
first entries are always the ones triggered by the strongest signals.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Mapping, Sequence

from hic.domains.health.domain_logic.alerts import round_half_up
from hic.domains.health.domain_logic.models import (
    Briefing,
    MeasurementRecord,
    Recommendation,
)
from hic.domains.health.domain_logic.series import newest_first

logger = logging.getLogger(__name__)

DEFAULT_RECOMMENDATION_LIMIT = 4

DEFAULT_PRIORITY = "Recovery"
DEFAULT_FOCUS = "Maintenance"
DEFAULT_ENERGY = 7

POOR_SLEEP_EFFICIENCY = 70
POOR_SLEEP_HOURS = 6
GOOD_SLEEP_EFFICIENCY = 85
GOOD_SLEEP_HOURS = 7
LOW_HRV = 20
HRV_DECLINE = -5
LOW_STEPS = 5000

Records = Sequence[MeasurementRecord]


def _latest(records: Records | None) -> MeasurementRecord | None:
    if not records:
        return None
    return newest_first(records)[0]


def hrv_trend(trend_heart: Records | None) -> float:
    """Newest minus oldest HRV over the trend window (0 with fewer than 2 records)."""
    if not trend_heart or len(trend_heart) < 2:
        return 0.0
    ordered = newest_first(trend_heart)
    newest = ordered[0].get("hrv_rmssd") or 0.0
    oldest = ordered[-1].get("hrv_rmssd") or 0.0
    return newest - oldest


def brief(
    yesterday: Mapping[str, Records],
    trend7day: Mapping[str, Records],
    limit: int = DEFAULT_RECOMMENDATION_LIMIT,
    today: date | None = None,
) -> Briefing:
    """Build the daily briefing.

    Args:
        yesterday: ``heart``, ``sleep`` and ``activity`` records from the
            previous day. Missing keys are treated as no data.
        trend7day: ``heart`` and ``sleep`` records from the last 7 days.
        limit: Maximum number of recommendations kept.
        today: Date stamped on the briefing (defaults to today).
    """
    last_sleep = _latest(yesterday.get("sleep"))
    last_heart = _latest(yesterday.get("heart"))
    last_activity = _latest(yesterday.get("activity"))
    trend = hrv_trend(trend7day.get("heart"))

    priority = DEFAULT_PRIORITY
    focus = DEFAULT_FOCUS
    energy = DEFAULT_ENERGY
    recommendations: list[Recommendation] = []
    insights: list[str] = []
    risk_alerts: list[str] = []

    # Sleep sets the baseline energy for the day.
    if last_sleep is not None:
        efficiency = last_sleep.get("sleep_efficiency") or 0.0
        minutes = last_sleep.get("total_sleep_time")
        hours = minutes / 60 if minutes else 0.0

        if efficiency < POOR_SLEEP_EFFICIENCY or hours < POOR_SLEEP_HOURS:
            energy = 4
            priority = "Recovery"
            focus = "Sleep Recovery"
            recommendations.append(
                Recommendation(
                    priority="High",
                    category="Recovery",
                    action=(
                        "Limit intense activities today. Focus on gentle movement "
                        "and early bedtime prep."
                    ),
                    reasoning=(
                        f"Poor sleep quality ({round_half_up(efficiency)}% efficiency, "
                        f"{hours:.1f} hours)"
                    ),
                    timing="All day",
                )
            )
            insights.append(
                f"Your sleep efficiency was {round_half_up(efficiency)}% last night, "
                "indicating fragmented sleep. Energy will be limited today."
            )
        elif efficiency > GOOD_SLEEP_EFFICIENCY and hours > GOOD_SLEEP_HOURS:
            energy = 9
            focus = "Performance Optimization"
            insights.append(
                f"Excellent sleep quality ({round_half_up(efficiency)}% efficiency) "
                "sets you up for a high-energy day."
            )

    hrv = last_heart.get("hrv_rmssd") if last_heart is not None else None
    if hrv:
        if hrv < LOW_HRV:
            priority = "Stress Management"
            focus = "Autonomic Recovery"
            energy = min(energy, 5)
            recommendations.append(
                Recommendation(
                    priority="Critical",
                    category="Stress",
                    action=(
                        "Practice 4-7-8 breathing for 10 minutes. "
                        "Consider cold shower for 2 minutes."
                    ),
                    reasoning=(
                        f"HRV critically low at {hrv:g}ms indicating high autonomic stress"
                    ),
                    timing="Morning",
                )
            )
            risk_alerts.append(
                "HRV indicates significant autonomic stress. Monitor for fatigue "
                "and consider medical consultation if persistent."
            )
        elif trend < HRV_DECLINE:
            recommendations.append(
                Recommendation(
                    priority="Medium",
                    category="Recovery",
                    action=(
                        "Implement stress reduction protocol. "
                        "Prioritize meditation and gentle movement."
                    ),
                    reasoning=f"HRV declining trend (-{abs(trend):.1f}ms over 7 days)",
                    timing="Throughout day",
                )
            )

    if last_activity is not None:
        steps = last_activity.get("steps_count") or 0.0
        if steps < LOW_STEPS:
            recommendations.append(
                Recommendation(
                    priority="Medium",
                    category="Activity",
                    action="Take a 20-minute walk in sunlight. Aim for 8,000+ steps today.",
                    reasoning=f"Low activity yesterday ({int(steps):,} steps)",
                    timing="Morning preferred",
                )
            )

    if energy < DEFAULT_ENERGY:
        recommendations.append(
            Recommendation(
                priority="Medium",
                category="Metabolic",
                action=(
                    "Delay breakfast until 10 AM (extend fast). "
                    "Focus on protein and healthy fats."
                ),
                reasoning=(
                    "Poor recovery suggests metabolic stress - "
                    "intermittent fasting may help"
                ),
                timing="Morning",
            )
        )

    recommendations.append(
        Recommendation(
            priority="Low",
            category="Nutrition",
            action="Ensure 64oz water intake by 3 PM. Add electrolytes if sweating expected.",
            reasoning="Optimal hydration supports all physiological functions",
            timing="Throughout day",
        )
    )

    if len(recommendations) > limit:
        logger.debug(
            "Truncating %d recommendations to %d", len(recommendations), limit
        )

    return Briefing(
        date=(today or date.today()).isoformat(),
        priority=priority,
        health_focus=focus,
        energy_prediction=energy,
        recommendations=recommendations[: max(limit, 0)],
        insights=insights,
        risk_alerts=risk_alerts,
    )
