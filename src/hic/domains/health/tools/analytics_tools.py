"""MCP tools for the health analytics: correlations, score, alerts and briefing.

Every tool returns a JSON document. Generator failures never surface as
tool errors; they show up as ``"insight": {"source": "rules", "degraded": true}``.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from fastmcp import Context, FastMCP

if TYPE_CHECKING:
    from hic.domains.health.service import HealthAnalyticsService

logger = logging.getLogger(__name__)


def register_health_analytics_tools(mcp: FastMCP, service: HealthAnalyticsService) -> None:
    """Register the analytics tools on the MCP server."""

    @mcp.tool
    async def lifestyle_correlations(
        ctx: Context,
        subject_id: str,
        timeframe_days: int | None = None,
    ) -> str:
        """Find correlations between lifestyle metrics and health metrics.

        Covers sleep duration vs HRV, daily steps vs resting heart rate,
        exercise vs sleep efficiency, activity vs glucose, and sleep quality
        vs inflammatory markers. Pairs without enough aligned data are omitted.

        Args:
            subject_id: Whose data to analyze.
            timeframe_days: Look-back window (default: 90).
        """
        document = await service.lifestyle_correlations(subject_id, timeframe_days)
        return json.dumps(document, indent=2)

    @mcp.tool
    async def health_score(
        ctx: Context,
        subject_id: str,
        timeframe_days: int | None = None,
    ) -> str:
        """Compute the 0-100 composite health score across five domains.

        Domains: cardiovascular (25), metabolic (25), inflammatory (20),
        nutritional (15), recovery (15). Placeholder sub-scores used for
        missing secondary signals are listed under ``approximations``.

        Args:
            subject_id: Whose data to analyze.
            timeframe_days: Look-back window (default: 30).
        """
        document = await service.health_score(subject_id, timeframe_days)
        return json.dumps(document, indent=2)

    @mcp.tool
    async def biomarker_alerts(ctx: Context, subject_id: str) -> str:
        """List threshold alerts for HRV, resting heart rate, sleep efficiency and steps.

        Alerts compare 7-day averages against fixed clinical thresholds and
        are ordered critical first.

        Args:
            subject_id: Whose data to analyze.
        """
        document = await service.daily_briefing(subject_id)
        if document.get("status") == "ok":
            document["result"] = {"alerts": document["result"]["alerts"]}
        return json.dumps(document, indent=2)

    @mcp.tool
    async def daily_briefing(ctx: Context, subject_id: str) -> str:
        """Today's focus, energy prediction (1-10), action plan and alerts.

        Uses yesterday's sleep, HRV and steps plus the 7-day HRV trend.

        Args:
            subject_id: Whose data to analyze.
        """
        document = await service.daily_briefing(subject_id)
        return json.dumps(document, indent=2)

    logger.debug("Registered health analytics tools")
