"""MCP tools for the audit trail and the insight cache.

The audit trail holds no health data, only hashed request references, so
the summary can be shown to the subject as is.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

from fastmcp import Context, FastMCP

from hic.core.audit.logger import AuditEvent, _hash_input

if TYPE_CHECKING:
    from hic.core.audit.logger import AuditLogger
    from hic.core.storage.cache import InsightCache

logger = logging.getLogger(__name__)


def register_audit_tools(
    mcp: FastMCP,
    audit_logger: AuditLogger | None,
    cache: InsightCache | None,
) -> None:
    """Register the audit and cache tools that the available storage supports."""

    if audit_logger is not None:

        @mcp.tool
        async def audit_summary(ctx: Context, days: int = 30) -> str:
            """Recent analysis runs, generator disclosures and rule-based fallbacks.

            Args:
                days: Number of days to look back (default: 30).
            """
            since = (datetime.now(timezone.utc) - timedelta(days=days)).isoformat()
            recent_events = audit_logger.get_events(since=since, limit=20)

            display_events = [
                {
                    "timestamp": event.get("timestamp"),
                    "action": event.get("action"),
                    "analysis_type": event.get("analysis_type"),
                    "privacy_mode": event.get("privacy_mode"),
                    "llm_provider": event.get("llm_provider"),
                    "llm_disclosed": bool(event.get("llm_disclosed")),
                    "fallback_used": bool(event.get("fallback_used")),
                    "status": event.get("status"),
                    "duration_ms": event.get("duration_ms"),
                }
                for event in recent_events
            ]

            return json.dumps({
                "status": "ok",
                "period_days": days,
                "llm_disclosures": audit_logger.count_disclosures(since=since),
                "rule_based_fallbacks": audit_logger.count_fallbacks(since=since),
                "recent_events": display_events,
                "note": (
                    "This audit trail contains no health data. It tracks analysis runs "
                    "and whether aggregates were sent to an insight generator."
                ),
            }, indent=2)

    if cache is not None:

        @mcp.tool
        async def clear_cached_insights(
            ctx: Context,
            subject_id: str,
            analysis_type: str | None = None,
        ) -> str:
            """Drop cached insights so the next analysis is generated afresh.

            Args:
                subject_id: Whose cached insights to drop.
                analysis_type: Only this analysis ('correlations', 'health_score'
                    or 'daily_briefing'); all of them when omitted.
            """
            removed = cache.invalidate(subject_id, analysis_type)
            if audit_logger is not None:
                audit_logger.log_event(AuditEvent(
                    action="cache_invalidate",
                    analysis_type=analysis_type or "",
                    request_hash=_hash_input(
                        {"subject_id": subject_id, "analysis_type": analysis_type}
                    ),
                    metadata={"removed": removed},
                ))
            logger.info("Cleared %d cached insight(s)", removed)
            return json.dumps({"status": "ok", "removed": removed}, indent=2)

    logger.debug("Registered audit tools")
