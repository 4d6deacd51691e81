"""Health analytics service — fetch, compute, enrich, audit.

Each analysis follows the same path: validate the request, fan out the
category fetches, compute the deterministic rule-based result, hand it to
the insight gateway for optional enrichment, and record a PHI-free audit
event. Invalid requests return a structured error document and compute
nothing; a failing category fetch only empties that category.
"""

from __future__ import annotations

import logging
import time
from datetime import date, datetime, timedelta, timezone
from typing import Any, Callable

from hic.core.audit.logger import AuditLogger
from hic.core.llm.gateway import InsightGateway
from hic.domains.health.connectors import SampleStoreAdapter
from hic.domains.health.connectors.fanout import FetchResult, fetch_all
from hic.domains.health.domain_logic.aggregates import aggregate
from hic.domains.health.domain_logic.alerts import scan_alerts
from hic.domains.health.domain_logic.briefing import brief
from hic.domains.health.domain_logic.correlation import CorrelationEngine
from hic.domains.health.domain_logic.health_score import HealthScoreCalculator

logger = logging.getLogger(__name__)

# Source categories each analysis reads.
ANALYSIS_SOURCES: dict[str, tuple[str, ...]] = {
    "correlations": ("heart", "sleep", "activity", "lab"),
    "health_score": ("heart", "sleep", "activity", "lab"),
    "daily_briefing": ("heart", "sleep", "activity"),
}

HEALTH_SCORE_WINDOW_DAYS = 30
BRIEFING_TREND_DAYS = 7


class InvalidInputError(ValueError):
    """The request cannot be analyzed at all (no subject, no usable source)."""


def error_document(exc: InvalidInputError) -> dict[str, Any]:
    return {"status": "error", "error": {"type": "invalid_input", "message": str(exc)}}


class HealthAnalyticsService:
    """Runs the three analyses for a subject.

    Usage::

        service = HealthAnalyticsService(store, gateway, audit=audit)
        document = await service.health_score("subject-1")
    """

    def __init__(
        self,
        store: SampleStoreAdapter,
        gateway: InsightGateway,
        *,
        audit: AuditLogger | None = None,
        recommendation_limit: int = 4,
        default_timeframe_days: int = 90,
        fetch_timeout_seconds: float = 10.0,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.store = store
        self.gateway = gateway
        self.audit = audit
        self.recommendation_limit = recommendation_limit
        self.default_timeframe_days = default_timeframe_days
        self.fetch_timeout_seconds = fetch_timeout_seconds
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._correlations = CorrelationEngine()
        self._scores = HealthScoreCalculator()

    # ------------------------------------------------------------------
    # Analyses
    # ------------------------------------------------------------------

    async def lifestyle_correlations(
        self, subject_id: str, timeframe_days: int | None = None
    ) -> dict[str, Any]:
        """Pairwise lifestyle/health correlations over the timeframe."""
        days = self.default_timeframe_days if timeframe_days is None else timeframe_days

        def compute(fetched: FetchResult, _: date) -> dict[str, Any]:
            return self._correlations.analyze(
                fetched.get("heart"), fetched.get("sleep"),
                fetched.get("activity"), fetched.get("lab"),
            ).to_dict()

        return await self._run("correlations", subject_id, days, compute)

    async def health_score(
        self, subject_id: str, timeframe_days: int | None = None
    ) -> dict[str, Any]:
        """Five-domain composite score from the most recent records."""
        days = HEALTH_SCORE_WINDOW_DAYS if timeframe_days is None else timeframe_days

        def compute(fetched: FetchResult, _: date) -> dict[str, Any]:
            return self._scores.score(
                fetched.get("heart"), fetched.get("sleep"),
                fetched.get("activity"), fetched.get("lab"),
            ).to_dict()

        return await self._run("health_score", subject_id, days, compute)

    async def daily_briefing(self, subject_id: str) -> dict[str, Any]:
        """Biomarker alerts plus today's briefing."""

        def compute(fetched: FetchResult, today: date) -> dict[str, Any]:
            yesterday = today - timedelta(days=1)
            yesterday_records = {
                category: [r for r in fetched.get(category) if r.timestamp.date() == yesterday]
                for category in ("heart", "sleep", "activity")
            }
            alerts = scan_alerts(
                fetched.get("heart"), fetched.get("sleep"), fetched.get("activity")
            )
            briefing = brief(
                yesterday_records,
                {"heart": fetched.get("heart"), "sleep": fetched.get("sleep")},
                limit=self.recommendation_limit,
                today=today,
            )
            return {
                "alerts": [a.to_dict() for a in alerts],
                "briefing": briefing.to_dict(),
            }

        document = await self._run("daily_briefing", subject_id, BRIEFING_TREND_DAYS, compute)
        if document.get("status") == "ok":
            # A generated briefing is held to the same recommendation limit.
            recs = document["result"]["briefing"]["recommendations"]
            document["result"]["briefing"]["recommendations"] = recs[: self.recommendation_limit]
        return document

    # ------------------------------------------------------------------
    # Shared pipeline
    # ------------------------------------------------------------------

    def _validate(self, analysis_type: str, subject_id: str) -> tuple[str, list[str]]:
        if not isinstance(subject_id, str) or not subject_id.strip():
            raise InvalidInputError("subject_id is required")
        usable = [c for c in ANALYSIS_SOURCES[analysis_type] if c in self.store.categories]
        if not usable:
            raise InvalidInputError(
                f"No usable biomarker source for {analysis_type}: store "
                f"{self.store.data_source!r} serves none of "
                f"{', '.join(ANALYSIS_SOURCES[analysis_type])}"
            )
        return subject_id.strip(), usable

    async def _run(
        self,
        analysis_type: str,
        subject_id: str,
        days: int,
        compute: Callable[[FetchResult, date], dict[str, Any]],
    ) -> dict[str, Any]:
        start_time = time.monotonic()
        request = {"subject_id": subject_id, "analysis_type": analysis_type, "days": days}

        try:
            if days < 1:
                raise InvalidInputError("timeframe_days must be at least 1")
            subject_id, categories = self._validate(analysis_type, subject_id)
        except InvalidInputError as exc:
            logger.warning("Rejected %s request: %s", analysis_type, exc)
            self._audit(analysis_type, request, start_time, status="failure",
                        error_type="InvalidInputError")
            return error_document(exc)

        until = self._clock()
        since = until - timedelta(days=days)
        fetched = await fetch_all(
            self.store,
            subject_id,
            since,
            until,
            categories=categories,
            timeout_seconds=self.fetch_timeout_seconds,
        )

        rule_based = compute(fetched, until.date())
        insight = await self.gateway.generate(
            subject_id=subject_id,
            analysis_type=analysis_type,
            rule_based_result=rule_based,
            aggregates=aggregate(fetched.records),
            record_counts=fetched.counts,
        )

        self._audit(
            analysis_type,
            request,
            start_time,
            llm_disclosed=insight.disclosed,
            fallback_used=insight.fallback_used,
            metadata={
                "source": insight.source,
                "degraded": insight.degraded,
                "sent_fields": insight.sent_fields,
                "failed_categories": sorted(fetched.failures),
            },
        )

        return {
            "status": "ok",
            "subject_id": subject_id,
            "analysis_type": analysis_type,
            "window": {"since": since.isoformat(), "until": until.isoformat()},
            "data_source": self.store.data_source,
            "record_counts": fetched.counts,
            "fetch_failures": dict(fetched.failures),
            **insight.to_dict(),
        }

    def _audit(
        self,
        analysis_type: str,
        request: dict[str, Any],
        start_time: float,
        **fields: Any,
    ) -> None:
        if self.audit is None:
            return
        self.audit.log_analysis(
            analysis_type,
            request,
            privacy_mode=self.gateway.config.privacy_mode,
            llm_provider=self.gateway.config.provider_name if self.gateway.enabled else None,
            duration_ms=(time.monotonic() - start_time) * 1000,
            **fields,
        )
