"""Insight generator gateway — optional enrichment with deterministic fallback.

The gateway sends a privacy-filtered analysis payload to the configured
generator and returns its schema-valid reply. Any failure (provider error,
timeout, unparseable or invalid output) is recovered locally: the caller
receives its own rule-based result marked ``degraded``. Successful
generations are cached per (subject, analysis type).
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Literal, Mapping

from pydantic import BaseModel

from hic.core.llm.provider import LLMProvider
from hic.core.llm.response import ResponseFormatError, parse_response
from hic.core.llm.system_prompt import build_full_system_prompt, build_user_message
from hic.core.privacy.policy import PrivacyMode, build_gateway_payload, disclosed_fields
from hic.core.storage.cache import CacheError, InsightCache

if TYPE_CHECKING:
    from hic.core.config.settings import Settings

logger = logging.getLogger(__name__)

InsightSource = Literal["insight_generator", "rules", "cache"]


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class GatewayError(Exception):
    """Raised when the insight generator cannot produce a usable result."""


class GatewayTimeoutError(GatewayError):
    """The generator did not answer within the configured timeout."""


class GatewayResponseError(GatewayError):
    """The generator answered with output that is not schema-valid JSON."""


# ---------------------------------------------------------------------------
# Configuration and result
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class GatewayConfig:
    """Explicit gateway configuration (built once by the application factory)."""

    provider_name: str = "none"
    timeout_seconds: float = 30.0
    max_tokens: int = 4000
    temperature: float = 0.2
    cache_ttl_seconds: int = 3600
    privacy_mode: PrivacyMode = "strict"

    @classmethod
    def from_settings(cls, settings: Settings) -> GatewayConfig:
        return cls(
            provider_name=settings.llm_provider,
            timeout_seconds=settings.gateway_timeout_seconds,
            max_tokens=settings.gateway_max_tokens,
            temperature=settings.gateway_temperature,
            cache_ttl_seconds=settings.cache_ttl_seconds,
            privacy_mode=settings.gateway_privacy_mode,
        )


@dataclass
class InsightResult:
    """The document returned for one analysis, with its provenance."""

    analysis_type: str
    payload: dict[str, Any]
    source: InsightSource
    degraded: bool = False
    disclosed: bool = False
    error: str | None = None
    generated_at: str | None = None
    expires_at: str | None = None
    sent_fields: list[str] = field(default_factory=list)

    @property
    def fallback_used(self) -> bool:
        return self.source == "rules"

    def to_dict(self) -> dict[str, Any]:
        meta: dict[str, Any] = {"source": self.source, "degraded": self.degraded}
        if self.error:
            meta["error"] = self.error
        if self.generated_at:
            meta["generated_at"] = self.generated_at
            meta["expires_at"] = self.expires_at
        return {"result": self.payload, "insight": meta}


# ---------------------------------------------------------------------------
# Gateway
# ---------------------------------------------------------------------------

class InsightGateway:
    """Calls the insight generator with timeout, validation, cache and fallback.

    Usage::

        gateway = InsightGateway(provider, GatewayConfig(provider_name="mock"),
                                 schemas=ANALYSIS_SCHEMAS, cache=cache)
        result = await gateway.generate(
            subject_id="s-1",
            analysis_type="health_score",
            rule_based_result=health_score.to_dict(),
            aggregates=aggregates,
        )
    """

    def __init__(
        self,
        provider: LLMProvider | None,
        config: GatewayConfig,
        schemas: Mapping[str, type[BaseModel]],
        cache: InsightCache | None = None,
    ) -> None:
        self._provider = provider
        self.config = config
        self._schemas = dict(schemas)
        self._cache = cache

    @property
    def enabled(self) -> bool:
        return self._provider is not None

    async def generate(
        self,
        *,
        subject_id: str,
        analysis_type: str,
        rule_based_result: dict[str, Any],
        aggregates: dict[str, Any],
        record_counts: dict[str, int] | None = None,
        use_cache: bool = True,
    ) -> InsightResult:
        """Return the generated document, a cached one, or the rule-based fallback.

        Never raises for generator failures.
        """
        if use_cache:
            cached = self._cached(subject_id, analysis_type)
            if cached is not None:
                return cached

        if self._provider is None:
            return InsightResult(
                analysis_type=analysis_type, payload=rule_based_result, source="rules"
            )

        prior = self._prior_insight(subject_id, analysis_type)
        payload = build_gateway_payload(
            subject_id=subject_id,
            analysis_type=analysis_type,
            aggregates=aggregates,
            rule_based_result=rule_based_result,
            prior_insight=prior,
            record_counts=record_counts,
            privacy_mode=self.config.privacy_mode,
        )
        sent = disclosed_fields(payload)

        try:
            document = await self._call(analysis_type, payload)
        except GatewayError as exc:
            logger.warning(
                "Insight generator failed for %s (%s: %s); using rule-based result",
                analysis_type,
                type(exc).__name__,
                exc,
            )
            return InsightResult(
                analysis_type=analysis_type,
                payload=rule_based_result,
                source="rules",
                degraded=True,
                disclosed=True,
                error=f"{type(exc).__name__}: {exc}",
                sent_fields=sent,
            )

        result = InsightResult(
            analysis_type=analysis_type,
            payload=document,
            source="insight_generator",
            disclosed=True,
            sent_fields=sent,
        )
        self._store(subject_id, result)
        return result

    async def _call(self, analysis_type: str, payload: dict[str, Any]) -> dict[str, Any]:
        schema = self._schemas.get(analysis_type)
        if schema is None:
            raise GatewayResponseError(f"No output schema registered for {analysis_type!r}")

        try:
            response = await asyncio.wait_for(
                self._provider.generate(
                    system_message=build_full_system_prompt(analysis_type),
                    user_message=build_user_message(payload),
                    max_tokens=self.config.max_tokens,
                    temperature=self.config.temperature,
                ),
                timeout=self.config.timeout_seconds,
            )
        except asyncio.TimeoutError as exc:
            raise GatewayTimeoutError(
                f"no response within {self.config.timeout_seconds:g}s"
            ) from exc
        except Exception as exc:
            # SDK and network errors vary by provider; all of them mean "no insight".
            raise GatewayError(f"provider call failed: {exc}") from exc

        logger.info(
            "Insight generator call: analysis=%s, model=%s, tokens=%d+%d, latency=%.0fms",
            analysis_type,
            response.model,
            response.input_tokens,
            response.output_tokens,
            response.latency_ms,
        )

        try:
            return parse_response(response.content, schema)
        except ResponseFormatError as exc:
            raise GatewayResponseError(str(exc)) from exc

    # ------------------------------------------------------------------
    # Cache helpers (cache trouble never fails an analysis)
    # ------------------------------------------------------------------

    def _cached(self, subject_id: str, analysis_type: str) -> InsightResult | None:
        if self._cache is None:
            return None
        try:
            entry = self._cache.get(subject_id, analysis_type)
        except CacheError as exc:
            logger.warning("Insight cache read failed for %s: %s", analysis_type, exc)
            return None
        if entry is None:
            return None
        logger.debug("Insight cache hit for %s", analysis_type)
        return InsightResult(
            analysis_type=analysis_type,
            payload=entry.payload,
            source="cache",
            generated_at=entry.generated_at.isoformat(),
            expires_at=entry.expires_at.isoformat(),
        )

    def _prior_insight(self, subject_id: str, analysis_type: str) -> dict[str, Any] | None:
        if self._cache is None:
            return None
        try:
            entry = self._cache.get_latest(subject_id, analysis_type)
        except CacheError as exc:
            logger.warning("Prior insight unavailable for %s: %s", analysis_type, exc)
            return None
        return entry.payload if entry is not None else None

    def _store(self, subject_id: str, result: InsightResult) -> None:
        if self._cache is None:
            return
        try:
            entry = self._cache.put(
                subject_id,
                result.analysis_type,
                result.payload,
                ttl_seconds=self.config.cache_ttl_seconds,
            )
        except CacheError as exc:
            logger.warning("Insight cache write failed for %s: %s", result.analysis_type, exc)
            return
        result.generated_at = entry.generated_at.isoformat()
        result.expires_at = entry.expires_at.isoformat()
