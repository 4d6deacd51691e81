"""Health Intelligence Core MCP Server — application factory.

This module provides:
- create_app() for testability (integration tests create fresh server instances)
- Module-level `mcp` variable for FastMCP discovery
"""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import replace
from typing import Iterable

from fastmcp import FastMCP

from hic.core.audit.logger import AuditLogger
from hic.core.config.settings import Settings, get_settings
from hic.core.llm.gateway import GatewayConfig, InsightGateway
from hic.core.llm.provider import LLMProvider, create_provider
from hic.core.storage.cache import InsightCache
from hic.core.storage.database import DatabaseError, HealthDatabase
from hic.core.storage.encryption import EncryptionError, FieldEncryptor
from hic.domains.health.connectors import SampleStoreAdapter
from hic.domains.health.connectors.composite import CompositeSampleStore
from hic.domains.health.connectors.providers import InMemorySampleStore, MockSampleStore
from hic.domains.health.domain_logic.models import MeasurementRecord
from hic.domains.health.domain_logic.schemas import ANALYSIS_SCHEMAS
from hic.domains.health.service import HealthAnalyticsService
from hic.domains.health.tools.analytics_tools import register_health_analytics_tools
from hic.domains.health.tools.audit_tools import register_audit_tools

logger = logging.getLogger(__name__)

VERSION = "0.1.0"

# Settings fields holding (api key, model) per provider.
_PROVIDER_CREDENTIALS = {
    "anthropic": ("anthropic_api_key", "anthropic_model"),
    "openai": ("openai_api_key", "openai_model"),
    "azure": ("azure_openai_api_key", "azure_openai_deployment"),
}


def _build_provider(settings: Settings) -> tuple[str, LLMProvider | None]:
    """Create the configured provider; a missing credential falls back to 'none'."""
    name = settings.llm_provider
    if name in ("mock", "none"):
        return name, create_provider(name)

    key_field, model_field = _PROVIDER_CREDENTIALS[name]
    api_key = getattr(settings, key_field)
    if not api_key or (name == "azure" and not settings.azure_openai_endpoint):
        logger.warning(
            "No credentials configured for provider '%s'; "
            "analyses will use the rule-based results only",
            name,
        )
        return "none", None

    return name, create_provider(
        name,
        api_key=api_key,
        model=getattr(settings, model_field),
        endpoint=settings.azure_openai_endpoint,
        api_version=settings.azure_openai_api_version,
    )


def _build_database(settings: Settings) -> HealthDatabase | None:
    try:
        database = HealthDatabase(settings.cache_db_path)
        database.initialize()
    except DatabaseError as exc:
        logger.error("Failed to initialize insight database: %s", exc)
        logger.warning("Continuing without insight cache or audit trail")
        return None
    logger.info(
        "Insight database initialized: %s (schema v%d)",
        settings.cache_db_path,
        database.get_schema_version(),
    )
    return database


def _maintain_cache(cache: InsightCache) -> None:
    """Startup housekeeping: drop expired rows, move the rest to the primary key."""
    try:
        cache.purge_expired()
        cache.rotate_keys()
    except sqlite3.Error as exc:
        logger.warning("Insight cache maintenance failed: %s", exc)


def create_app(
    *,
    sample_store_override: SampleStoreAdapter | None = None,
    records_override: Iterable[MeasurementRecord] | None = None,
    provider_override: LLMProvider | None = None,
    cache_override: InsightCache | None = None,
    audit_override: AuditLogger | None = None,
    settings: Settings | None = None,
) -> FastMCP:
    """Create and configure the Health Intelligence Core MCP server.

    This is the main application factory. It:
    1. Creates the FastMCP server instance
    2. Creates the insight generator provider and the gateway config
    3. Initializes the insight cache and audit log (SQLite)
    4. Initializes the sample store: the override, else held records over
       the mock generator, else the mock generator alone
    5. Registers all tools
    """
    settings = settings or get_settings()

    # --- Server instance ---
    server = FastMCP(
        "Health Intelligence Core",
        instructions=(
            "Health analytics server. Computes lifestyle/health correlations, "
            "a five-domain health score, biomarker alerts and a daily briefing "
            "from heart, sleep, activity and lab measurements, optionally "
            "enriched by an insight generator with deterministic fallback."
        ),
    )

    # --- Insight generator ---
    if provider_override is not None:
        provider_name, provider = "override", provider_override
    else:
        provider_name, provider = _build_provider(settings)
    config = replace(GatewayConfig.from_settings(settings), provider_name=provider_name)

    # --- Insight cache and audit trail ---
    cache = cache_override
    audit = audit_override
    if cache is None or audit is None:
        database = _build_database(settings)
        if database is not None:
            if cache is None:
                encryptor: FieldEncryptor | None = None
                if settings.encryption_key:
                    try:
                        encryptor = FieldEncryptor(settings.encryption_key)
                    except EncryptionError as exc:
                        logger.error("Invalid ENCRYPTION_KEY: %s", exc)
                        logger.warning("Insight cache disabled: refusing to store plaintext")
                else:
                    logger.info(
                        "No ENCRYPTION_KEY configured — cached insights are stored unencrypted"
                    )
                if encryptor is not None or not settings.encryption_key:
                    cache = InsightCache(
                        database, encryptor, default_ttl_seconds=settings.cache_ttl_seconds
                    )
                    _maintain_cache(cache)
            if audit is None:
                audit = AuditLogger(database)

    gateway = InsightGateway(provider, config, schemas=ANALYSIS_SCHEMAS, cache=cache)

    # --- Sample store ---
    if sample_store_override is not None:
        store = sample_store_override
    elif records_override is not None:
        store = CompositeSampleStore([InMemorySampleStore(records_override), MockSampleStore()])
        logger.info("Using held records with mock fallback: %s", store.data_source)
    else:
        store = MockSampleStore()
        logger.info("Using mock sample store")

    service = HealthAnalyticsService(
        store,
        gateway,
        audit=audit,
        recommendation_limit=settings.recommendation_limit,
        default_timeframe_days=settings.default_timeframe_days,
        fetch_timeout_seconds=settings.fetch_timeout_seconds,
    )

    # --- Register tools ---
    @server.tool
    def health_check() -> dict:
        """Check server health and return basic status information."""
        return {
            "status": "ok",
            "server": "Health Intelligence Core",
            "version": VERSION,
            "insight_generator": provider_name if gateway.enabled else "disabled",
            "privacy_mode": config.privacy_mode,
            "cache_enabled": cache is not None,
            "audit_enabled": audit is not None,
            "data_source": store.data_source,
            "categories": sorted(store.categories),
        }

    register_health_analytics_tools(server, service)
    register_audit_tools(server, audit, cache)
    logger.info("Health analytics tools registered (insight generator: %s)", provider_name)

    return server


# Module-level instance for FastMCP discovery ("...app.py:mcp").
# Lazy: only created when this module is loaded directly (not when tests import create_app).
def __getattr__(name: str):
    if name == "mcp":
        global mcp  # noqa: PLW0603
        mcp = create_app()
        return mcp
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
