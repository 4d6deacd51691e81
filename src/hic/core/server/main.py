"""Server entry point (``python -m hic.core.server.main`` or ``hic-server``)."""

from __future__ import annotations

import logging
from ipaddress import ip_address

from hic.core.config.settings import Settings, get_settings
from hic.core.server.app import create_app

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _is_loopback_host(host: str) -> bool:
    if host == "localhost":
        return True
    try:
        return ip_address(host).is_loopback
    except ValueError:
        return False


def check_bind(settings: Settings) -> None:
    """Refuse a network bind beyond loopback unless explicitly allowed.

    The server has no auth layer; stdio transport never binds.
    """
    if settings.hic_transport == "stdio" or settings.hic_allow_insecure_bind:
        return
    if not _is_loopback_host(settings.hic_host):
        raise RuntimeError(
            f"Refusing to serve health analytics on non-loopback host {settings.hic_host!r} "
            "without an auth layer. Set HIC_ALLOW_INSECURE_BIND=true to override (unsafe)."
        )


def run() -> None:
    """Start the Health Intelligence Core MCP server."""
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.hic_log_level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )
    check_bind(settings)

    mcp = create_app(settings=settings)
    logger.info(
        "Insight generator: %s (privacy mode %s, timeout %.0fs)",
        settings.llm_provider,
        settings.gateway_privacy_mode,
        settings.gateway_timeout_seconds,
    )

    if settings.hic_transport == "stdio":
        logger.info("Starting Health Intelligence Core server on stdio")
        mcp.run(transport="stdio")
        return

    logger.info(
        "Starting Health Intelligence Core server on %s:%d",
        settings.hic_host,
        settings.hic_port,
    )
    mcp.run(transport="streamable-http", host=settings.hic_host, port=settings.hic_port)


if __name__ == "__main__":
    run()
