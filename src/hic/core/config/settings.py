"""Application settings loaded from environment variables."""

from __future__ import annotations

from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Health Intelligence Core server configuration."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # Server
    # Default to loopback to avoid accidentally exposing a health MCP server
    # to your LAN/WAN. Opt into `0.0.0.0` explicitly when you intend remote access.
    hic_host: str = "127.0.0.1"
    hic_port: int = 8001
    hic_log_level: str = "info"
    hic_transport: Literal["streamable-http", "stdio"] = "streamable-http"
    # Additional explicit guard: if binding to non-loopback, refuse to start unless
    # this is set true (there is currently no auth layer).
    hic_allow_insecure_bind: bool = False

    # Insight generator ("none" disables it; every analysis uses the rules)
    llm_provider: Literal["anthropic", "openai", "azure", "mock", "none"] = "anthropic"
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-sonnet-4-5-20250929"
    openai_api_key: str = ""
    openai_model: str = "gpt-4o"
    azure_openai_endpoint: str = ""
    azure_openai_api_key: str = ""
    azure_openai_deployment: str = "gpt-4o"
    azure_openai_api_version: str = "2024-10-21"

    # Gateway
    gateway_timeout_seconds: float = 30.0
    gateway_max_tokens: int = 4000
    gateway_temperature: float = 0.2
    gateway_privacy_mode: Literal["strict", "standard", "explicit"] = "strict"

    # Insight cache
    cache_db_path: str = "~/.hic/insights.db"
    cache_ttl_seconds: int = 3600

    # Encryption (comma-separated Fernet keys, newest first, to allow rotation)
    encryption_key: str = ""

    # Analytics
    recommendation_limit: int = 4
    default_timeframe_days: int = 90
    fetch_timeout_seconds: float = 10.0


def get_settings() -> Settings:
    """Create and return a Settings instance."""
    return Settings()
