"""LLM provider protocol — abstract interface for insight generator calls."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass
class ProviderResponse:
    """Response from an LLM provider."""

    content: str
    input_tokens: int
    output_tokens: int
    model: str
    latency_ms: float


@runtime_checkable
class LLMProvider(Protocol):
    """Abstract interface for insight generator calls."""

    async def generate(
        self,
        system_message: str,
        user_message: str,
        max_tokens: int = 4000,
        temperature: float = 0.2,
    ) -> ProviderResponse: ...


def create_provider(
    provider_name: str,
    api_key: str = "",
    model: str = "",
    *,
    endpoint: str = "",
    api_version: str = "",
) -> LLMProvider | None:
    """Factory function to create an LLM provider by name.

    Args:
        provider_name: "anthropic", "openai", "azure", "mock", or "none".
        api_key: API key for the provider.
        model: Model identifier override (the deployment name for Azure).
        endpoint: Azure OpenAI resource endpoint.
        api_version: Azure OpenAI API version.

    Returns:
        An LLMProvider instance, or None when the generator is disabled.
    """
    if provider_name == "anthropic":
        from hic.core.llm.providers.anthropic import AnthropicProvider

        return AnthropicProvider(api_key=api_key, model=model or "claude-sonnet-4-5-20250929")
    elif provider_name == "openai":
        from hic.core.llm.providers.openai import OpenAIProvider

        return OpenAIProvider(api_key=api_key, model=model or "gpt-4o")
    elif provider_name == "azure":
        from hic.core.llm.providers.azure import AzureOpenAIProvider

        return AzureOpenAIProvider(
            endpoint=endpoint,
            api_key=api_key,
            deployment=model or "gpt-4o",
            api_version=api_version or "2024-10-21",
        )
    elif provider_name == "mock":
        from hic.core.llm.providers.mock import MockProvider

        return MockProvider()
    elif provider_name == "none":
        return None
    else:
        raise ValueError(f"Unknown LLM provider: {provider_name}")
