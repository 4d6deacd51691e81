"""LLM provider implementations."""

from hic.core.llm.providers.anthropic import AnthropicProvider
from hic.core.llm.providers.azure import AzureOpenAIProvider
from hic.core.llm.providers.mock import MockProvider
from hic.core.llm.providers.openai import OpenAIProvider

__all__ = ["AnthropicProvider", "AzureOpenAIProvider", "MockProvider", "OpenAIProvider"]
