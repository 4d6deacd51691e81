"""Anthropic Claude provider.

Claude has no JSON response mode, so the assistant turn is prefilled with
``{``: the reply continues the object and the prefill is put back in front of
it before the gateway parses the document.
"""

from __future__ import annotations

import logging
import time

from hic.core.llm.provider import ProviderResponse

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "claude-sonnet-4-5-20250929"
JSON_PREFILL = "{"


class AnthropicProvider:
    """Insight generator backed by the Anthropic Messages API."""

    def __init__(self, api_key: str, model: str = DEFAULT_MODEL) -> None:
        import anthropic

        self.client = anthropic.AsyncAnthropic(api_key=api_key)
        self.model = model

    async def generate(
        self,
        system_message: str,
        user_message: str,
        max_tokens: int = 4000,
        temperature: float = 0.2,
    ) -> ProviderResponse:
        start = time.monotonic()
        message = await self.client.messages.create(
            model=self.model,
            max_tokens=max_tokens,
            temperature=temperature,
            system=system_message,
            messages=[
                {"role": "user", "content": user_message},
                {"role": "assistant", "content": JSON_PREFILL},
            ],
        )
        latency_ms = (time.monotonic() - start) * 1000

        if message.stop_reason == "max_tokens":
            # The object is cut off; parsing will reject it and the gateway falls back.
            logger.warning("Claude reply hit max_tokens=%d; insight JSON is truncated", max_tokens)

        text = "".join(
            block.text for block in message.content if getattr(block, "type", "") == "text"
        )
        return ProviderResponse(
            content=JSON_PREFILL + text,
            input_tokens=message.usage.input_tokens,
            output_tokens=message.usage.output_tokens,
            model=self.model,
            latency_ms=latency_ms,
        )
