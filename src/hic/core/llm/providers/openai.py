"""OpenAI GPT provider."""

from __future__ import annotations

import time
from typing import Any

from hic.core.llm.provider import ProviderResponse


def chat_completion_response(response: Any, model: str, elapsed_ms: float) -> ProviderResponse:
    """Convert a chat.completions response (OpenAI or Azure) to ProviderResponse."""
    choice = response.choices[0] if response.choices else None
    content = (choice.message.content or "") if choice else ""
    usage = response.usage
    return ProviderResponse(
        content=content,
        input_tokens=usage.prompt_tokens if usage else 0,
        output_tokens=usage.completion_tokens if usage else 0,
        model=model,
        latency_ms=elapsed_ms,
    )


class OpenAIProvider:
    """OpenAI provider using the OpenAI SDK."""

    def __init__(self, api_key: str, model: str = "gpt-4o") -> None:
        import openai

        self.client = openai.AsyncOpenAI(api_key=api_key)
        self.model = model

    async def generate(
        self,
        system_message: str,
        user_message: str,
        max_tokens: int = 4000,
        temperature: float = 0.2,
    ) -> ProviderResponse:
        start = time.monotonic()
        response = await self.client.chat.completions.create(
            model=self.model,
            max_tokens=max_tokens,
            temperature=temperature,
            response_format={"type": "json_object"},
            messages=[
                {"role": "system", "content": system_message},
                {"role": "user", "content": user_message},
            ],
        )
        elapsed_ms = (time.monotonic() - start) * 1000
        return chat_completion_response(response, self.model, elapsed_ms)
