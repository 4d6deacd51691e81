"""Azure OpenAI provider."""

from __future__ import annotations

import time

from hic.core.llm.provider import ProviderResponse
from hic.core.llm.providers.openai import chat_completion_response


class AzureOpenAIProvider:
    """Azure-hosted OpenAI deployment using the OpenAI SDK's Azure client."""

    def __init__(
        self,
        endpoint: str,
        api_key: str,
        deployment: str = "gpt-4o",
        api_version: str = "2024-10-21",
    ) -> None:
        import openai

        if not endpoint:
            raise ValueError("Azure OpenAI endpoint is required")
        self.client = openai.AsyncAzureOpenAI(
            azure_endpoint=endpoint,
            api_key=api_key,
            api_version=api_version,
        )
        self.model = deployment

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
            top_p=0.95,
            messages=[
                {"role": "system", "content": system_message},
                {"role": "user", "content": user_message},
            ],
        )
        elapsed_ms = (time.monotonic() - start) * 1000
        return chat_completion_response(response, f"azure/{self.model}", elapsed_ms)
