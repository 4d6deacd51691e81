"""Mock LLM provider for testing."""

from __future__ import annotations

import asyncio
import json
import re

from hic.core.llm.provider import ProviderResponse

_PAYLOAD_BLOCK = re.compile(r"```json\s*(\{.*\})\s*```", re.DOTALL)


class MockProvider:
    """Mock provider for testing.

    By default it echoes the ``rule_based_result`` found in the request
    payload, which is always schema-valid. ``response_content`` overrides the
    reply with a canned string; ``error`` makes every call raise it and
    ``delay_seconds`` simulates a slow generator.
    """

    def __init__(
        self,
        response_content: str | None = None,
        error: BaseException | None = None,
        delay_seconds: float = 0.0,
    ) -> None:
        self.response_content = response_content
        self.error = error
        self.delay_seconds = delay_seconds
        self.last_system_message: str = ""
        self.last_user_message: str = ""
        self.call_count: int = 0

    def _echo(self, user_message: str) -> str:
        match = _PAYLOAD_BLOCK.search(user_message)
        if not match:
            return "{}"
        payload = json.loads(match.group(1))
        return json.dumps(payload.get("rule_based_result", {}))

    async def generate(
        self,
        system_message: str,
        user_message: str,
        max_tokens: int = 4000,
        temperature: float = 0.2,
    ) -> ProviderResponse:
        self.last_system_message = system_message
        self.last_user_message = user_message
        self.call_count += 1
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)
        if self.error is not None:
            raise self.error

        content = (
            self.response_content
            if self.response_content is not None
            else self._echo(user_message)
        )
        return ProviderResponse(
            content=content,
            input_tokens=len(system_message.split()) + len(user_message.split()),
            output_tokens=len(content.split()),
            model="mock",
            latency_ms=0.0,
        )
