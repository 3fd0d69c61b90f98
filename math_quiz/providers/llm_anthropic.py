from __future__ import annotations

import logging
import os
from collections.abc import AsyncIterator

from math_quiz.providers.base import LLMProvider

log = logging.getLogger("math_quiz.llm")

# closes the last question, the questions array, the quiz object and the payload
STOP_SEQUENCES = ["}]}}"]


class AnthropicProvider(LLMProvider):
    def __init__(self, model: str = "claude-sonnet-4-20250514", max_tokens: int = 8000):
        import anthropic
        self.client = anthropic.AsyncAnthropic(
            api_key=os.environ.get("ANTHROPIC_API_KEY", ""),
        )
        self.model = model
        self.max_tokens = max_tokens

    def _request(self, prompt: str, temperature: float, system: str | None) -> dict:
        kwargs = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "temperature": temperature,
            "stop_sequences": STOP_SEQUENCES,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system:
            kwargs["system"] = system
        return kwargs

    async def generate(self, prompt: str, temperature: float = 0.4, system: str | None = None) -> str:
        message = await self.client.messages.create(**self._request(prompt, temperature, system))
        text = "".join(block.text for block in message.content if block.type == "text")
        if message.stop_reason == "stop_sequence" and message.stop_sequence:
            text += message.stop_sequence
        return text

    async def generate_stream(
        self, prompt: str, temperature: float = 0.4, system: str | None = None
    ) -> AsyncIterator[str]:
        """Stream text deltas; the matched stop sequence is re-appended so the JSON stays closed."""
        stream = await self.client.messages.create(stream=True, **self._request(prompt, temperature, system))
        async for event in stream:
            if event.type == "content_block_delta" and event.delta.type == "text_delta":
                yield event.delta.text
            elif event.type == "message_delta":
                if event.delta.stop_reason == "stop_sequence" and event.delta.stop_sequence:
                    yield event.delta.stop_sequence
                elif event.delta.stop_reason == "max_tokens":
                    log.warning("Response hit max_tokens (%d), output is likely truncated", self.max_tokens)

    def name(self) -> str:
        return f"anthropic/{self.model}"
