from __future__ import annotations

import os
from collections.abc import AsyncIterator

from math_quiz.providers.base import LLMProvider


class OpenAIProvider(LLMProvider):
    def __init__(self, model: str = "gpt-4o-mini", max_tokens: int = 8000):
        import openai
        self.client = openai.AsyncOpenAI(
            api_key=os.environ.get("OPENAI_API_KEY", ""),
        )
        self.model = model
        self.max_tokens = max_tokens

    @staticmethod
    def _messages(prompt: str, system: str | None) -> list[dict]:
        messages = [{"role": "system", "content": system}] if system else []
        messages.append({"role": "user", "content": prompt})
        return messages

    async def generate(self, prompt: str, temperature: float = 0.4, system: str | None = None) -> str:
        resp = await self.client.chat.completions.create(
            model=self.model,
            temperature=temperature,
            max_tokens=self.max_tokens,
            messages=self._messages(prompt, system),
        )
        return resp.choices[0].message.content or ""

    async def generate_stream(
        self, prompt: str, temperature: float = 0.4, system: str | None = None
    ) -> AsyncIterator[str]:
        stream = await self.client.chat.completions.create(
            model=self.model,
            temperature=temperature,
            max_tokens=self.max_tokens,
            messages=self._messages(prompt, system),
            stream=True,
        )
        async for chunk in stream:
            if chunk.choices and chunk.choices[0].delta.content:
                yield chunk.choices[0].delta.content

    def name(self) -> str:
        return f"openai/{self.model}"
