from __future__ import annotations

import json
import logging
import time
from collections.abc import AsyncIterator

import httpx

from math_quiz.providers.base import LLMProvider

log = logging.getLogger("math_quiz.llm")

THINK_OPEN = "<think>"
THINK_CLOSE = "</think>"


class OllamaProvider(LLMProvider):
    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        model: str = "qwen3:8b",
        max_tokens: int = 8000,
        timeout: float = 120.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.max_tokens = max_tokens
        self.timeout = timeout

    def _body(self, prompt: str, temperature: float, system: str | None, stream: bool) -> dict:
        body: dict = {
            "model": self.model,
            "prompt": prompt,
            "stream": stream,
            "options": {"temperature": temperature, "num_predict": self.max_tokens},
        }
        if system:
            body["system"] = system
        return body

    async def generate(self, prompt: str, temperature: float = 0.4, system: str | None = None) -> str:
        log.debug("── PROMPT (%s) ──\n%s", self.model, prompt)
        t0 = time.monotonic()
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            resp = await client.post(
                f"{self.base_url}/api/generate",
                json=self._body(prompt, temperature, system, stream=False),
            )
            resp.raise_for_status()
            data = resp.json()
        elapsed = time.monotonic() - t0
        response = data["response"]
        log.info("Ollama response (%.1fs, %s tokens)", elapsed, data.get("eval_count", "?"))
        return response

    async def generate_stream(
        self, prompt: str, temperature: float = 0.4, system: str | None = None
    ) -> AsyncIterator[str]:
        """Stream tokens from Ollama, stripping <think>...</think> blocks."""
        log.debug("── STREAM PROMPT (%s) ──\n%s", self.model, prompt)
        t0 = time.monotonic()
        buf = ""
        in_think = False

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            async with client.stream(
                "POST",
                f"{self.base_url}/api/generate",
                json=self._body(prompt, temperature, system, stream=True),
            ) as resp:
                resp.raise_for_status()
                async for line in resp.aiter_lines():
                    if not line.strip():
                        continue
                    token = json.loads(line).get("response", "")
                    if not token:
                        continue

                    buf += token

                    while True:
                        if in_think:
                            idx = buf.find(THINK_CLOSE)
                            if idx >= 0:
                                buf = buf[idx + len(THINK_CLOSE):]
                                in_think = False
                            else:
                                buf = ""
                                break
                        else:
                            idx = buf.find(THINK_OPEN)
                            if idx >= 0:
                                if idx > 0:
                                    yield buf[:idx]
                                buf = buf[idx + len(THINK_OPEN):]
                                in_think = True
                            else:
                                # Hold back a partial opening tag
                                keep = len(THINK_OPEN) - 1
                                if len(buf) > keep:
                                    yield buf[:-keep]
                                    buf = buf[-keep:]
                                break

        if buf and not in_think:
            yield buf

        log.info("Ollama stream complete (%.1fs)", time.monotonic() - t0)

    def name(self) -> str:
        return f"ollama/{self.model}"
