from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator


class LLMProvider(ABC):
    @abstractmethod
    async def generate(self, prompt: str, temperature: float = 0.4, system: str | None = None) -> str:
        ...

    async def generate_stream(
        self, prompt: str, temperature: float = 0.4, system: str | None = None
    ) -> AsyncIterator[str]:
        """Stream response tokens. Default: yield full response at once."""
        result = await self.generate(prompt, temperature, system=system)
        yield result

    @abstractmethod
    def name(self) -> str:
        ...
