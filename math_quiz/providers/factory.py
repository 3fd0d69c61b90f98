from __future__ import annotations

from typing import TYPE_CHECKING

from math_quiz.providers.base import LLMProvider

if TYPE_CHECKING:
    from math_quiz.config import Settings

PROVIDERS = ("anthropic", "openai", "ollama")


def get_llm(settings: Settings) -> LLMProvider:
    if settings.llm_provider == "ollama":
        from math_quiz.providers.llm_ollama import OllamaProvider
        return OllamaProvider(
            base_url=settings.ollama_url,
            model=settings.llm_model,
            max_tokens=settings.max_tokens,
            timeout=settings.llm_timeout,
        )
    elif settings.llm_provider == "anthropic":
        from math_quiz.providers.llm_anthropic import AnthropicProvider
        return AnthropicProvider(model=settings.llm_model, max_tokens=settings.max_tokens)
    elif settings.llm_provider == "openai":
        from math_quiz.providers.llm_openai import OpenAIProvider
        return OpenAIProvider(model=settings.llm_model, max_tokens=settings.max_tokens)
    raise ValueError(f"Unknown LLM provider: {settings.llm_provider}")
