from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.json"

DEFAULTS = {
    "llm_provider": "anthropic",
    "llm_model": "claude-sonnet-4-20250514",
    "ollama_url": "http://localhost:11434",
    "llm_temperature": 0.4,
    "max_tokens": 8000,
    "llm_timeout": 120.0,
    "max_attempts": 3,
    "batch_cap": 5,
    "answer_tolerance": 0.001,
}


@dataclass
class Settings:
    llm_provider: str = DEFAULTS["llm_provider"]
    llm_model: str = DEFAULTS["llm_model"]
    ollama_url: str = DEFAULTS["ollama_url"]
    llm_temperature: float = DEFAULTS["llm_temperature"]
    max_tokens: int = DEFAULTS["max_tokens"]
    llm_timeout: float = DEFAULTS["llm_timeout"]  # seconds per model call
    max_attempts: int = DEFAULTS["max_attempts"]
    batch_cap: int = DEFAULTS["batch_cap"]
    answer_tolerance: float = DEFAULTS["answer_tolerance"]  # relative, for numeric answer matching

    def to_dict(self) -> dict:
        return {
            "llm_provider": self.llm_provider,
            "llm_model": self.llm_model,
            "ollama_url": self.ollama_url,
            "llm_temperature": self.llm_temperature,
            "max_tokens": self.max_tokens,
            "llm_timeout": self.llm_timeout,
            "max_attempts": self.max_attempts,
            "batch_cap": self.batch_cap,
            "answer_tolerance": self.answer_tolerance,
        }


def load_settings() -> Settings:
    if CONFIG_PATH.exists():
        raw = json.loads(CONFIG_PATH.read_text())
        known = {f.name for f in Settings.__dataclass_fields__.values()}
        filtered = {k: v for k, v in raw.items() if k in known}
        return Settings(**filtered)
    return Settings()


def save_settings(settings: Settings) -> None:
    CONFIG_PATH.write_text(json.dumps(settings.to_dict(), indent=4) + "\n")


def coerce_setting(name: str, value):
    """Convert *value* to the type of setting *name*, raising ``ValueError`` if it does not fit."""
    expected = type(DEFAULTS[name])
    if value is None or isinstance(value, bool):
        raise ValueError(f"Invalid value for {name}: {value!r}")
    if expected is str:
        if not isinstance(value, str):
            raise ValueError(f"{name} must be a string")
        return value
    if expected is int and isinstance(value, float) and not value.is_integer():
        raise ValueError(f"{name} must be a whole number")
    try:
        return expected(value)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid value for {name}: {value!r}") from None


def update_settings(settings: Settings, changes: dict) -> Settings:
    """Apply known keys from *changes*; nothing is applied if any value is invalid."""
    coerced = {k: coerce_setting(k, v) for k, v in changes.items() if k in DEFAULTS}
    for k, v in coerced.items():
        setattr(settings, k, v)
    return settings
