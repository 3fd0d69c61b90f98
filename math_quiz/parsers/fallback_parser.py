"""Parse a raw LLM response into the quiz object, trying looser parsers in turn."""
from __future__ import annotations

import json
import logging
import re
from collections.abc import Callable

import json5

from math_quiz.parsers.json_sanitizer import sanitize_json
from math_quiz.parsers.response_extractor import extract_json_payload, find_balanced_object

_log = logging.getLogger("math_quiz.parse")

SAMPLE_CHARS = 500
CONTEXT_CHARS = 100

_QUIZ_SPAN = re.compile(r'\{[\s\S]*"quiz"[\s\S]*\}')


class ResponseParseError(ValueError):
    """Every parse strategy failed.  Carries enough context to diagnose format drift."""

    def __init__(self, message: str, sample: str = "", context: str | None = None):
        super().__init__(message)
        self.sample = sample
        self.context = context


def _parse_strict(text: str):
    return json.loads(text)


def _parse_lenient(text: str):
    return json5.loads(text)


def _parse_quiz_span(text: str):
    m = _QUIZ_SPAN.search(text)
    if m is None:
        raise ValueError("no quiz object in sanitized text")
    return json.loads(m.group(0))


def _parse_balanced(text: str):
    # the greedy span can start at a stray brace in prose ahead of the payload
    span = find_balanced_object(text)
    if span is None:
        raise ValueError("no balanced quiz object in sanitized text")
    return json.loads(span)


def patch_notation(text: str) -> str:
    """Rewrite notation that tends to trip parsing, then re-escape and trim to the object."""
    fixed = re.sub(r"log(\d+)\(([^)]+)\)", r"log_\1(\2)", text)
    fixed = re.sub(r"x(\d+)", r"x^\1", fixed)
    fixed = sanitize_json(fixed)
    fixed = re.sub(r"\A[^{]*", "", fixed)
    return re.sub(r"[^}]*\Z", "", fixed)


def _parse_patched(text: str):
    return json.loads(patch_notation(text))


STRATEGIES: tuple[tuple[str, Callable[[str], object]], ...] = (
    ("json", _parse_strict),
    ("json5", _parse_lenient),
    ("quiz-span", _parse_quiz_span),
    ("balanced", _parse_balanced),
    ("patched", _parse_patched),
)


def _error_context(error: Exception, text: str) -> str | None:
    if isinstance(error, json.JSONDecodeError):
        pos = error.pos
        return text[max(0, pos - CONTEXT_CHARS) : pos + CONTEXT_CHARS]
    return None


def parse_sanitized(sanitized: str, original: str | None = None):
    """Run the strategy chain over already-sanitized text."""
    original = sanitized if original is None else original
    last_error: Exception | None = None
    for name, strategy in STRATEGIES:
        try:
            data = strategy(sanitized)
        except Exception as e:  # each tier fails in its own way (JSONDecodeError, ValueError, ...)
            _log.info("Parse strategy %s failed: %s", name, e)
            last_error = e
            continue
        _log.info("Parsed response with %s", name)
        return data

    sample = original[:SAMPLE_CHARS]
    context = _error_context(last_error, patch_notation(sanitized)) if last_error else None
    _log.error("All parsing strategies failed")
    _log.error("Original content sample: %s", sample)
    message = f"Failed to parse AI response as JSON after all attempts. Original error: {last_error}"
    message += f"\nContent sample: {sample!r}"
    if context is not None:
        _log.error("Context around error position: %s", context)
        message += f"\nContext around error position: {context!r}"
    raise ResponseParseError(message, sample=sample, context=context)


def parse_with_fallbacks(content: str):
    """Extract, sanitize and parse an LLM response.

    Raises ``ResponseParseError`` if every strategy fails.
    """
    extracted = extract_json_payload(content)
    sanitized = sanitize_json(extracted)
    return parse_sanitized(sanitized, original=content)
