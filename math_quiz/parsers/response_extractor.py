"""Isolate the quiz JSON object from a raw LLM response.

Models wrap the payload in markdown fences, chat around it, or stop
mid-object.  ``extract_json_payload`` tries progressively looser
strategies and returns the first span that looks like the quiz object:

  1. strip a surrounding ``` fence (with or without a ``json`` tag)
  2. ``"quiz"``-anchored regexes, most permissive last
  3. first ``{`` .. last ``}``, if that span mentions ``"quiz"``
  4. brace counting from the ``{`` that opens the ``"quiz"`` object
  5. the trimmed input, so the parser fails loudly downstream
"""
from __future__ import annotations

import logging
import re

_log = logging.getLogger("math_quiz.parse")

QUIZ_KEY = '"quiz"'

_QUIZ_PATTERNS = (
    re.compile(r'\{[\s\S]*?"quiz"[\s\S]*?\}\s*\Z'),
    re.compile(r'\{(?:[^{}]|\{[^{}]*\})*"quiz"(?:[^{}]|\{[^{}]*\})*\}'),
    re.compile(r'\{[\s\S]*"quiz"[\s\S]*\}'),
)


def strip_code_fence(text: str) -> str:
    if text.startswith("```json"):
        text = re.sub(r"^```json\s*", "", text)
        return re.sub(r"\s*```\s*\Z", "", text)
    if text.startswith("```"):
        text = re.sub(r"^```\s*", "", text)
        return re.sub(r"\s*```\s*\Z", "", text)
    return text


def find_balanced_object(text: str, key: str = QUIZ_KEY) -> str | None:
    """Return the ``{…}`` span that encloses the first occurrence of *key*.

    Walks back to the nearest ``{`` before *key*, then forward counting
    brace depth until it returns to zero.  Unlike the regexes this copes
    with arbitrarily nested objects.
    """
    key_pos = text.find(key)
    if key_pos == -1:
        return None
    start = text.rfind("{", 0, key_pos + 1)
    if start == -1:
        return None

    depth = 0
    for i in range(start, len(text)):
        ch = text[i]
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start : i + 1]
    return None


def extract_json_payload(text: str) -> str:
    # <think> blocks from reasoning models can contain draft JSON
    cleaned = re.sub(r"<think>.*?</think>", "", text, flags=re.DOTALL).strip()
    cleaned = strip_code_fence(cleaned)

    for pattern in _QUIZ_PATTERNS:
        m = pattern.search(cleaned)
        if m:
            _log.debug("Found quiz JSON pattern in response")
            return m.group(0).strip()

    first = cleaned.find("{")
    last = cleaned.rfind("}")
    if first != -1 and last > first:
        candidate = cleaned[first : last + 1]
        if QUIZ_KEY in candidate:
            _log.debug("Extracted JSON by brace boundaries")
            return candidate

    balanced = find_balanced_object(cleaned)
    if balanced is not None:
        _log.debug("Extracted JSON by quiz keyword search")
        return balanced

    _log.debug("Could not extract JSON, returning original content")
    return cleaned
