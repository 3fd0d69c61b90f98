"""Strip self-correction chatter that models leave in explanations."""
from __future__ import annotations

import re

_CHATTER = tuple(re.compile(p, re.IGNORECASE) for p in (
    r"Wait, let me recalculate[^.]*\.",
    r"Let me try again[^.]*\.",
    r"Actually, let me [^.]*\.",
    r"Let me check[^.]*\.",
    r"Let me verify[^.]*\.",
    r"I keep getting[^.]*\.",
    r"I consistently get[^.]*\.",
    r"This doesn't match[^.]*\.",
    r"Still doesn't match[^.]*\.",
    r"Since.*isn't an option[^.]*\.",
    r"But.*isn't an option[^.]*\.",
    r"Given the options[^.]*\.",
    r"There might be[^.]*\.",
    r"I'll.*with[^.]*\.",
    r"Wait,[^.]*\.",
    r"Actually,[^.]*\.",
    r"Let me try once more[^.]*\.",
    r"Once more with[^.]*\.",
    r"Based on.*constraints[^.]*\.",
    r"Given the.*problem[^.]*\.",
    r"Since this.*typo[^.]*\.",
))

# a sentence containing any of these ends the usable part of the explanation
_STOP_MARKERS = ("wait", "actually", "let me", "doesn't match", "recalculate")


def clean_explanation(text):
    """Remove "Wait, let me recalculate..." style chatter from *text*.

    Non-string or empty input is returned unchanged.  If cleaning leaves
    10 characters or fewer, the regex-cleaned text is returned instead.
    """
    if not text or not isinstance(text, str):
        return text

    cleaned = text
    for pattern in _CHATTER:
        cleaned = pattern.sub("", cleaned)
    cleaned = re.sub(r"\s+", " ", cleaned)
    cleaned = re.sub(r"\.\s*\.", ".", cleaned).strip()

    kept = []
    for sentence in re.split(r"\.\s+", cleaned):
        lowered = sentence.lower()
        if any(marker in lowered for marker in _STOP_MARKERS):
            break
        kept.append(sentence)

    result = ". ".join(kept).strip()
    if len(result) <= 10:
        return cleaned
    return result if result.endswith(".") else result + "."
