"""Repair common structural JSON defects in LLM output before parsing."""
from __future__ import annotations

import logging
import re

_log = logging.getLogger("math_quiz.parse")

# Escapes kept as-is inside strings.  Everything else after a backslash is
# treated as a literal backslash (LaTeX such as \frac, \sqrt, \beta).
_KEPT_ESCAPES = {'"', "\\", "n", "t"}
_UNICODE_ESCAPE = re.compile(r"u[0-9a-fA-F]{4}")
_STRUCTURAL = {",", "}", "]", ":"}


def _closes_string(line: str, j: int) -> bool:
    """True if the quote at ``line[j]`` ends the current string literal.

    A quote closes the string when the next non-blank character on the line
    is JSON structure (or the line ends); any other quote is an embedded
    quote the model forgot to escape.
    """
    k = j + 1
    while k < len(line) and line[k] in " \t\r":
        k += 1
    return k == len(line) or line[k] in _STRUCTURAL


def _scan(content: str) -> str:
    lines = content.split("\n")
    out: list[str] = []
    in_string = False

    for i, line in enumerate(lines):
        buf: list[str] = []
        j = 0
        while j < len(line):
            ch = line[j]
            if not in_string:
                if ch == '"':
                    in_string = True
                buf.append(ch)
                j += 1
                continue

            if ch == "\\":
                nxt = line[j + 1] if j + 1 < len(line) else ""
                if nxt in _KEPT_ESCAPES or nxt == "/" or _UNICODE_ESCAPE.match(line, j + 1):
                    buf.append(ch + nxt)
                    j += 2
                else:
                    buf.append("\\\\")
                    j += 1
                continue

            if ch == '"':
                if _closes_string(line, j):
                    in_string = False
                    buf.append(ch)
                else:
                    buf.append('\\"')
            elif ch == "\t":
                buf.append("\\t")
            else:
                buf.append(ch)
            j += 1

        out.append("".join(buf))
        if i < len(lines) - 1:
            # JSON strings cannot span physical lines
            out.append("\\n" if in_string else "\n")

    return "".join(out)


def _regex_repair(content: str) -> str:
    content = re.sub(
        r'"explanation":\s*"([^"]*)"([^"]*)"([^"]*)"(?=\s*[,}])',
        r'"explanation": "\1\\"\2\\"\3"',
        content,
    )
    content = re.sub(
        r'"question":\s*"([^"]*)"([^"]*)"([^"]*)"(?=\s*[,}])',
        r'"question": "\1\\"\2\\"\3"',
        content,
    )
    content = re.sub(r'("(?:explanation|question)":\s*"[^"]*)\n([^"]*")', r"\1\\n\2", content)
    content = re.sub(
        r'("(?:explanation|question)":\s*"[^"]*(?:\\n[^"]*)*)\n\n+([^"]*")',
        r"\1\\n\\n\2",
        content,
    )
    content = content.replace("\t", "\\t")
    return re.sub(r",(\s*[}\]])", r"\1", content)


def sanitize_json(content: str) -> str:
    """Best-effort repair of a JSON-like string.  Never raises.

    The primary path is a single character scan that escapes stray quotes,
    invalid backslash escapes, raw tabs and line breaks inside string
    literals.  A narrower regex pass is used only if the scan fails.
    """
    cleaned = content.strip()
    try:
        return _scan(cleaned)
    except Exception as e:
        _log.info("Character scan failed (%s), trying regex repair", e)
        return _regex_repair(cleaned)
