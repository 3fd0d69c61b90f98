"""Comparable answer values.

Model options and solver answers come as loosely formatted strings
("3/4", "(2, -1)", "2 and 3", "x = 5", "$24").  ``normalize_answer`` maps
each into one of a small closed set of variants, and
``find_matching_option`` compares the solver's answer against every option:

  Scalar    plain number, also "x = 5" assignments
  Fraction  "a/b", compared by decimal value
  Pair      coordinate pair "(a, b)", compared with parens/whitespace stripped
  RootSet   "r1 and r2", compared as an unordered pair
  Text      anything else: a variable expression in compact form, or the
            first numeric token, compared as a string
"""
from __future__ import annotations

import math
import re
from dataclasses import dataclass

from math_quiz.models import OPTION_KEYS

DEFAULT_TOLERANCE = 0.001

_NUMBER = r"[+-]?\d+(?:\.\d+)?"
_NUMBER_TOKEN = re.compile(r"-?\d+(?:\.\d+)?")
_FRACTION = re.compile(r"^([+-]?\d+)\s*/\s*(\d+)$")
_ASSIGNMENT = re.compile(rf"^[a-z]\s*=\s*({_NUMBER})$", re.IGNORECASE)
_PAIR = re.compile(r"^\(.*,.*\)$")
_VARIABLE = re.compile(r"[xy]", re.IGNORECASE)


def format_number(value: float) -> str:
    """Render a number rounded to 4 decimals, integers without a trailing ``.0``."""
    rounded = round(float(value), 4)
    if rounded == int(rounded):
        return str(int(rounded))
    return str(rounded)


@dataclass(frozen=True)
class Scalar:
    value: float

    @property
    def key(self) -> str:
        return format_number(self.value)

    def as_number(self) -> float | None:
        return self.value


@dataclass(frozen=True)
class Fraction:
    numerator: int
    denominator: int

    @property
    def key(self) -> str:
        return format_number(self.numerator / self.denominator)

    def as_number(self) -> float | None:
        return self.numerator / self.denominator


@dataclass(frozen=True)
class Pair:
    text: str

    @property
    def key(self) -> str:
        return re.sub(r"[()\s]", "", self.text)

    def as_number(self) -> float | None:
        return None


@dataclass(frozen=True)
class RootSet:
    roots: frozenset[str]

    @property
    def key(self) -> frozenset[str]:
        return self.roots

    def as_number(self) -> float | None:
        return None


@dataclass(frozen=True)
class Text:
    token: str

    @property
    def key(self) -> str:
        return self.token

    def as_number(self) -> float | None:
        try:
            return float(self.token)
        except ValueError:
            return None


Answer = Scalar | Fraction | Pair | RootSet | Text


@dataclass(frozen=True)
class OptionMatch:
    option: str
    confidence: float


def _parse_roots(text: str) -> RootSet | None:
    parts = [p.strip() for p in re.split(r"\s+and\s+", text)]
    if len(parts) != 2:
        return None
    roots = []
    for part in parts:
        numbers = _NUMBER_TOKEN.findall(part)
        if len(numbers) != 1:
            return None
        roots.append(format_number(float(numbers[0])))
    # frozenset collapses a double root; keep it distinguishable from a single value
    if roots[0] == roots[1]:
        return RootSet(frozenset({roots[0], roots[0] + "*2"}))
    return RootSet(frozenset(roots))


def normalize_answer(value) -> Answer:
    if isinstance(value, bool):
        return Text(str(value).lower())
    if isinstance(value, (int, float)):
        return Scalar(float(value))
    if not isinstance(value, str):
        return Text("")

    text = value.strip()

    m = _FRACTION.match(text)
    if m and int(m.group(2)) != 0:
        return Fraction(int(m.group(1)), int(m.group(2)))

    if " and " in text:
        roots = _parse_roots(text)
        if roots is not None:
            return roots

    m = _ASSIGNMENT.match(text)
    if m:
        return Scalar(float(m.group(1)))

    if _PAIR.match(text):
        return Pair(text)

    if _VARIABLE.search(text):
        return Text(re.sub(r"\s+", "", text.lower()))

    try:
        number = float(text)
    except ValueError:
        pass
    else:
        if math.isfinite(number):
            return Scalar(number)

    m = _NUMBER_TOKEN.search(text)
    return Text(m.group(0) if m else text.lower())


def answers_match(calculated: Answer, option: Answer, tolerance: float = DEFAULT_TOLERANCE) -> float | None:
    """Return a confidence in (0, 1] if the two answers agree, else ``None``."""
    calc_num = calculated.as_number()
    opt_num = option.as_number()
    if calc_num is not None and opt_num is not None:
        if calc_num == opt_num or format_number(calc_num) == format_number(opt_num):
            return 1.0
        if abs(calc_num - opt_num) <= max(abs(calc_num) * tolerance, tolerance):
            return 0.9
        return None
    if type(calculated) is type(option) and calculated.key == option.key:
        return 1.0
    return None


def find_matching_option(
    calculated,
    options: dict[str, str],
    tolerance: float = DEFAULT_TOLERANCE,
) -> OptionMatch | None:
    """Find the option letter whose value equals the calculated answer.

    Exact matches win over tolerance matches regardless of letter order.
    """
    if calculated is None:
        return None
    target = normalize_answer(calculated)
    best: OptionMatch | None = None
    for letter in OPTION_KEYS:
        if letter not in options:
            continue
        confidence = answers_match(target, normalize_answer(options[letter]), tolerance)
        if confidence is None:
            continue
        if confidence == 1.0:
            return OptionMatch(letter, confidence)
        if best is None:
            best = OptionMatch(letter, confidence)
    return best
