"""Tests for response extraction, JSON sanitizing and the fallback parse chain."""
from __future__ import annotations

import json

import pytest

from math_quiz.parsers.fallback_parser import (
    ResponseParseError,
    parse_sanitized,
    parse_with_fallbacks,
    patch_notation,
)
from math_quiz.parsers.json_sanitizer import sanitize_json
from math_quiz.parsers.response_extractor import (
    extract_json_payload,
    find_balanced_object,
    strip_code_fence,
)

QUIZ = {
    "quiz": {
        "selectedClasses": ["Algebra I"],
        "difficulty": "easy",
        "questions": [
            {
                "id": 1,
                "question": "What is 2 + 2 * 3?",
                "options": {"A": "6", "B": "8", "C": "10", "D": "2"},
                "correctAnswer": "B",
                "explanation": "Multiply first: 2 * 3 = 6, then 2 + 6 = 8.",
                "topic": "Order of Operations",
            }
        ],
    }
}


class TestStripCodeFence:
    def test_json_fence(self):
        assert strip_code_fence('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_bare_fence(self):
        assert strip_code_fence('```\n{"a": 1}\n```') == '{"a": 1}'

    def test_no_fence(self):
        assert strip_code_fence('{"a": 1}') == '{"a": 1}'


class TestExtractJsonPayload:
    def test_fence_with_chatter(self):
        payload = json.dumps(QUIZ)
        text = f"Here is your quiz: ```json {payload} ``` Hope that helps!"
        assert extract_json_payload(text) == payload

    def test_small_object_with_chatter(self):
        text = 'Here is your quiz: ```json {"quiz":{"questions":[]}} ``` Hope that helps!'
        assert extract_json_payload(text) == '{"quiz":{"questions":[]}}'

    def test_fenced_response(self):
        payload = json.dumps(QUIZ, indent=2)
        assert extract_json_payload(f"```json\n{payload}\n```") == payload

    def test_bare_object(self):
        payload = json.dumps(QUIZ)
        assert extract_json_payload(payload) == payload

    def test_think_block_removed(self):
        payload = json.dumps(QUIZ)
        text = '<think>draft: {"quiz": "nope"}</think>\n' + payload
        assert extract_json_payload(text) == payload

    def test_no_json_returns_trimmed_input(self):
        assert extract_json_payload("  sorry, I cannot help  ") == "sorry, I cannot help"


class TestFindBalancedObject:
    def test_nested(self):
        text = 'noise {"outer": {"quiz": {"b": {"c": 1}}}} trailing'
        assert find_balanced_object(text) == '{"quiz": {"b": {"c": 1}}}'

    def test_missing_key(self):
        assert find_balanced_object('{"a": 1}') is None

    def test_unbalanced(self):
        assert find_balanced_object('{"quiz": {"b": 1}') is None


class TestSanitizeJson:
    @pytest.mark.parametrize("indent", [None, 2])
    def test_valid_json_is_preserved(self, indent):
        data = {
            "quiz": {
                "questions": [{
                    "question": 'What does "slope" mean?',
                    "explanation": "line one\nline two\twith tab and \\frac{1}{2} and x²",
                }]
            }
        }
        text = json.dumps(data, indent=indent)
        assert json.loads(sanitize_json(text)) == data

    def test_sanitize_is_stable(self):
        text = json.dumps(QUIZ)
        once = sanitize_json(text)
        assert sanitize_json(once) == once

    def test_unescaped_inner_quotes(self):
        text = '{"question": "What does "slope" mean?", "explanation": "ok"}'
        assert json.loads(sanitize_json(text))["question"] == 'What does "slope" mean?'

    def test_raw_newline_in_string(self):
        text = '{"explanation": "Step 1: factor.\nStep 2: solve."}'
        assert json.loads(sanitize_json(text))["explanation"] == "Step 1: factor.\nStep 2: solve."

    def test_latex_backslash(self):
        text = r'{"explanation": "Use \frac{1}{2} and \sqrt{4}"}'
        assert json.loads(sanitize_json(text))["explanation"] == r"Use \frac{1}{2} and \sqrt{4}"

    def test_raw_tab(self):
        text = '{"explanation": "a\tb"}'
        assert json.loads(sanitize_json(text))["explanation"] == "a\tb"

    def test_unicode_escape_kept(self):
        text = '{"explanation": "x\\u00b2"}'
        assert json.loads(sanitize_json(text))["explanation"] == "x²"

    def test_never_raises(self):
        assert isinstance(sanitize_json('{"unterminated": "abc'), str)


class TestPatchNotation:
    def test_log_base(self):
        assert "log_2(8)" in patch_notation('{"q": "log2(8)"}')

    def test_power(self):
        assert "x^2" in patch_notation('{"q": "x2 + 1"}')

    def test_trims_outside_braces(self):
        assert patch_notation('junk {"a": 1} junk') == '{"a": 1}'


class TestParseWithFallbacks:
    def test_strict(self):
        assert parse_with_fallbacks(json.dumps(QUIZ)) == QUIZ

    def test_trailing_comma_uses_lenient_parser(self):
        data = parse_with_fallbacks('{"quiz": {"questions": [1, 2,],}}')
        assert data == {"quiz": {"questions": [1, 2]}}

    def test_fenced_with_stray_quotes(self):
        text = (
            '```json\n'
            '{"quiz": {"questions": [{"question": "Simplify "x + x"", "explanation": "Combine like terms."}]}}\n'
            '```'
        )
        data = parse_with_fallbacks(text)
        assert data["quiz"]["questions"][0]["question"] == 'Simplify "x + x"'

    def test_stray_brace_in_prose(self):
        text = f"Sets are written like {{1, 2}} in class. {json.dumps(QUIZ)} Enjoy the quiz!"
        assert parse_with_fallbacks(text) == QUIZ

    def test_failure_carries_sample(self):
        with pytest.raises(ResponseParseError) as exc:
            parse_with_fallbacks("definitely not json")
        assert exc.value.sample == "definitely not json"
        assert "definitely not json" in str(exc.value)

    def test_sample_truncated(self):
        with pytest.raises(ResponseParseError) as exc:
            parse_with_fallbacks("x" * 2000)
        assert len(exc.value.sample) == 500

    def test_failure_context_around_error(self):
        with pytest.raises(ResponseParseError) as exc:
            parse_sanitized('{"quiz": {"questions": [1 2]}}')
        assert exc.value.context is not None
        assert "[1 2]" in exc.value.context

    def test_parse_error_is_value_error(self):
        with pytest.raises(ValueError):
            parse_with_fallbacks("{")
