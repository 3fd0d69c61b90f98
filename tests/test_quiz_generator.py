"""Tests for quiz generation (input checks, retry loop, corrections)."""
from __future__ import annotations

import asyncio
import logging

import pytest

from math_quiz.config import Settings
from math_quiz.providers.base import LLMProvider
from math_quiz.quiz_generator import (
    JSON_FEEDBACK,
    NO_QUESTIONS_MESSAGE,
    QuizGenerationError,
    QuizInputError,
    check_request,
    generate_quiz,
)

from conftest import FakeLLM, question_dict, quiz_response


def _valid(n: int) -> list[dict]:
    return [question_dict() for _ in range(n)]


class SlowLLM(LLMProvider):
    def __init__(self):
        self.calls = 0

    async def generate(self, prompt: str, temperature: float = 0.4, system: str | None = None) -> str:
        self.calls += 1
        await asyncio.sleep(5)
        return quiz_response(_valid(1))

    def name(self) -> str:
        return "slow-llm"


class TestCheckRequest:
    @pytest.mark.parametrize("classes", [[], ["Calculus"], ["Algebra I"] * 6, "Algebra I", None])
    def test_bad_classes(self, classes):
        with pytest.raises(QuizInputError, match="1-5 valid math classes"):
            check_request(classes, 3, "easy")

    @pytest.mark.parametrize("count", [0, 11, -1, 2.5, "3", True, None])
    def test_bad_count(self, count):
        with pytest.raises(QuizInputError, match="between 1 and 10"):
            check_request(["Geometry"], count, "easy")

    @pytest.mark.parametrize("difficulty", ["", "expert", "Easy", None])
    def test_bad_difficulty(self, difficulty):
        with pytest.raises(QuizInputError, match="easy"):
            check_request(["Geometry"], 3, difficulty)

    def test_valid(self):
        check_request(["Algebra I", "Geometry"], 10, "hard")


class TestGenerateQuiz:
    @pytest.mark.asyncio
    async def test_first_attempt_suffices(self):
        llm = FakeLLM([quiz_response(_valid(4))])
        quiz = await generate_quiz(llm, ["Algebra I"], 3, "easy")
        assert llm.call_count == 1
        assert len(quiz.questions) == 3
        assert [q.id for q in quiz.questions] == [1, 2, 3]
        assert not quiz.is_partial
        assert quiz.selected_classes == ["Algebra I"]
        assert quiz.difficulty == "easy"

    @pytest.mark.asyncio
    async def test_system_prompt_passed(self):
        llm = FakeLLM([quiz_response(_valid(1))])
        await generate_quiz(llm, ["Geometry"], 1, "hard")
        assert "hard difficulty" in llm.systems[0]

    @pytest.mark.asyncio
    async def test_exhaustion_raises(self, broken_question_dict):
        llm = FakeLLM([quiz_response([broken_question_dict] * 3)])
        with pytest.raises(QuizGenerationError, match=NO_QUESTIONS_MESSAGE):
            await generate_quiz(llm, ["Algebra I"], 2, "easy")
        assert llm.call_count == 3

    @pytest.mark.asyncio
    async def test_partial_quiz(self, broken_question_dict):
        llm = FakeLLM([quiz_response([question_dict(), broken_question_dict])])
        quiz = await generate_quiz(llm, ["Algebra I"], 5, "easy")
        assert llm.call_count == 3
        assert len(quiz.questions) == 3
        assert quiz.requested == 5
        assert quiz.is_partial

    @pytest.mark.asyncio
    async def test_batch_size_shrinks(self):
        llm = FakeLLM([quiz_response(_valid(1))])
        await generate_quiz(llm, ["Algebra I"], 2, "easy")
        assert llm.call_count == 2
        assert "quiz with 4 questions" in llm.prompts[0]
        assert "quiz with 2 questions" in llm.prompts[1]

    @pytest.mark.asyncio
    async def test_batch_capped(self):
        llm = FakeLLM([quiz_response(_valid(10))])
        await generate_quiz(llm, ["Algebra I"], 10, "easy")
        assert "quiz with 5 questions" in llm.prompts[0]

    @pytest.mark.asyncio
    async def test_settings_limit_attempts(self):
        llm = FakeLLM(["not json"])
        with pytest.raises(QuizGenerationError):
            await generate_quiz(llm, ["Algebra I"], 1, "easy", settings=Settings(max_attempts=2))
        assert llm.call_count == 2

    @pytest.mark.asyncio
    async def test_unparseable_response_feeds_back(self):
        llm = FakeLLM(["I cannot produce JSON today.", quiz_response(_valid(1))])
        quiz = await generate_quiz(llm, ["Algebra I"], 1, "easy")
        assert len(quiz.questions) == 1
        assert JSON_FEEDBACK not in llm.prompts[0]
        assert llm.prompts[1].endswith(JSON_FEEDBACK)

    @pytest.mark.asyncio
    async def test_provider_error_moves_to_next_attempt(self):
        llm = FakeLLM([RuntimeError("rate limited"), "", quiz_response(_valid(1))])
        quiz = await generate_quiz(llm, ["Algebra I"], 1, "easy")
        assert llm.call_count == 3
        assert len(quiz.questions) == 1

    @pytest.mark.asyncio
    async def test_missing_questions_array(self):
        llm = FakeLLM(['{"quiz": {"questions": "none"}}'])
        with pytest.raises(QuizGenerationError):
            await generate_quiz(llm, ["Algebra I"], 1, "easy")

    @pytest.mark.asyncio
    async def test_timeout(self):
        llm = SlowLLM()
        with pytest.raises(QuizGenerationError):
            await generate_quiz(llm, ["Algebra I"], 1, "easy", settings=Settings(llm_timeout=0.01))
        assert llm.calls == 3

    @pytest.mark.asyncio
    async def test_invalid_input_makes_no_call(self):
        llm = FakeLLM([quiz_response(_valid(1))])
        with pytest.raises(QuizInputError):
            await generate_quiz(llm, ["Algebra I"], 0, "easy")
        assert llm.call_count == 0


class TestCorrections:
    @pytest.mark.asyncio
    async def test_miskeyed_question_corrected(self, miskeyed_question_dict, caplog):
        llm = FakeLLM([quiz_response([miskeyed_question_dict])])
        with caplog.at_level(logging.INFO, logger="math_quiz.corrections"):
            quiz = await generate_quiz(llm, ["Algebra I"], 1, "easy")

        q = quiz.questions[0]
        assert q.correct_answer == "A"
        assert q.explanation == "Calculate the expression step by step: 12+8*2 = 28. The result is 28."
        assert len(quiz.corrections) == 1
        correction = quiz.corrections[0]
        assert (correction.question_id, correction.original, correction.corrected) == (1, "B", "A")
        assert "Q1: B -> A" in caplog.text

    @pytest.mark.asyncio
    async def test_corrections_not_serialized(self, miskeyed_question_dict):
        llm = FakeLLM([quiz_response([miskeyed_question_dict])])
        quiz = await generate_quiz(llm, ["Algebra I"], 1, "easy")
        assert "corrections" not in quiz.to_dict()["quiz"]

    @pytest.mark.asyncio
    async def test_explanations_cleaned(self):
        raw = question_dict(explanation="Multiply first to get 16, then add 12 to get 28. Wait, let me recheck.")
        llm = FakeLLM([quiz_response([raw])])
        quiz = await generate_quiz(llm, ["Algebra I"], 1, "easy")
        assert quiz.questions[0].explanation == "Multiply first to get 16, then add 12 to get 28."

    @pytest.mark.asyncio
    async def test_mixed_batch(self, complex_question_dict, broken_question_dict, miskeyed_question_dict):
        llm = FakeLLM([quiz_response([broken_question_dict, complex_question_dict, miskeyed_question_dict])])
        quiz = await generate_quiz(llm, ["Algebra I", "Trigonometry"], 2, "medium")
        assert llm.call_count == 1
        assert [q.id for q in quiz.questions] == [1, 2]
        assert quiz.questions[0].math_class == "Trigonometry"
        assert quiz.corrections[0].question_id == 2
