"""Shared test fixtures."""
from __future__ import annotations

import json

import pytest

from math_quiz.models import Question
from math_quiz.providers.base import LLMProvider


class FakeLLM(LLMProvider):
    """Returns canned responses in order, repeating the last one.

    A response that is an exception instance is raised instead of returned.
    """

    def __init__(self, responses=None):
        self._responses = responses or [""]
        self._call_count = 0
        self.prompts: list[str] = []
        self.systems: list[str | None] = []

    async def generate(self, prompt: str, temperature: float = 0.4, system: str | None = None) -> str:
        self.prompts.append(prompt)
        self.systems.append(system)
        idx = min(self._call_count, len(self._responses) - 1)
        self._call_count += 1
        response = self._responses[idx]
        if isinstance(response, Exception):
            raise response
        return response

    def name(self) -> str:
        return "fake-llm"

    @property
    def call_count(self):
        return self._call_count


def question_dict(
    question: str = "What is 12 + 8 * 2?",
    options: dict | None = None,
    correct: str = "A",
    explanation: str = "Multiply first: 8 * 2 = 16, then 12 + 16 = 28.",
    topic: str = "Order of Operations",
    math_class: str = "Algebra I",
) -> dict:
    return {
        "id": 1,
        "question": question,
        "options": options if options is not None else {"A": "28", "B": "40", "C": "32", "D": "24"},
        "correctAnswer": correct,
        "explanation": explanation,
        "topic": topic,
        "mathClass": math_class,
    }


def quiz_response(questions: list[dict], classes=("Algebra I",), difficulty: str = "easy") -> str:
    return json.dumps({
        "quiz": {
            "selectedClasses": list(classes),
            "difficulty": difficulty,
            "questions": questions,
        }
    }, indent=2)


@pytest.fixture
def valid_question_dict():
    """A simple arithmetic question whose marked answer is right."""
    return question_dict()


@pytest.fixture
def miskeyed_question_dict():
    """The model marked B, but 12 + 8 * 2 = 28 is option A."""
    return question_dict(correct="B", explanation="Add first: 12 + 8 = 20, then 20 * 2 = 40.")


@pytest.fixture
def complex_question_dict():
    """A question no solver recognizes."""
    return question_dict(
        question="Which value is equal to sin^2(t) + cos^2(t) for every angle t?",
        options={"A": "1", "B": "0", "C": "2", "D": "-1"},
        correct="A",
        explanation="By the Pythagorean identity, sin^2(t) + cos^2(t) = 1.",
        topic="Identities",
        math_class="Trigonometry",
    )


@pytest.fixture
def broken_question_dict():
    """Missing option D, so it fails the structural check."""
    return question_dict(options={"A": "28", "B": "40", "C": "32"})


@pytest.fixture
def sample_question(valid_question_dict):
    return Question.from_dict(valid_question_dict, 1)
