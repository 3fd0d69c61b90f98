"""Orchestrate the LLM to generate a validated multiple-choice math quiz."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from math_quiz.config import Settings
from math_quiz.explanations import clean_explanation
from math_quiz.models import DIFFICULTIES, Correction, Question, Quiz, ValidationResult
from math_quiz.parsers.fallback_parser import ResponseParseError, parse_with_fallbacks
from math_quiz.prompts import MATH_CLASSES, build_quiz_prompt, build_system_prompt
from math_quiz.validator import QuestionValidator, corrected_explanation

if TYPE_CHECKING:
    from math_quiz.providers.base import LLMProvider

_log = logging.getLogger("math_quiz.qgen")
_corrections_log = logging.getLogger("math_quiz.corrections")

MAX_ATTEMPTS = 3
BATCH_CAP = 5
MAX_CLASSES = 5
MAX_QUESTIONS = 10

NO_QUESTIONS_MESSAGE = "No valid questions could be generated. Please try again."
CORRECTION_REASON = "Math validation correction with explanation fix"
JSON_FEEDBACK = "Your response did not contain valid JSON. Respond with ONLY a JSON object, no other text."


class QuizInputError(ValueError):
    """The request itself is invalid; no model call was made."""


class QuizGenerationError(RuntimeError):
    """Every attempt finished without a single acceptable question."""


def check_request(selected_classes, num_questions, difficulty) -> None:
    """Raise ``QuizInputError`` with a user-facing message if the request is invalid."""
    if (
        not isinstance(selected_classes, (list, tuple))
        or not 1 <= len(selected_classes) <= MAX_CLASSES
        or not all(isinstance(c, str) and c in MATH_CLASSES for c in selected_classes)
    ):
        raise QuizInputError("Please select 1-5 valid math classes.")
    if isinstance(num_questions, bool) or not isinstance(num_questions, int) or not 1 <= num_questions <= MAX_QUESTIONS:
        raise QuizInputError("Number of questions must be a positive number between 1 and 10.")
    if difficulty not in DIFFICULTIES:
        raise QuizInputError("Difficulty must be 'easy', 'medium', or 'hard'.")


@dataclass
class _Accumulator:
    target: int
    accepted: list[Question] = field(default_factory=list)
    corrections: list[Correction] = field(default_factory=list)

    @property
    def remaining(self) -> int:
        return self.target - len(self.accepted)

    @property
    def done(self) -> bool:
        return self.remaining <= 0


async def _complete(llm: LLMProvider, prompt: str, system: str, temperature: float, timeout: float) -> str:
    """Buffer the whole streamed response, giving up after *timeout* seconds."""

    async def collect() -> str:
        chunks = []
        async for chunk in llm.generate_stream(prompt, temperature, system=system):
            chunks.append(chunk)
        return "".join(chunks)

    return await asyncio.wait_for(collect(), timeout)


def _raw_questions(data) -> list:
    quiz = data.get("quiz") if isinstance(data, dict) else None
    questions = quiz.get("questions") if isinstance(quiz, dict) else None
    return questions if isinstance(questions, list) else []


def _accept(question: Question, validation: ValidationResult, acc: _Accumulator) -> None:
    """Append *question* to the quiz, applying any answer correction."""
    position = len(acc.accepted) + 1
    letter = question.correct_answer
    explanation = question.explanation

    if validation.corrected_answer:
        letter = validation.corrected_answer
        explanation = corrected_explanation(question, validation.solution, letter)
        correction = Correction(
            question_id=position,
            original=question.correct_answer,
            corrected=letter,
            reason=CORRECTION_REASON,
        )
        acc.corrections.append(correction)
        _corrections_log.info("Q%d: %s -> %s (%s)", position, correction.original, correction.corrected,
                              validation.solution.method if validation.solution else "unknown")

    acc.accepted.append(Question(
        id=position,
        question=question.question,
        options=dict(question.options),
        correct_answer=letter,
        explanation=clean_explanation(explanation),
        topic=question.topic,
        math_class=question.math_class,
    ))


def _collect(data, acc: _Accumulator, validator: QuestionValidator) -> None:
    for position, raw in enumerate(_raw_questions(data), 1):
        if acc.done:
            break
        question = Question.from_dict(raw, position)
        _log.info("  Validating: %.50r", question.question)
        validation = validator.validate(question)
        if not validation.is_valid:
            _log.info("  Rejected (score: %d): %s", validation.score, ", ".join(validation.issues))
            continue
        _accept(question, validation, acc)
        _log.info("  Accepted (score: %d)", validation.score)


async def generate_quiz(
    llm: LLMProvider,
    selected_classes: list[str],
    num_questions: int,
    difficulty: str,
    settings: Settings | None = None,
) -> Quiz:
    """Generate up to *num_questions* validated questions.

    Each attempt asks the model for a batch, parses it with the fallback
    chain and keeps the questions that pass validation.  Failed attempts
    (timeouts, provider errors, unparseable output) are logged and the next
    attempt runs.  Returns a partial quiz if attempts run out after at least
    one question was accepted; raises ``QuizGenerationError`` if none was.
    """
    check_request(selected_classes, num_questions, difficulty)
    settings = settings or Settings()
    classes = list(selected_classes)
    validator = QuestionValidator(tolerance=settings.answer_tolerance)
    system = build_system_prompt(difficulty)
    acc = _Accumulator(target=num_questions)
    max_attempts = settings.max_attempts or MAX_ATTEMPTS
    batch_cap = settings.batch_cap or BATCH_CAP

    _log.info("Generating %d %s questions from classes: %s", num_questions, difficulty, ", ".join(classes))
    feedback = ""
    for attempt in range(1, max_attempts + 1):
        if acc.done:
            break
        batch = min(batch_cap, acc.remaining * 2)
        prompt = build_quiz_prompt(classes, difficulty, batch)
        if feedback:
            prompt += "\n\n" + feedback
        feedback = ""

        _log.info("Attempt %d/%d: requesting %d questions from %s", attempt, max_attempts, batch, llm.name())
        try:
            content = await _complete(llm, prompt, system, settings.llm_temperature, settings.llm_timeout)
            if not content:
                _log.warning("  Attempt %d: empty response", attempt)
                continue
            _log.debug("  Raw response length: %d", len(content))
            data = parse_with_fallbacks(content)
        except ResponseParseError as e:
            _log.warning("  Attempt %d: unparseable response, feeding back", attempt)
            _log.debug("  %s", e)
            feedback = JSON_FEEDBACK
            continue
        except asyncio.TimeoutError:
            _log.warning("  Attempt %d: model call timed out after %.0fs", attempt, settings.llm_timeout)
            continue
        except Exception as e:
            _log.warning("  Attempt %d: model call failed: %s", attempt, e)
            continue

        _collect(data, acc, validator)

    if not acc.accepted:
        raise QuizGenerationError(NO_QUESTIONS_MESSAGE)

    quiz = Quiz(
        selected_classes=classes,
        difficulty=difficulty,
        questions=acc.accepted[:num_questions],
        requested=num_questions,
        corrections=acc.corrections,
    )
    if quiz.is_partial:
        _log.warning("Returning partial quiz: %d/%d questions", len(quiz.questions), num_questions)
    _log.info("Generated %d/%d questions, %d auto-corrections",
              len(quiz.questions), num_questions, len(quiz.corrections))
    return quiz
