"""Grade student answers against a quiz."""
from __future__ import annotations

from math_quiz.models import GradedAnswer, GradeResult, Question, Quiz

NO_EXPLANATION = "No explanation provided."


def _questions(quiz) -> list[dict]:
    if isinstance(quiz, Quiz):
        return [q.to_dict() for q in quiz.questions]
    if isinstance(quiz, dict):
        if isinstance(quiz.get("quiz"), dict):
            quiz = quiz["quiz"]
        questions = quiz.get("questions")
        if isinstance(questions, list):
            return [q.to_dict() if isinstance(q, Question) else q for q in questions if isinstance(q, (dict, Question))]
        return []
    raise TypeError(f"Cannot grade {type(quiz).__name__}")


def percentage(score: int, total: int) -> int:
    """Whole-number percentage, halves rounded up; 0 for an empty quiz."""
    if total <= 0:
        return 0
    return (200 * score + total) // (2 * total)


def grade_quiz(quiz, student_answers: list | None) -> GradeResult:
    questions = _questions(quiz)
    answers = list(student_answers or [])
    results = []
    score = 0
    for i, q in enumerate(questions):
        answer = answers[i] if i < len(answers) else None
        correct_answer = q.get("correctAnswer", "")
        is_correct = answer is not None and answer == correct_answer
        if is_correct:
            score += 1
        results.append(GradedAnswer(
            question_id=q.get("id"),
            correct=is_correct,
            student_answer=answer,
            correct_answer=correct_answer,
            explanation=q.get("explanation") or NO_EXPLANATION,
        ))
    return GradeResult(score=score, total=len(questions), percentage=percentage(score, len(questions)),
                       results=results)
