from __future__ import annotations

from dataclasses import dataclass, field

OPTION_KEYS = ("A", "B", "C", "D")
DIFFICULTIES = ("easy", "medium", "hard")


def _text(value) -> str:
    return value if isinstance(value, str) else ""


@dataclass
class Question:
    id: int
    question: str
    options: dict[str, str]
    correct_answer: str  # A | B | C | D, as claimed by the model until validated
    explanation: str
    topic: str = ""
    math_class: str = ""

    @classmethod
    def from_dict(cls, data: dict, position: int = 0) -> Question:
        """Build a Question from one entry of the model's ``questions`` array.

        Missing or ill-typed fields are kept as empty values so that the
        structural check reports them instead of this constructor raising.
        """
        if not isinstance(data, dict):
            data = {}
        raw_options = data.get("options")
        options = (
            {str(k): "" if v is None else str(v) for k, v in raw_options.items()}
            if isinstance(raw_options, dict) else {}
        )
        return cls(
            id=position,
            question=_text(data.get("question")),
            options=options,
            correct_answer=_text(data.get("correctAnswer", data.get("correct_answer"))).strip().upper(),
            explanation=_text(data.get("explanation")),
            topic=_text(data.get("topic")),
            math_class=_text(data.get("mathClass", data.get("math_class"))),
        )

    def to_dict(self) -> dict:
        d = {
            "id": self.id,
            "question": self.question,
            "options": dict(self.options),
            "correctAnswer": self.correct_answer,
            "explanation": self.explanation,
            "topic": self.topic,
        }
        if self.math_class:
            d["mathClass"] = self.math_class
        return d


@dataclass
class Solution:
    solved: bool
    answer: str | None
    method: str
    calculation: str = ""  # human-readable derivation

    @classmethod
    def unsolved(cls, method: str) -> Solution:
        return cls(solved=False, answer=None, method=method)


@dataclass
class ValidationResult:
    is_valid: bool
    issues: list[str]
    score: int
    corrected_answer: str | None = None
    solution: Solution | None = None


@dataclass
class Correction:
    question_id: int
    original: str
    corrected: str
    reason: str


@dataclass
class Quiz:
    selected_classes: list[str]
    difficulty: str
    questions: list[Question]
    requested: int = 0
    corrections: list[Correction] = field(default_factory=list)  # audit only, never serialized

    @property
    def is_partial(self) -> bool:
        return len(self.questions) < self.requested

    def to_dict(self) -> dict:
        return {
            "quiz": {
                "selectedClasses": list(self.selected_classes),
                "difficulty": self.difficulty,
                "questions": [q.to_dict() for q in self.questions],
            }
        }


@dataclass
class GradedAnswer:
    question_id: int | None
    correct: bool
    student_answer: str | None
    correct_answer: str
    explanation: str

    def to_dict(self) -> dict:
        return {
            "questionId": self.question_id,
            "correct": self.correct,
            "studentAnswer": self.student_answer,
            "correctAnswer": self.correct_answer,
            "explanation": self.explanation,
        }


@dataclass
class GradeResult:
    score: int
    total: int
    percentage: int
    results: list[GradedAnswer] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "score": self.score,
            "total": self.total,
            "percentage": self.percentage,
            "results": [r.to_dict() for r in self.results],
        }
