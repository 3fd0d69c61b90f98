"""Tests for data models."""
from __future__ import annotations

from math_quiz.models import Correction, Question, Quiz, Solution

from conftest import question_dict


class TestQuestion:
    def test_from_dict(self):
        q = Question.from_dict(question_dict(correct=" b "), 3)
        assert q.id == 3
        assert q.correct_answer == "B"
        assert q.options["D"] == "24"
        assert q.math_class == "Algebra I"

    def test_from_dict_snake_case(self):
        q = Question.from_dict({"question": "x", "correct_answer": "C", "math_class": "Geometry"})
        assert q.correct_answer == "C"
        assert q.math_class == "Geometry"

    def test_from_dict_tolerates_bad_types(self):
        q = Question.from_dict({"question": 5, "options": ["A", "B"], "correctAnswer": None})
        assert q.question == ""
        assert q.options == {}
        assert q.correct_answer == ""
        assert q.explanation == ""

    def test_from_dict_not_a_dict(self):
        q = Question.from_dict("garbage", 1)
        assert q.question == ""

    def test_numeric_options_become_text(self):
        q = Question.from_dict(question_dict(options={"A": 1, "B": 2.5, "C": None, "D": "4"}))
        assert q.options == {"A": "1", "B": "2.5", "C": "", "D": "4"}

    def test_to_dict(self):
        d = Question.from_dict(question_dict(), 1).to_dict()
        assert d["correctAnswer"] == "A"
        assert d["mathClass"] == "Algebra I"
        assert set(d) == {"id", "question", "options", "correctAnswer", "explanation", "topic", "mathClass"}

    def test_to_dict_omits_empty_math_class(self):
        d = Question.from_dict(question_dict(math_class=""), 1).to_dict()
        assert "mathClass" not in d


class TestSolution:
    def test_unsolved(self):
        s = Solution.unsolved("geometry")
        assert s.solved is False
        assert s.answer is None
        assert s.method == "geometry"


class TestQuiz:
    def _quiz(self, n_questions=1, requested=2):
        questions = [Question.from_dict(question_dict(), i) for i in range(1, n_questions + 1)]
        return Quiz(["Algebra I"], "easy", questions, requested=requested,
                    corrections=[Correction(1, "B", "A", "fix")])

    def test_is_partial(self):
        assert self._quiz(1, 2).is_partial
        assert not self._quiz(2, 2).is_partial

    def test_to_dict_hides_corrections(self):
        d = self._quiz().to_dict()
        assert set(d) == {"quiz"}
        assert set(d["quiz"]) == {"selectedClasses", "difficulty", "questions"}
        assert "corrections" not in str(d)
