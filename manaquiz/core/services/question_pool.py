"""Service holding the processed questions an exam is drawn from."""

from __future__ import annotations

from collections import Counter

from manaquiz.core.models import Question


class QuestionPool:
    """Manages the current set of candidate questions."""

    def __init__(self) -> None:
        self._questions: list[Question] = []
        self._source: str = "none"

    def load_questions(self, questions: list[Question], source: str) -> None:
        """Replace the pool; an empty list is allowed and rejected later at setup."""
        self._questions = list(questions)
        self._source = source

    def get_questions(self) -> list[Question]:
        return list(self._questions)

    def get_source(self) -> str:
        return self._source

    def get_question_count(self) -> int:
        return len(self._questions)

    def count_by_difficulty(self) -> dict[str, int]:
        counts = {"easy": 0, "medium": 0, "hard": 0}
        counts.update(Counter(q.difficulty for q in self._questions))
        return counts

    def count_by_category(self) -> dict[str, int]:
        return dict(Counter(q.category for q in self._questions))
