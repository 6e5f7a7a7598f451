from __future__ import annotations

from datetime import datetime, timedelta
import random

import pytest

from manaquiz.core.models import Difficulty, Question

FIXED_NOW = datetime(2024, 3, 15, 10, 0, 0)


class FakeClock:
    """Deterministic clock that only moves when told to."""

    def __init__(self, start: datetime = FIXED_NOW) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta: float) -> None:
        self.now = self.now + timedelta(**delta)


def make_question(
    index: int,
    difficulty: Difficulty = "medium",
    category: str = "Computer Science",
    subcategory: str | None = None,
) -> Question:
    return Question(
        id=f"q{index}",
        question=f"Synthetic question {index}?",
        options=(f"right {index}", f"wrong {index}a", f"wrong {index}b", f"wrong {index}c"),
        correct_answer=f"right {index}",
        difficulty=difficulty,
        category=category,
        subcategory=subcategory,
    )


def build_synthetic_questions(per_difficulty: int = 4) -> list[Question]:
    """Create a deterministic pool with an even spread of difficulties and two categories."""

    questions: list[Question] = []
    index = 0
    for difficulty in ("easy", "medium", "hard"):
        for _ in range(per_difficulty):
            category = "Computer Science" if index % 2 == 0 else "Mathematics"
            questions.append(make_question(index, difficulty, category))
            index += 1
    return questions


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def synthetic_questions() -> list[Question]:
    return build_synthetic_questions()
