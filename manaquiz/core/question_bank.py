"""Built-in question bank organised as categories of subcategories."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
import json
from pathlib import Path
import random
from typing import Any

from manaquiz.constants.quiz_constants import BANK_SUBCATEGORY_TARGET_SIZE
from manaquiz.core.models import Difficulty, ExamDifficulty, Question

_DATA_PATH = Path(__file__).resolve().parent.parent / "data" / "question_bank.json"
_FILLER_DIFFICULTIES: tuple[Difficulty, ...] = ("easy", "medium", "hard")


@dataclass(frozen=True, slots=True)
class BankSubcategory:
    id: str
    name: str
    description: str
    questions: tuple[Question, ...]


@dataclass(frozen=True, slots=True)
class BankCategory:
    id: str
    name: str
    description: str
    subcategories: tuple[BankSubcategory, ...]

    def find_subcategory(self, subcategory_id: str) -> BankSubcategory | None:
        return next((sub for sub in self.subcategories if sub.id == subcategory_id), None)


@dataclass(frozen=True, slots=True)
class SubcategorySummary:
    id: str
    name: str
    description: str
    question_count: int


@dataclass(frozen=True, slots=True)
class CategorySummary:
    id: str
    name: str
    description: str
    subcategories: tuple[SubcategorySummary, ...]


def load_question_bank() -> tuple[BankCategory, ...]:
    """Return the bank, built once from the bundled catalog and cached."""
    return _build_bank()


def find_category(category_id: str) -> BankCategory | None:
    return next((cat for cat in load_question_bank() if cat.id == category_id), None)


def get_questions_by_category(
    category_id: str,
    subcategory_id: str | None = None,
    difficulty: ExamDifficulty | None = None,
    limit: int | None = None,
    rng: random.Random | None = None,
) -> list[Question]:
    category = find_category(category_id)
    if category is None:
        return []

    if subcategory_id:
        subcategory = category.find_subcategory(subcategory_id)
        questions = list(subcategory.questions) if subcategory else []
    else:
        questions = [q for sub in category.subcategories for q in sub.questions]

    if difficulty and difficulty != "mixed":
        questions = [q for q in questions if q.difficulty == difficulty]

    (rng or random.Random()).shuffle(questions)
    if limit is not None:
        questions = questions[:limit]
    return questions


def get_all_categories() -> list[CategorySummary]:
    return [
        CategorySummary(
            id=category.id,
            name=category.name,
            description=category.description,
            subcategories=tuple(
                SubcategorySummary(
                    id=sub.id,
                    name=sub.name,
                    description=sub.description,
                    question_count=len(sub.questions),
                )
                for sub in category.subcategories
            ),
        )
        for category in load_question_bank()
    ]


@lru_cache(maxsize=1)
def _build_bank() -> tuple[BankCategory, ...]:
    catalog = json.loads(_DATA_PATH.read_text(encoding="utf-8"))
    return tuple(
        BankCategory(
            id=raw_category["id"],
            name=raw_category["name"],
            description=raw_category["description"],
            subcategories=tuple(
                _build_subcategory(raw_category["id"], raw_sub)
                for raw_sub in raw_category["subcategories"]
            ),
        )
        for raw_category in catalog["categories"]
    )


def _build_subcategory(category_id: str, raw: dict[str, Any]) -> BankSubcategory:
    subcategory_id = raw["id"]
    questions: list[Question] = []
    for number, seed in enumerate(raw["questions"], start=1):
        questions.append(
            Question(
                id=f"{category_id}_{subcategory_id}_{number}",
                question=seed["question"],
                options=tuple(seed["options"]),
                correct_answer=seed["correct_answer"],
                difficulty=seed["difficulty"],
                category=category_id,
                subcategory=subcategory_id,
                explanation=seed.get("explanation") or f"Correct answer is: {seed['correct_answer']}",
            )
        )

    filler = raw["filler"]
    seed_count = len(questions)
    for offset in range(max(0, BANK_SUBCATEGORY_TARGET_SIZE - seed_count)):
        number = seed_count + offset + 1
        questions.append(
            Question(
                id=f"{category_id}_{subcategory_id}_{number}",
                question=filler["question"].format(number=number),
                options=tuple(filler["options"]),
                correct_answer=filler["correct_answer"],
                difficulty=_FILLER_DIFFICULTIES[offset % len(_FILLER_DIFFICULTIES)],
                category=category_id,
                subcategory=subcategory_id,
                explanation=filler.get("explanation"),
            )
        )

    return BankSubcategory(
        id=subcategory_id,
        name=raw["name"],
        description=raw["description"],
        questions=tuple(questions),
    )
