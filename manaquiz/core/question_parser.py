"""Extract multiple-choice questions from free-form assignment text.

Recognised block format (numbered, four lettered options, answer key)::

    1. What is the time complexity of binary search?
       a) O(n)
       b) O(log n)
       c) O(n²)
       d) O(1)
       Answer: b

Text without a single recognisable block is replaced by a shuffled selection
of canned questions so an upload never produces an empty quiz.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
import json
import logging
from pathlib import Path
import random
import re
from typing import Any, Iterable
from uuid import uuid4

from manaquiz.constants.quiz_constants import FALLBACK_QUESTION_LIMIT
from manaquiz.core.category_classifier import classify_category
from manaquiz.core.difficulty_classifier import classify_difficulty
from manaquiz.core.models import OPTION_LETTERS, Question
from manaquiz.core.text_extractor import (
    ExtractionOutcome,
    UploadedFile,
    detect_language,
    extract_all,
)

logger = logging.getLogger(__name__)

_DATA_PATH = Path(__file__).resolve().parent.parent / "data" / "canned_questions.json"

QUESTION_PATTERN = re.compile(
    r"(\d+)\.\s*(.+?)\s*"
    r"([a-d]\).+?\s*[a-d]\).+?\s*[a-d]\).+?\s*[a-d]\).+?)"
    r"\s*Answer:\s*([a-d])",
    re.IGNORECASE | re.DOTALL,
)

# A marker counts only at the start of the block or after whitespace, and the
# option text runs until the next such marker. Blank options are rejected by
# parse_questions.
OPTION_PATTERN = re.compile(
    r"(?:^|(?<=\s))([a-d])\)\s*(.*?)(?=\s+[a-d]\)|\s*$)",
    re.IGNORECASE | re.DOTALL,
)

# Matched case-sensitively against the file name, first hit wins.
_FALLBACK_FILENAME_CATEGORIES = (
    ("python", "Python Programming"),
    ("java", "Java Programming"),
    ("data", "Data Structures"),
    ("algorithm", "Algorithms"),
    ("network", "Computer Networks"),
    ("database", "Database Management"),
)


@dataclass(slots=True)
class ProcessingReport:
    """Questions produced by an upload batch plus the per-file outcomes."""

    questions: list[Question]
    outcomes: list[ExtractionOutcome] = field(default_factory=list)

    @property
    def failed_files(self) -> list[str]:
        return [outcome.file.name for outcome in self.outcomes if not outcome.ok]


def new_question_id() -> str:
    return uuid4().hex


def split_options(options_text: str) -> list[str]:
    return [match.group(2).strip() for match in OPTION_PATTERN.finditer(options_text)]


def parse_questions(
    text: str,
    source_name: str,
    rng: random.Random | None = None,
) -> list[Question]:
    """Parse every well-formed block; fall back to canned questions if none match."""
    questions: list[Question] = []
    for match in QUESTION_PATTERN.finditer(text):
        _, raw_question, options_text, answer_letter = match.groups()
        options = split_options(options_text)
        if (
            len(options) != len(OPTION_LETTERS)
            or len(set(options)) != len(options)
            or not all(options)
        ):
            continue

        letter = answer_letter.lower()
        correct_answer = options[OPTION_LETTERS.index(letter)]
        question_text = raw_question.strip()
        questions.append(
            Question(
                id=new_question_id(),
                question=question_text,
                options=tuple(options),
                correct_answer=correct_answer,
                difficulty=classify_difficulty(question_text),
                category=classify_category(source_name, question_text),
                explanation=f"The correct answer is {letter.upper()}) {correct_answer}",
            )
        )

    if not questions:
        logger.info("No question blocks found in %s; using fallback questions", source_name)
        return fallback_questions(source_name, rng=rng)
    return questions


def fallback_category(source_name: str, default: str) -> str:
    for needle, category in _FALLBACK_FILENAME_CATEGORIES:
        if needle in source_name:
            return category
    return default


def fallback_questions(source_name: str, rng: random.Random | None = None) -> list[Question]:
    rng = rng or random.Random()
    pool = list(_read_canned_questions()["fallback"])
    rng.shuffle(pool)
    selected = pool[: min(len(pool), FALLBACK_QUESTION_LIMIT)]
    return [
        _question_from_entry(entry, category=fallback_category(source_name, entry["category"]))
        for entry in selected
    ]


def load_sample_questions() -> list[Question]:
    """Return the bundled general-knowledge pool, each with a fresh id."""
    return [_question_from_entry(entry) for entry in _read_canned_questions()["samples"]]


def remove_duplicate_questions(questions: Iterable[Question]) -> list[Question]:
    seen: set[str] = set()
    unique: list[Question] = []
    for question in questions:
        key = question.question.strip().lower()
        if key in seen:
            continue
        seen.add(key)
        unique.append(question)
    return unique


def process_files(
    files: Iterable[UploadedFile],
    rng: random.Random | None = None,
) -> ProcessingReport:
    """Run the full upload pipeline: extract, parse, de-duplicate and shuffle."""
    rng = rng or random.Random()
    outcomes = extract_all(files)
    questions: list[Question] = []
    for outcome in outcomes:
        if not outcome.ok or outcome.text is None:
            continue
        language = detect_language(outcome.text)
        logger.info("Parsing %s (detected language: %s)", outcome.file.name, language)
        questions.extend(parse_questions(outcome.text, outcome.file.name, rng=rng))

    unique = remove_duplicate_questions(questions)
    rng.shuffle(unique)
    return ProcessingReport(questions=unique, outcomes=outcomes)


def _question_from_entry(entry: dict[str, Any], category: str | None = None) -> Question:
    return Question(
        id=new_question_id(),
        question=entry["question"],
        options=tuple(entry["options"]),
        correct_answer=entry["correct_answer"],
        difficulty=entry.get("difficulty", "medium"),
        category=category or entry.get("category", "General"),
        explanation=entry.get("explanation"),
    )


@lru_cache(maxsize=1)
def _read_canned_questions() -> dict[str, list[dict[str, Any]]]:
    return json.loads(_DATA_PATH.read_text(encoding="utf-8"))
