"""Domain models for questions and exam runs."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

Difficulty = Literal["easy", "medium", "hard"]
ExamDifficulty = Literal["easy", "medium", "hard", "mixed"]
ExamMode = Literal["timed", "practice"]
CompletionReason = Literal["submitted", "time_expired"]

OPTION_LETTERS = ("a", "b", "c", "d")


@dataclass(frozen=True, slots=True)
class Question:
    """Multiple-choice question with exactly four distinct options."""

    id: str
    question: str
    options: tuple[str, ...]
    correct_answer: str
    difficulty: Difficulty = "medium"
    category: str = "General"
    subcategory: str | None = None
    explanation: str | None = None

    def __post_init__(self) -> None:
        if len(self.options) != len(OPTION_LETTERS):
            raise ValueError("Each question must have exactly four options.")
        if not all(option.strip() for option in self.options):
            raise ValueError("Question options must not be blank.")
        if len(set(self.options)) != len(self.options):
            raise ValueError("Question options must be distinct.")
        if self.correct_answer not in self.options:
            raise ValueError("Correct answer must be one of the options.")


@dataclass(frozen=True, slots=True)
class ExamConfig:
    """Quiz setup chosen by the user; fixed for the duration of a run."""

    course_name: str
    num_questions: int
    duration: int = 60  # minutes, only used in timed mode
    difficulty: ExamDifficulty = "mixed"
    mode: ExamMode = "timed"
    categories: tuple[str, ...] = ()


@dataclass(slots=True)
class ExamState:
    """Mutable run-time record of the exam in progress."""

    current_question_index: int = 0
    answers: dict[str, str] = field(default_factory=dict)
    marked: set[str] = field(default_factory=set)
    time_remaining: int = 0
    is_started: bool = False
    is_completed: bool = False
    start_time: datetime | None = None
    end_time: datetime | None = None
    completion_reason: CompletionReason | None = None


@dataclass(frozen=True, slots=True)
class ExamResult:
    """Scored snapshot taken when an exam completes."""

    id: str
    course_name: str
    score: int
    total_questions: int
    percentage: int
    time_taken: int  # seconds
    completed_at: datetime
    questions: tuple[Question, ...] = ()
    answers: dict[str, str] = field(default_factory=dict)
    difficulty: ExamDifficulty = "mixed"
    mode: ExamMode = "practice"
    completion_reason: CompletionReason = "submitted"

    def is_correct(self, question: Question) -> bool:
        return self.answers.get(question.id) == question.correct_answer
