"""Domain models owned by the progress tracker."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Literal

AttemptSource = Literal["upload", "sample"]
AchievementType = Literal["score", "streak", "category", "time", "attempts"]
TimeRange = Literal["week", "month", "year", "all"]


@dataclass(frozen=True, slots=True)
class AnswerRecord:
    question_id: str
    selected_answer: str = ""
    correct_answer: str = ""
    is_correct: bool = False
    time_spent: int = 0


@dataclass(frozen=True, slots=True)
class AttemptMetadata:
    source: AttemptSource = "upload"
    file_name: str | None = None
    file_size: int | None = None


@dataclass(frozen=True, slots=True)
class QuizAttempt:
    """One completed exam recorded into the progress history."""

    id: str = ""
    exam_title: str = ""
    category: str = "General"
    subcategory: str | None = None
    difficulty: str = "mixed"
    total_questions: int = 0
    correct_answers: int = 0
    score: float = 0.0  # percentage
    time_spent: int = 0  # seconds
    completed_at: datetime = field(default_factory=datetime.now)
    answers: tuple[AnswerRecord, ...] = ()
    metadata: AttemptMetadata = field(default_factory=AttemptMetadata)


@dataclass(slots=True)
class StudyStreak:
    current_streak: int = 0
    longest_streak: int = 0
    last_study_date: date | None = None
    total_study_days: int = 0


@dataclass(slots=True)
class DifficultyProgress:
    attempts: int = 0
    average_score: float = 0.0


def _empty_difficulty_progress() -> dict[str, DifficultyProgress]:
    return {level: DifficultyProgress() for level in ("easy", "medium", "hard")}


@dataclass(slots=True)
class CategoryProgress:
    category_id: str
    category_name: str = ""
    total_attempts: int = 0
    average_score: float = 0.0
    best_score: float = 0.0
    time_spent: int = 0
    strong_topics: list[str] = field(default_factory=list)
    weak_topics: list[str] = field(default_factory=list)
    last_attempt: datetime | None = None
    difficulty_progress: dict[str, DifficultyProgress] = field(
        default_factory=_empty_difficulty_progress
    )


@dataclass(slots=True)
class GoalProgress:
    current_score: float = 0.0
    current_attempts: int = 0
    progress_percentage: float = 0.0


@dataclass(slots=True)
class LearningGoal:
    id: str
    title: str
    target_category: str
    target_score: float
    target_attempts: int
    description: str = ""
    deadline: datetime | None = None
    is_completed: bool = False
    created_at: datetime = field(default_factory=datetime.now)
    progress: GoalProgress = field(default_factory=GoalProgress)


@dataclass(slots=True)
class Achievement:
    id: str
    title: str
    description: str
    icon: str
    type: AchievementType
    requirement: float
    unlocked_at: datetime | None = None
    is_unlocked: bool = False


@dataclass(slots=True)
class DailyActivity:
    date: str
    attempts: int = 0
    score: float = 0.0
    time_spent: int = 0


@dataclass(slots=True)
class MonthlyProgress:
    month: str
    attempts: int = 0
    average_score: float = 0.0
    improvement: float = 0.0


@dataclass(slots=True)
class UserStats:
    total_attempts: int = 0
    total_questions_answered: int = 0
    total_time_spent: int = 0
    average_score: float = 0.0
    best_score: float = 0.0
    favorite_category: str = ""
    study_streak: StudyStreak = field(default_factory=StudyStreak)
    weekly_activity: list[DailyActivity] = field(default_factory=list)
    monthly_progress: list[MonthlyProgress] = field(default_factory=list)
