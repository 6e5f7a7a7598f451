"""Service aggregating completed exams into long-term learning progress.

Every recorded attempt triggers a full recomputation of the derived
statistics from the attempt list, so the aggregates never drift from the
underlying history. The tracker owns its state and guards it with a lock; the
HTTP layer and the exam manager may call into it from different threads.
"""

from __future__ import annotations

from collections import Counter, defaultdict
from copy import deepcopy
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timedelta
import json
import logging
import math
from threading import Lock
from typing import Any, Callable
from uuid import uuid4

from pydantic import TypeAdapter

from manaquiz.constants.quiz_constants import (
    HARDER_DIFFICULTY_THRESHOLD,
    PROGRESS_SCHEMA_VERSION,
    RECENT_ATTEMPT_MINIMUM,
    RECENT_ATTEMPT_WINDOW,
    STRONG_TOPIC_THRESHOLD,
    WEAK_AREA_THRESHOLD,
    WEAK_TOPIC_THRESHOLD,
    WEEKLY_ACTIVITY_DAYS,
)
from manaquiz.core.models import ExamResult
from manaquiz.core.progress_models import (
    Achievement,
    AnswerRecord,
    AttemptMetadata,
    AttemptSource,
    CategoryProgress,
    DailyActivity,
    DifficultyProgress,
    GoalProgress,
    LearningGoal,
    MonthlyProgress,
    QuizAttempt,
    TimeRange,
    UserStats,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

_TIME_RANGE_DAYS: dict[str, int] = {"week": 7, "month": 30, "year": 365}

_ATTEMPTS_ADAPTER = TypeAdapter(list[QuizAttempt])
_CATEGORY_PROGRESS_ADAPTER = TypeAdapter(list[CategoryProgress])
_GOALS_ADAPTER = TypeAdapter(list[LearningGoal])
_ACHIEVEMENTS_ADAPTER = TypeAdapter(list[Achievement])
_USER_STATS_ADAPTER = TypeAdapter(UserStats)


class ProgressImportError(ValueError):
    """Raised when a progress blob cannot be parsed or validated."""


def default_achievements() -> list[Achievement]:
    return [
        Achievement("first-quiz", "Getting Started", "Complete your first quiz", "target", "attempts", 1),
        Achievement("perfect-score", "Perfect Score", "Score 100% on any quiz", "hundred", "score", 100),
        Achievement("week-streak", "Week Warrior", "Study for 7 consecutive days", "fire", "streak", 7),
        Achievement("speed-demon", "Speed Demon", "Complete a quiz in under 5 minutes", "lightning", "time", 300),
        Achievement("category-master", "Category Master", "Complete 10 quizzes in the same category", "crown", "category", 10),
        Achievement("century-club", "Century Club", "Complete 100 quizzes", "trophy", "attempts", 100),
    ]


@dataclass(slots=True)
class CategoryActivity:
    name: str
    attempts: int
    average_score: float


@dataclass(slots=True)
class ProgressData:
    """Attempts inside a time window, with headline aggregates."""

    attempts: list[QuizAttempt]
    average_score: float = 0.0
    total_time: int = 0
    categories: list[CategoryActivity] = field(default_factory=list)


def _mean(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def _local_naive(value: datetime | None) -> datetime | None:
    """Timestamps are kept as naive local time; aware ones are converted."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


class ProgressTracker:
    """Owns attempts, category progress, goals, achievements and user stats."""

    def __init__(self, clock: Clock | None = None) -> None:
        self._lock = Lock()
        self._clock: Clock = clock or datetime.now
        self._attempts: list[QuizAttempt] = []
        self._category_progress: list[CategoryProgress] = []
        self._learning_goals: list[LearningGoal] = []
        self._achievements: list[Achievement] = default_achievements()
        self._user_stats = UserStats()

    # --- Recording ---

    def build_attempt(
        self,
        result: ExamResult,
        source: AttemptSource = "upload",
        file_name: str | None = None,
        file_size: int | None = None,
    ) -> QuizAttempt:
        """Convert a finished exam into an attempt record."""
        questions = result.questions
        per_answer_time = math.floor(result.time_taken / len(questions)) if questions else 0
        answers = tuple(
            AnswerRecord(
                question_id=question.id,
                selected_answer=result.answers.get(question.id, ""),
                correct_answer=question.correct_answer,
                is_correct=result.is_correct(question),
                time_spent=per_answer_time,
            )
            for question in questions
        )
        first = questions[0] if questions else None
        return QuizAttempt(
            id=f"attempt_{int(self._clock().timestamp() * 1000)}_{uuid4().hex[:9]}",
            exam_title=result.course_name,
            category=first.category if first else "General",
            subcategory=first.subcategory if first else None,
            difficulty=result.difficulty,
            total_questions=result.total_questions,
            correct_answers=result.score,
            score=float(result.percentage),
            time_spent=result.time_taken,
            completed_at=result.completed_at,
            answers=answers,
            metadata=AttemptMetadata(source=source, file_name=file_name, file_size=file_size),
        )

    def record_attempt(self, attempt: QuizAttempt) -> list[Achievement]:
        """Store an attempt, refresh every aggregate and return newly unlocked achievements.

        If any aggregate fails to update, the tracker is rolled back to its
        state before the call and the error propagates.
        """
        attempt = replace(attempt, completed_at=_local_naive(attempt.completed_at))
        with self._lock:
            snapshot = self._snapshot()
            try:
                self._attempts.append(attempt)
                self._recompute_user_stats()
                self._update_streak(attempt.completed_at.date())
                self._recompute_category_progress(attempt.category)
                self._refresh_learning_goals()
                return self._evaluate_achievements(attempt)
            except Exception:
                self._restore_snapshot(snapshot)
                raise

    # --- Goals ---

    def add_learning_goal(
        self,
        title: str,
        target_category: str,
        target_score: float,
        target_attempts: int,
        description: str = "",
        deadline: datetime | None = None,
    ) -> LearningGoal:
        if target_score <= 0 or target_attempts <= 0:
            raise ValueError("Goal targets must be positive.")
        now = self._clock()
        goal = LearningGoal(
            id=f"goal_{int(now.timestamp() * 1000)}_{uuid4().hex[:9]}",
            title=title,
            description=description,
            target_category=target_category,
            target_score=target_score,
            target_attempts=target_attempts,
            deadline=_local_naive(deadline),
            created_at=now,
        )
        with self._lock:
            self._learning_goals.append(goal)
            self._refresh_goal(goal)
            return deepcopy(goal)

    # --- Queries ---

    def get_attempts(self) -> list[QuizAttempt]:
        with self._lock:
            return list(self._attempts)

    def get_user_stats(self) -> UserStats:
        with self._lock:
            return deepcopy(self._user_stats)

    def get_category_progress(self) -> list[CategoryProgress]:
        with self._lock:
            return deepcopy(self._category_progress)

    def get_learning_goals(self) -> list[LearningGoal]:
        with self._lock:
            return deepcopy(self._learning_goals)

    def get_achievements(self) -> list[Achievement]:
        with self._lock:
            return deepcopy(self._achievements)

    def get_progress_data(self, time_range: TimeRange = "week", category: str | None = None) -> ProgressData:
        with self._lock:
            attempts = list(self._attempts)
            now = self._clock()

        days = _TIME_RANGE_DAYS.get(time_range)
        if days is not None:
            cutoff = now - timedelta(days=days)
            attempts = [a for a in attempts if a.completed_at >= cutoff]
        if category:
            attempts = [a for a in attempts if a.category == category]

        grouped: dict[str, list[float]] = defaultdict(list)
        for attempt in attempts:
            grouped[attempt.category].append(attempt.score)
        return ProgressData(
            attempts=attempts,
            average_score=_mean([a.score for a in attempts]),
            total_time=sum(a.time_spent for a in attempts),
            categories=[
                CategoryActivity(name=name, attempts=len(scores), average_score=_mean(scores))
                for name, scores in grouped.items()
            ],
        )

    def get_weak_areas(self) -> list[str]:
        with self._lock:
            weak = [cp for cp in self._category_progress if cp.average_score < WEAK_AREA_THRESHOLD]
        weak.sort(key=lambda cp: cp.average_score)
        return [cp.category_name for cp in weak]

    def get_recommendations(self) -> list[str]:
        recommendations: list[str] = []
        weak_areas = self.get_weak_areas()
        if weak_areas:
            recommendations.append(
                f"Focus on {weak_areas[0]} - your average score is below {WEAK_AREA_THRESHOLD:.0f}%"
            )

        with self._lock:
            current_streak = self._user_stats.study_streak.current_streak
            recent = self._attempts[-RECENT_ATTEMPT_WINDOW:]
        if current_streak == 0:
            recommendations.append("Start a study streak! Daily practice improves retention.")
        if len(recent) >= RECENT_ATTEMPT_MINIMUM and _mean([a.score for a in recent]) > HARDER_DIFFICULTY_THRESHOLD:
            recommendations.append("Great progress! Try increasing difficulty level for more challenge.")
        return recommendations

    # --- Persistence ---

    def export_state(self) -> dict[str, Any]:
        """Return the persisted fields as JSON-compatible data."""
        with self._lock:
            return {
                "version": PROGRESS_SCHEMA_VERSION,
                "attempts": _ATTEMPTS_ADAPTER.dump_python(self._attempts, mode="json"),
                "category_progress": _CATEGORY_PROGRESS_ADAPTER.dump_python(self._category_progress, mode="json"),
                "learning_goals": _GOALS_ADAPTER.dump_python(self._learning_goals, mode="json"),
                "achievements": _ACHIEVEMENTS_ADAPTER.dump_python(self._achievements, mode="json"),
                "user_stats": _USER_STATS_ADAPTER.dump_python(self._user_stats, mode="json"),
            }

    def export_progress(self) -> str:
        payload = self.export_state()
        payload["exported_at"] = self._clock().isoformat()
        return json.dumps(payload, indent=2, ensure_ascii=False)

    def import_progress(self, data: str) -> None:
        """Replace all progress from an exported JSON document; all or nothing."""
        try:
            blob = json.loads(data)
        except ValueError as exc:
            logger.warning("Failed to import progress data: %s", exc)
            raise ProgressImportError(f"Progress data is not valid JSON: {exc}") from exc
        self.restore_state(blob)

    def restore_state(self, blob: Any) -> None:
        """Validate a persisted blob and swap it in; raises ProgressImportError on bad input."""
        if not isinstance(blob, dict):
            raise ProgressImportError("Progress data must be a JSON object.")
        try:
            attempts = _ATTEMPTS_ADAPTER.validate_python(blob.get("attempts", []))
            category_progress = _CATEGORY_PROGRESS_ADAPTER.validate_python(blob.get("category_progress", []))
            learning_goals = _GOALS_ADAPTER.validate_python(blob.get("learning_goals", []))
            achievements = (
                _ACHIEVEMENTS_ADAPTER.validate_python(blob["achievements"])
                if "achievements" in blob
                else default_achievements()
            )
            user_stats = (
                _USER_STATS_ADAPTER.validate_python(blob["user_stats"])
                if "user_stats" in blob
                else UserStats()
            )
        except (TypeError, ValueError) as exc:
            logger.warning("Failed to import progress data: %s", exc)
            raise ProgressImportError(f"Progress data is malformed: {exc}") from exc

        attempts = [replace(a, completed_at=_local_naive(a.completed_at)) for a in attempts]
        for progress in category_progress:
            progress.last_attempt = _local_naive(progress.last_attempt)
        for goal in learning_goals:
            goal.deadline = _local_naive(goal.deadline)
            goal.created_at = _local_naive(goal.created_at)
        for achievement in achievements:
            achievement.unlocked_at = _local_naive(achievement.unlocked_at)

        with self._lock:
            self._attempts = attempts
            self._category_progress = category_progress
            self._learning_goals = learning_goals
            self._achievements = achievements
            self._user_stats = user_stats

    def reset_progress(self) -> None:
        with self._lock:
            self._attempts = []
            self._category_progress = []
            self._learning_goals = []
            self._achievements = default_achievements()
            self._user_stats = UserStats()

    # --- Aggregation (callers hold the lock) ---

    def _snapshot(self) -> tuple[Any, ...]:
        return deepcopy(
            (
                self._attempts,
                self._category_progress,
                self._learning_goals,
                self._achievements,
                self._user_stats,
            )
        )

    def _restore_snapshot(self, snapshot: tuple[Any, ...]) -> None:
        (
            self._attempts,
            self._category_progress,
            self._learning_goals,
            self._achievements,
            self._user_stats,
        ) = snapshot

    def _recompute_user_stats(self) -> None:
        attempts = self._attempts
        scores = [a.score for a in attempts]
        category_counts = Counter(a.category for a in attempts)
        stats = self._user_stats
        stats.total_attempts = len(attempts)
        stats.total_questions_answered = sum(a.total_questions for a in attempts)
        stats.total_time_spent = sum(a.time_spent for a in attempts)
        stats.average_score = _mean(scores)
        stats.best_score = max(scores, default=0.0)
        stats.favorite_category = category_counts.most_common(1)[0][0] if category_counts else ""
        stats.weekly_activity = self._weekly_activity()
        stats.monthly_progress = self._monthly_progress()

    def _weekly_activity(self) -> list[DailyActivity]:
        today = self._clock().date()
        by_day: dict[date, list[QuizAttempt]] = defaultdict(list)
        for attempt in self._attempts:
            by_day[attempt.completed_at.date()].append(attempt)

        activity: list[DailyActivity] = []
        for offset in range(WEEKLY_ACTIVITY_DAYS - 1, -1, -1):
            day = today - timedelta(days=offset)
            day_attempts = by_day.get(day, [])
            activity.append(
                DailyActivity(
                    date=day.isoformat(),
                    attempts=len(day_attempts),
                    score=_mean([a.score for a in day_attempts]),
                    time_spent=sum(a.time_spent for a in day_attempts),
                )
            )
        return activity

    def _monthly_progress(self) -> list[MonthlyProgress]:
        by_month: dict[str, list[float]] = defaultdict(list)
        for attempt in self._attempts:
            by_month[attempt.completed_at.strftime("%Y-%m")].append(attempt.score)

        progress: list[MonthlyProgress] = []
        previous: float | None = None
        for month in sorted(by_month):
            average = _mean(by_month[month])
            improvement = average - previous if previous is not None else 0.0
            progress.append(
                MonthlyProgress(
                    month=month,
                    attempts=len(by_month[month]),
                    average_score=average,
                    improvement=improvement,
                )
            )
            previous = average
        return progress

    def _update_streak(self, study_day: date) -> None:
        streak = self._user_stats.study_streak
        last_day = streak.last_study_date
        if last_day is None:
            streak.current_streak = 1
            streak.total_study_days += 1
            streak.last_study_date = study_day
        elif study_day > last_day:
            gap = (study_day - last_day).days
            streak.current_streak = streak.current_streak + 1 if gap == 1 else 1
            streak.total_study_days += 1
            streak.last_study_date = study_day
        streak.longest_streak = max(streak.longest_streak, streak.current_streak)

    def _recompute_category_progress(self, category_id: str) -> None:
        attempts = [a for a in self._attempts if a.category == category_id]
        if not attempts:
            return

        difficulty_progress: dict[str, DifficultyProgress] = {}
        for level in ("easy", "medium", "hard"):
            level_scores = [a.score for a in attempts if a.difficulty == level]
            difficulty_progress[level] = DifficultyProgress(
                attempts=len(level_scores),
                average_score=_mean(level_scores),
            )

        by_topic: dict[str, list[float]] = defaultdict(list)
        for attempt in attempts:
            if attempt.subcategory:
                by_topic[attempt.subcategory].append(attempt.score)
        topic_averages = {topic: _mean(scores) for topic, scores in by_topic.items()}

        progress = CategoryProgress(
            category_id=category_id,
            category_name=category_id,
            total_attempts=len(attempts),
            average_score=_mean([a.score for a in attempts]),
            best_score=max(a.score for a in attempts),
            time_spent=sum(a.time_spent for a in attempts),
            strong_topics=[t for t, avg in topic_averages.items() if avg >= STRONG_TOPIC_THRESHOLD],
            weak_topics=[t for t, avg in topic_averages.items() if avg < WEAK_TOPIC_THRESHOLD],
            last_attempt=max(a.completed_at for a in attempts),
            difficulty_progress=difficulty_progress,
        )
        for index, existing in enumerate(self._category_progress):
            if existing.category_id == category_id:
                self._category_progress[index] = progress
                return
        self._category_progress.append(progress)

    def _refresh_learning_goals(self) -> None:
        for goal in self._learning_goals:
            self._refresh_goal(goal)

    def _refresh_goal(self, goal: LearningGoal) -> None:
        scores = [a.score for a in self._attempts if a.category == goal.target_category]
        current_score = _mean(scores)
        current_attempts = len(scores)
        score_progress = current_score / goal.target_score * 100
        attempts_progress = current_attempts / goal.target_attempts * 100
        goal.progress = GoalProgress(
            current_score=current_score,
            current_attempts=current_attempts,
            progress_percentage=min((score_progress + attempts_progress) / 2, 100.0),
        )
        goal.is_completed = current_score >= goal.target_score and current_attempts >= goal.target_attempts

    def _evaluate_achievements(self, attempt: QuizAttempt) -> list[Achievement]:
        stats = self._user_stats
        category_attempts = sum(1 for a in self._attempts if a.category == attempt.category)
        unlocked_now: list[Achievement] = []
        for achievement in self._achievements:
            if achievement.is_unlocked:
                continue
            if achievement.type == "attempts":
                earned = stats.total_attempts >= achievement.requirement
            elif achievement.type == "score":
                earned = attempt.score >= achievement.requirement
            elif achievement.type == "streak":
                earned = stats.study_streak.current_streak >= achievement.requirement
            elif achievement.type == "time":
                earned = attempt.time_spent <= achievement.requirement
            else:
                earned = category_attempts >= achievement.requirement
            if earned:
                achievement.is_unlocked = True
                achievement.unlocked_at = self._clock()
                unlocked_now.append(replace(achievement))
        return unlocked_now
