"""Business logic for the practice exam shared by the API and the CLI entry point."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
import logging
import random
from threading import Lock
from typing import Any, Iterable

from pydantic import TypeAdapter

from manaquiz.constants.quiz_constants import MAX_DURATION_MINUTES, MIN_DURATION_MINUTES
from manaquiz.core.models import (
    ExamConfig,
    ExamDifficulty,
    ExamResult,
    ExamState,
    Question,
)
from manaquiz.core.progress_models import AttemptSource
from manaquiz.core.question_bank import find_category, get_questions_by_category
from manaquiz.core.question_parser import (
    ProcessingReport,
    load_sample_questions,
    process_files,
)
from manaquiz.core.services.exam_session import Clock, ExamSession
from manaquiz.core.services.question_pool import QuestionPool
from manaquiz.core.services.result_history import ResultHistory, ResultSummaryRow
from manaquiz.core.text_extractor import UploadedFile
from manaquiz.utils.formatting import percentage

logger = logging.getLogger(__name__)

NO_QUESTIONS_MESSAGE = (
    "No questions available. Please upload files or select a category from the sample questions."
)

_CONFIG_ADAPTER = TypeAdapter(ExamConfig | None)
_QUESTIONS_ADAPTER = TypeAdapter(list[Question])
_RESULTS_ADAPTER = TypeAdapter(list[ExamResult])


class ExamSetupError(ValueError):
    """Raised when an exam cannot be configured from the current pool."""


@dataclass(slots=True)
class PoolSummary:
    source: str
    total: int
    by_difficulty: dict[str, int]
    by_category: dict[str, int]


@dataclass(slots=True)
class GroupBreakdown:
    """Correct/total tally for one category or difficulty of a finished exam."""

    name: str
    correct: int
    total: int
    percentage: int


@dataclass(slots=True)
class AttemptSourceInfo:
    source: AttemptSource
    file_name: str | None = None
    file_size: int | None = None


def validate_exam_config(config: ExamConfig, available: int) -> None:
    """Raise ExamSetupError if the configuration cannot run against the pool."""
    if not config.course_name.strip():
        raise ExamSetupError("Course name is required.")
    if config.num_questions < 1:
        raise ExamSetupError("Number of questions must be at least 1.")
    if config.mode == "timed" and not MIN_DURATION_MINUTES <= config.duration <= MAX_DURATION_MINUTES:
        raise ExamSetupError(
            f"Duration must be between {MIN_DURATION_MINUTES} and {MAX_DURATION_MINUTES} minutes."
        )
    if available == 0:
        raise ExamSetupError(NO_QUESTIONS_MESSAGE)
    if config.num_questions > available:
        raise ExamSetupError(
            f"Only {available} questions available. Please reduce the number of questions."
        )


def _breakdown(result: ExamResult, key: str) -> list[GroupBreakdown]:
    tallies: dict[str, list[int]] = defaultdict(lambda: [0, 0])
    for question in result.questions:
        tally = tallies[getattr(question, key)]
        tally[1] += 1
        if result.is_correct(question):
            tally[0] += 1
    return [
        GroupBreakdown(name=name, correct=correct, total=total, percentage=percentage(correct, total))
        for name, (correct, total) in tallies.items()
    ]


def category_breakdown(result: ExamResult) -> list[GroupBreakdown]:
    return _breakdown(result, "category")


def difficulty_breakdown(result: ExamResult) -> list[GroupBreakdown]:
    return _breakdown(result, "difficulty")


class ExamManager:
    """Facade for exam services: QuestionPool, ExamSession and ResultHistory."""

    def __init__(self, rng: random.Random | None = None, clock: Clock | None = None) -> None:
        self._lock = Lock()
        self._rng = rng or random.Random()

        # Services
        self._pool = QuestionPool()
        self._history = ResultHistory()
        self._session = ExamSession(history=self._history, rng=self._rng, clock=clock)

        self._source_info = AttemptSourceInfo(source="sample")

    # --- Question sourcing ---

    def load_uploaded_files(self, files: Iterable[UploadedFile]) -> ProcessingReport:
        files = list(files)
        report = process_files(files, rng=self._rng)
        with self._lock:
            self._pool.load_questions(report.questions, source="upload")
            self._source_info = AttemptSourceInfo(
                source="upload",
                file_name=", ".join(f.name for f in files) or None,
                file_size=sum(f.size for f in files),
            )
        if report.failed_files:
            logger.warning("Skipped unreadable files: %s", ", ".join(report.failed_files))
        logger.info("Loaded %d questions from %d file(s)", len(report.questions), len(files))
        return report

    def use_sample_questions(self) -> list[Question]:
        questions = load_sample_questions()
        with self._lock:
            self._pool.load_questions(questions, source="sample")
            self._source_info = AttemptSourceInfo(source="sample")
        return questions

    def use_bank_questions(
        self,
        category_id: str,
        subcategory_id: str | None = None,
        difficulty: ExamDifficulty | None = None,
        limit: int | None = None,
    ) -> list[Question]:
        category = find_category(category_id)
        if category is None:
            raise LookupError(f"Unknown question bank category '{category_id}'.")
        if subcategory_id and category.find_subcategory(subcategory_id) is None:
            raise LookupError(f"Unknown subcategory '{subcategory_id}' in '{category_id}'.")
        questions = get_questions_by_category(
            category_id, subcategory_id, difficulty, limit, rng=self._rng
        )
        with self._lock:
            self._pool.load_questions(questions, source="bank")
            self._source_info = AttemptSourceInfo(source="sample")
        return questions

    def get_pool_questions(self) -> list[Question]:
        with self._lock:
            return self._pool.get_questions()

    def get_pool_summary(self) -> PoolSummary:
        with self._lock:
            return PoolSummary(
                source=self._pool.get_source(),
                total=self._pool.get_question_count(),
                by_difficulty=self._pool.count_by_difficulty(),
                by_category=self._pool.count_by_category(),
            )

    def get_attempt_source(self) -> AttemptSourceInfo:
        with self._lock:
            return self._source_info

    # --- Exam lifecycle delegation ---

    def setup_exam(self, config: ExamConfig) -> None:
        with self._lock:
            validate_exam_config(config, self._pool.get_question_count())
            self._session.configure(config)

    def get_config(self) -> ExamConfig | None:
        with self._lock:
            return self._session.get_config()

    def start_exam(self) -> list[Question]:
        with self._lock:
            self._session.start(self._pool.get_questions())
            return self._session.get_questions()

    def get_exam_questions(self) -> list[Question]:
        with self._lock:
            return self._session.get_questions()

    def get_exam_state(self) -> ExamState:
        with self._lock:
            return self._session.get_state()

    def get_exam_status(self) -> str:
        with self._lock:
            return self._session.get_status()

    def get_current_question(self) -> Question | None:
        with self._lock:
            return self._session.get_current_question()

    def answer_question(self, question_id: str, answer_text: str) -> None:
        with self._lock:
            self._session.answer(question_id, answer_text)

    def mark_question(self, question_id: str, marked: bool = True) -> None:
        with self._lock:
            if marked:
                self._session.mark(question_id)
            else:
                self._session.unmark(question_id)

    def toggle_mark(self, question_id: str) -> bool:
        with self._lock:
            return self._session.toggle_mark(question_id)

    def next_question(self) -> int:
        with self._lock:
            return self._session.next()

    def previous_question(self) -> int:
        with self._lock:
            return self._session.previous()

    def go_to_question(self, index: int) -> int:
        with self._lock:
            return self._session.go_to(index)

    def tick(self) -> ExamResult | None:
        with self._lock:
            return self._session.tick()

    def submit_exam(self) -> ExamResult | None:
        with self._lock:
            return self._session.submit()

    def reset_exam(self) -> None:
        with self._lock:
            self._session.reset()

    # --- Results ---

    def get_results(self) -> list[ExamResult]:
        with self._lock:
            return self._history.get_all()

    def get_result_summaries(self) -> list[ResultSummaryRow]:
        with self._lock:
            return self._history.summaries()

    def get_result(self, result_id: str) -> ExamResult:
        with self._lock:
            return self._history.get(result_id)

    def clear_results(self) -> None:
        with self._lock:
            self._history.clear()

    # --- Persistence ---

    def export_state(self) -> dict[str, Any]:
        """Return the persisted exam blob as JSON-compatible data."""
        with self._lock:
            return {
                "exam_config": _CONFIG_ADAPTER.dump_python(self._session.get_config(), mode="json"),
                "processed_questions": _QUESTIONS_ADAPTER.dump_python(self._pool.get_questions(), mode="json"),
                "exam_results": _RESULTS_ADAPTER.dump_python(self._history.get_all(), mode="json"),
            }

    def restore_state(self, blob: Any) -> None:
        """Load a persisted exam blob; missing fields take their defaults."""
        if not isinstance(blob, dict):
            raise ValueError("Exam state must be a JSON object.")
        try:
            config = _CONFIG_ADAPTER.validate_python(blob.get("exam_config"))
            questions = _QUESTIONS_ADAPTER.validate_python(blob.get("processed_questions", []))
            results = _RESULTS_ADAPTER.validate_python(blob.get("exam_results", []))
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Exam state is malformed: {exc}") from exc

        with self._lock:
            self._session.reset()
            self._pool.load_questions(questions, source="restored")
            self._history.replace(results)
            if config is not None:
                self._session.configure(config)
