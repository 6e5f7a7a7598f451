"""Service running a single exam through NotStarted -> Started -> Completed."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
import logging
import math
import random
from typing import Callable
from uuid import uuid4

from manaquiz.core.models import (
    CompletionReason,
    ExamConfig,
    ExamResult,
    ExamState,
    Question,
)
from manaquiz.core.services.result_history import ResultHistory
from manaquiz.utils.formatting import percentage

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


class ExamStateError(RuntimeError):
    """Raised when a lifecycle operation is attempted in the wrong state."""


class ExamSession:
    """Owns the configuration, question sequence and answers of the active exam."""

    def __init__(
        self,
        history: ResultHistory | None = None,
        rng: random.Random | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._history = history if history is not None else ResultHistory()
        self._rng = rng or random.Random()
        self._clock: Clock = clock or datetime.now
        self._config: ExamConfig | None = None
        self._questions: list[Question] = []
        self._state = ExamState()

    # --- State inspection ---

    def get_config(self) -> ExamConfig | None:
        return self._config

    def get_questions(self) -> list[Question]:
        return list(self._questions)

    def get_state(self) -> ExamState:
        """Return a copy of the run-time state."""
        return replace(
            self._state,
            answers=dict(self._state.answers),
            marked=set(self._state.marked),
        )

    def get_status(self) -> str:
        if self._state.is_completed:
            return "completed"
        if self._state.is_started:
            return "started"
        return "not_started"

    def is_running(self) -> bool:
        return self._state.is_started and not self._state.is_completed

    def get_current_question(self) -> Question | None:
        if not self._questions:
            return None
        return self._questions[self._state.current_question_index]

    # --- Lifecycle ---

    def configure(self, config: ExamConfig) -> None:
        if self._state.is_started:
            raise ExamStateError("Exam configuration cannot change once the exam has started.")
        self._config = config

    def start(self, pool: list[Question]) -> None:
        if self._config is None:
            raise ExamStateError("Configure the exam before starting it.")
        if self._state.is_started:
            raise ExamStateError("Exam has already been started.")

        config = self._config
        candidates = list(pool)
        if config.difficulty != "mixed":
            candidates = [q for q in candidates if q.difficulty == config.difficulty]
        self._rng.shuffle(candidates)
        self._questions = candidates[: config.num_questions]

        self._state = ExamState(
            time_remaining=config.duration * 60 if config.mode == "timed" else 0,
            is_started=True,
            start_time=self._clock(),
        )
        logger.info(
            "Exam '%s' started with %d questions (%s, %s)",
            config.course_name,
            len(self._questions),
            config.mode,
            config.difficulty,
        )

    def answer(self, question_id: str, answer_text: str) -> None:
        if not self._state.is_started:
            raise ExamStateError("Exam has not been started.")
        if self._state.is_completed:
            raise ExamStateError("Exam is already completed.")
        self._state.answers[question_id] = answer_text

    def mark(self, question_id: str) -> None:
        self._state.marked.add(question_id)

    def unmark(self, question_id: str) -> None:
        self._state.marked.discard(question_id)

    def toggle_mark(self, question_id: str) -> bool:
        """Flip the mark and return whether the question is now marked."""
        if question_id in self._state.marked:
            self.unmark(question_id)
            return False
        self.mark(question_id)
        return True

    # --- Navigation ---

    def go_to(self, index: int) -> int:
        last_index = max(0, len(self._questions) - 1)
        self._state.current_question_index = max(0, min(index, last_index))
        return self._state.current_question_index

    def next(self) -> int:
        return self.go_to(self._state.current_question_index + 1)

    def previous(self) -> int:
        return self.go_to(self._state.current_question_index - 1)

    # --- Timer and completion ---

    def tick(self) -> ExamResult | None:
        """Advance the timer by one second; returns the result on expiry."""
        if self._config is None or self._config.mode != "timed" or not self.is_running():
            return None
        self._state.time_remaining -= 1
        if self._state.time_remaining <= 0:
            self._state.time_remaining = 0
            return self._complete("time_expired")
        return None

    def submit(self) -> ExamResult | None:
        if not self._state.is_started:
            raise ExamStateError("Exam has not been started.")
        if self._state.is_completed:
            return None
        return self._complete("submitted")

    def reset(self) -> None:
        self._config = None
        self._questions = []
        self._state = ExamState()

    def _complete(self, reason: CompletionReason) -> ExamResult:
        state = self._state
        state.is_completed = True
        state.end_time = self._clock()
        state.completion_reason = reason

        score = sum(
            1 for question in self._questions
            if state.answers.get(question.id) == question.correct_answer
        )
        total = len(self._questions)
        time_taken = 0
        if state.start_time is not None:
            time_taken = max(0, math.floor((state.end_time - state.start_time).total_seconds()))

        config = self._config
        result = ExamResult(
            id=f"exam_{int(state.end_time.timestamp() * 1000)}_{uuid4().hex[:9]}",
            course_name=config.course_name if config else "Quiz",
            score=score,
            total_questions=total,
            percentage=percentage(score, total),
            time_taken=time_taken,
            completed_at=state.end_time,
            questions=tuple(self._questions),
            answers=dict(state.answers),
            difficulty=config.difficulty if config else "mixed",
            mode=config.mode if config else "practice",
            completion_reason=reason,
        )
        self._history.add(result)
        logger.info(
            "Exam '%s' completed (%s): %d/%d (%d%%)",
            result.course_name,
            reason,
            score,
            total,
            result.percentage,
        )
        return result
