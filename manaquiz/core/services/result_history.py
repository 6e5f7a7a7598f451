"""Service keeping the results of completed exams."""

from __future__ import annotations

from dataclasses import dataclass

from manaquiz.core.models import ExamResult


@dataclass(slots=True)
class ResultSummaryRow:
    """Compact snapshot of a result for listings."""

    id: str
    course_name: str
    score: int
    total_questions: int
    percentage: int
    time_taken: int
    completed_at: str
    completion_reason: str


def summarize_result(result: ExamResult) -> ResultSummaryRow:
    return ResultSummaryRow(
        id=result.id,
        course_name=result.course_name,
        score=result.score,
        total_questions=result.total_questions,
        percentage=result.percentage,
        time_taken=result.time_taken,
        completed_at=result.completed_at.isoformat(),
        completion_reason=result.completion_reason,
    )


class ResultHistory:
    """Append-only log of exam results, oldest first."""

    def __init__(self, results: list[ExamResult] | None = None) -> None:
        self._results: list[ExamResult] = list(results or [])

    def add(self, result: ExamResult) -> None:
        self._results.append(result)

    def get(self, result_id: str) -> ExamResult:
        for result in self._results:
            if result.id == result_id:
                return result
        raise KeyError(f"Unknown result id {result_id}")

    def get_all(self) -> list[ExamResult]:
        return list(self._results)

    def summaries(self) -> list[ResultSummaryRow]:
        return [summarize_result(result) for result in self._results]

    def replace(self, results: list[ExamResult]) -> None:
        self._results = list(results)

    def clear(self) -> None:
        self._results.clear()

    def __len__(self) -> int:
        return len(self._results)
