"""Utilities for exporting exam results as summary and question sheets (CSV)."""

from __future__ import annotations

import csv
from dataclasses import dataclass
from datetime import date
import io
from pathlib import Path
import re

from manaquiz.core.models import ExamResult
from manaquiz.utils.formatting import format_time

QUESTION_SHEET_HEADER = ("Question", "Your Answer", "Correct Answer", "Result", "Difficulty", "Category")
NOT_ANSWERED = "Not answered"

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9]")


@dataclass(frozen=True, slots=True)
class ResultReport:
    """Both sheets of an exported result, as rows of strings."""

    summary: list[list[str]]
    questions: list[list[str]]
    base_name: str


def performance_level(percentage: int) -> str:
    if percentage >= 90:
        return "Excellent"
    if percentage >= 75:
        return "Good"
    if percentage >= 60:
        return "Average"
    return "Needs Improvement"


def report_base_name(result: ExamResult, exported_on: date | None = None) -> str:
    exported_on = exported_on or result.completed_at.date()
    course = _UNSAFE_FILENAME_CHARS.sub("_", result.course_name)
    return f"{course}_Results_{exported_on.isoformat()}"


def build_result_report(result: ExamResult, exported_on: date | None = None) -> ResultReport:
    summary = [
        ["Course Name", result.course_name],
        ["Score", f"{result.score}/{result.total_questions}"],
        ["Percentage", f"{result.percentage}%"],
        ["Time Taken", format_time(result.time_taken)],
        ["Date", result.completed_at.date().isoformat()],
        ["Performance Level", performance_level(result.percentage)],
    ]

    questions = [list(QUESTION_SHEET_HEADER)]
    for question in result.questions:
        selected = result.answers.get(question.id)
        questions.append(
            [
                question.question,
                selected if selected else NOT_ANSWERED,
                question.correct_answer,
                "Correct" if result.is_correct(question) else "Incorrect",
                question.difficulty,
                question.category,
            ]
        )

    return ResultReport(
        summary=summary,
        questions=questions,
        base_name=report_base_name(result, exported_on),
    )


def render_sheet_csv(rows: list[list[str]]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerows(rows)
    return buffer.getvalue()


def save_result_report(directory: Path, result: ExamResult, exported_on: date | None = None) -> tuple[Path, Path]:
    """Write ``<course>_Results_<date>_summary.csv`` and ``..._questions.csv``."""

    report = build_result_report(result, exported_on)
    directory = directory.resolve()
    directory.mkdir(parents=True, exist_ok=True)
    summary_path = directory / f"{report.base_name}_summary.csv"
    questions_path = directory / f"{report.base_name}_questions.csv"
    summary_path.write_text(render_sheet_csv(report.summary), encoding="utf-8")
    questions_path.write_text(render_sheet_csv(report.questions), encoding="utf-8")
    return summary_path, questions_path
