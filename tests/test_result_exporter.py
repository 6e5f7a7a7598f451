from __future__ import annotations

import csv
from datetime import date
import io

import pytest

from manaquiz.core.models import ExamResult
from manaquiz.core.result_exporter import (
    NOT_ANSWERED,
    QUESTION_SHEET_HEADER,
    build_result_report,
    performance_level,
    render_sheet_csv,
    report_base_name,
    save_result_report,
)
from tests.conftest import FIXED_NOW, make_question


@pytest.fixture
def result() -> ExamResult:
    questions = tuple(make_question(i, "easy", "Algorithms") for i in range(4))
    return ExamResult(
        id="exam_1",
        course_name="Intro C++, Part 1",
        score=2,
        total_questions=4,
        percentage=50,
        time_taken=3725,
        completed_at=FIXED_NOW,
        questions=questions,
        answers={"q0": "right 0", "q1": "right 1", "q2": "wrong 2a"},
    )


@pytest.mark.parametrize(
    ("value", "level"),
    [(100, "Excellent"), (90, "Excellent"), (75, "Good"), (60, "Average"), (59, "Needs Improvement")],
)
def test_performance_levels(value, level):
    assert performance_level(value) == level


def test_base_name_replaces_unsafe_characters(result):
    assert report_base_name(result) == "Intro_C____Part_1_Results_2024-03-15"
    assert report_base_name(result, date(2024, 4, 1)).endswith("_Results_2024-04-01")


def test_summary_sheet(result):
    report = build_result_report(result)

    assert report.summary == [
        ["Course Name", "Intro C++, Part 1"],
        ["Score", "2/4"],
        ["Percentage", "50%"],
        ["Time Taken", "1:02:05"],
        ["Date", "2024-03-15"],
        ["Performance Level", "Needs Improvement"],
    ]


def test_question_sheet_rows(result):
    rows = build_result_report(result).questions

    assert tuple(rows[0]) == QUESTION_SHEET_HEADER
    assert rows[1] == ["Synthetic question 0?", "right 0", "right 0", "Correct", "easy", "Algorithms"]
    assert rows[3][1:4] == ["wrong 2a", "right 2", "Incorrect"]
    assert rows[4][1] == NOT_ANSWERED
    assert rows[4][3] == "Incorrect"


def test_csv_rendering_quotes_commas(result):
    text = render_sheet_csv(build_result_report(result).summary)

    assert '"Intro C++, Part 1"' in text
    assert list(csv.reader(io.StringIO(text)))[0] == ["Course Name", "Intro C++, Part 1"]


def test_save_writes_both_sheets(tmp_path, result):
    summary_path, questions_path = save_result_report(tmp_path / "reports", result)

    assert summary_path.name == "Intro_C____Part_1_Results_2024-03-15_summary.csv"
    assert questions_path.name == "Intro_C____Part_1_Results_2024-03-15_questions.csv"
    rows = list(csv.reader(io.StringIO(questions_path.read_text(encoding="utf-8"))))
    assert len(rows) == 5
