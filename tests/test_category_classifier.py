from __future__ import annotations

import pytest

from manaquiz.core.category_classifier import classify_category, subject_scores


def test_subject_with_most_keywords_wins():
    assert classify_category("notes.txt", "What is a binary tree?") == "Computer Science"
    assert classify_category("", "Compute the derivative of the integral") == "Mathematics"


def test_tie_keeps_earlier_subject():
    scores = subject_scores("", "algorithm equation")
    assert scores["Computer Science"] == scores["Mathematics"] == 1
    assert classify_category("", "algorithm equation") == "Computer Science"


def test_file_name_contributes_keywords():
    assert classify_category("biology_cells.txt", "Who wrote Hamlet?") == "Biology"


@pytest.mark.parametrize(
    ("filename", "expected"),
    [
        ("Homework_3.txt", "Assignment"),
        ("midterm-exam.txt", "Exam Preparation"),
        ("lecture.txt", "Lecture Notes"),
        ("poem.txt", "General"),
    ],
)
def test_file_name_fallbacks_when_nothing_matches(filename, expected):
    assert classify_category(filename, "Who wrote Hamlet?") == expected
