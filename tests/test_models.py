from __future__ import annotations

import pytest

from manaquiz.core.models import Question


def _question(options, correct_answer="A"):
    return Question(id="q", question="Pick one", options=tuple(options), correct_answer=correct_answer)


def test_valid_question():
    assert _question(["A", "B", "C", "D"]).difficulty == "medium"


@pytest.mark.parametrize(
    ("options", "correct_answer", "message"),
    [
        (["A", "B", "C"], "A", "exactly four"),
        (["A", " ", "C", "D"], "A", "blank"),
        (["A", "A", "C", "D"], "A", "distinct"),
        (["A", "B", "C", "D"], "E", "one of the options"),
    ],
)
def test_invalid_questions_are_rejected(options, correct_answer, message):
    with pytest.raises(ValueError, match=message):
        _question(options, correct_answer)
