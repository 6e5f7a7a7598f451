from __future__ import annotations

import pytest

from manaquiz.core.models import ExamConfig
from manaquiz.core.services.exam_session import ExamSession, ExamStateError
from manaquiz.core.services.result_history import ResultHistory


@pytest.fixture
def history() -> ResultHistory:
    return ResultHistory()


@pytest.fixture
def session(history, rng, clock) -> ExamSession:
    return ExamSession(history=history, rng=rng, clock=clock)


def _timed(num_questions: int = 5, duration: int = 10, difficulty: str = "mixed") -> ExamConfig:
    return ExamConfig(
        course_name="Algorithms",
        num_questions=num_questions,
        duration=duration,
        difficulty=difficulty,
        mode="timed",
    )


def _answer_all_correctly(session: ExamSession) -> None:
    for question in session.get_questions():
        session.answer(question.id, question.correct_answer)


def test_initial_state_is_not_started(session):
    assert session.get_status() == "not_started"
    assert session.get_current_question() is None
    assert not session.is_running()


def test_start_requires_configuration(session, synthetic_questions):
    with pytest.raises(ExamStateError):
        session.start(synthetic_questions)


def test_start_samples_requested_number(session, synthetic_questions):
    session.configure(_timed(num_questions=5))
    session.start(synthetic_questions)

    state = session.get_state()
    assert session.get_status() == "started"
    assert len(session.get_questions()) == 5
    assert state.time_remaining == 600
    assert state.current_question_index == 0
    assert state.answers == {}


def test_difficulty_filter_applies_before_truncation(session, synthetic_questions):
    session.configure(_timed(num_questions=10, difficulty="hard"))
    session.start(synthetic_questions)

    questions = session.get_questions()
    assert len(questions) == 4
    assert all(q.difficulty == "hard" for q in questions)


def test_practice_mode_has_no_timer(session, synthetic_questions):
    session.configure(ExamConfig(course_name="Drill", num_questions=3, mode="practice"))
    session.start(synthetic_questions)

    assert session.get_state().time_remaining == 0
    assert session.tick() is None
    assert session.get_status() == "started"


def test_cannot_start_twice_or_reconfigure_mid_run(session, synthetic_questions):
    session.configure(_timed())
    session.start(synthetic_questions)

    with pytest.raises(ExamStateError):
        session.start(synthetic_questions)
    with pytest.raises(ExamStateError):
        session.configure(_timed(num_questions=2))


def test_answer_requires_running_exam(session, synthetic_questions):
    with pytest.raises(ExamStateError):
        session.answer("q0", "right 0")

    session.configure(_timed())
    session.start(synthetic_questions)
    session.submit()

    with pytest.raises(ExamStateError):
        session.answer("q0", "right 0")


def test_answers_overwrite(session, synthetic_questions):
    session.configure(_timed())
    session.start(synthetic_questions)
    question = session.get_current_question()

    session.answer(question.id, "first")
    session.answer(question.id, question.correct_answer)

    assert session.get_state().answers == {question.id: question.correct_answer}


def test_navigation_clamps_to_bounds(session, synthetic_questions):
    session.configure(_timed(num_questions=3))
    session.start(synthetic_questions)

    assert session.previous() == 0
    assert session.next() == 1
    assert session.next() == 2
    assert session.next() == 2
    assert session.go_to(-4) == 0
    assert session.go_to(99) == 2
    assert session.get_current_question() == session.get_questions()[2]


def test_marking(session, synthetic_questions):
    session.configure(_timed())
    session.start(synthetic_questions)

    session.mark("q1")
    session.mark("q1")
    assert session.get_state().marked == {"q1"}
    assert session.toggle_mark("q1") is False
    assert session.toggle_mark("q2") is True
    session.unmark("q2")
    assert session.get_state().marked == set()


def test_state_copy_is_detached(session, synthetic_questions):
    session.configure(_timed())
    session.start(synthetic_questions)

    snapshot = session.get_state()
    snapshot.answers["q0"] = "tampered"
    assert session.get_state().answers == {}


def test_submit_scores_and_records_history(session, history, clock, synthetic_questions):
    session.configure(_timed(num_questions=4))
    session.start(synthetic_questions)
    questions = session.get_questions()
    session.answer(questions[0].id, questions[0].correct_answer)
    session.answer(questions[1].id, questions[1].correct_answer)
    session.answer(questions[2].id, "nope")
    clock.advance(seconds=95.7)

    result = session.submit()

    assert result.score == 2
    assert result.total_questions == 4
    assert result.percentage == 50
    assert result.time_taken == 95
    assert result.completion_reason == "submitted"
    assert result.mode == "timed"
    assert result.id.startswith("exam_")
    assert history.get_all() == [result]
    assert session.get_status() == "completed"


def test_submit_is_only_effective_once(session, history, synthetic_questions):
    session.configure(_timed())
    session.start(synthetic_questions)

    assert session.submit() is not None
    assert session.submit() is None
    assert len(history) == 1


def test_submit_before_start_raises(session):
    with pytest.raises(ExamStateError):
        session.submit()


def test_timer_expiry_auto_submits(session, history, synthetic_questions):
    session.configure(_timed(num_questions=2, duration=10))
    session.start(synthetic_questions)
    _answer_all_correctly(session)

    for _ in range(599):
        assert session.tick() is None
    assert session.get_state().time_remaining == 1

    result = session.tick()

    assert result is not None
    assert result.completion_reason == "time_expired"
    assert result.score == 2
    assert session.get_state().time_remaining == 0
    assert session.tick() is None
    assert len(history) == 1


def test_percentage_rounds_half_up(session, synthetic_questions):
    session.configure(_timed(num_questions=8))
    session.start(synthetic_questions)
    for question in session.get_questions()[:5]:
        session.answer(question.id, question.correct_answer)

    assert session.submit().percentage == 63


def test_reset_returns_to_not_started(session, synthetic_questions):
    session.configure(_timed())
    session.start(synthetic_questions)
    session.submit()

    session.reset()

    assert session.get_status() == "not_started"
    assert session.get_config() is None
    assert session.get_questions() == []
