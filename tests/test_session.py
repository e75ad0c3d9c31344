# tests/test_session.py
import random

import pytest

from quiz_drill.models import Question, SessionError
from quiz_drill.session import (
    ENCOURAGEMENTS, QuizSession, SessionState, grade_response,
)
from quiz_drill.store import QuestionStore


def _single_store():
    store = QuestionStore()
    store.replace_all([Question(id="only", type="single", prompt="Pick B", answer="B",
                                options=["first", "second", "third", "fourth"])])
    return store


# --- Grading ---


def test_grade_blank_trims_and_ignores_case():
    q = Question(id="b", type="blank", prompt="p", answer=" Water ")
    assert grade_response(q, "  water") is True
    assert grade_response(q, "WATER") is True
    assert grade_response(q, "wat er") is False


def test_grade_single_by_letter_or_text():
    q = Question(id="s", type="single", prompt="p", answer="B", options=["Berlin", "Paris"])
    assert grade_response(q, "B") is True
    assert grade_response(q, " b ") is True
    assert grade_response(q, "Paris") is True
    assert grade_response(q, "A") is False
    assert grade_response(q, "AB") is False


def test_grade_single_with_text_answer():
    q = Question(id="s", type="single", prompt="p", answer="Paris", options=["Berlin", "Paris"])
    assert grade_response(q, "B") is True
    assert grade_response(q, "Paris") is True
    assert grade_response(q, "Berlin") is False


def test_grade_multiple_uses_set_equality():
    q = Question(id="m", type="multiple", prompt="p", answer="A,C", options=["2", "4", "5", "9"])
    assert grade_response(q, "AC") is True
    assert grade_response(q, "c a") is True
    assert grade_response(q, ["2", "5"]) is True
    assert grade_response(q, "A") is False
    assert grade_response(q, "ACD") is False


# --- State machine ---


def test_start_rejects_empty_queue():
    session = QuizSession(QuestionStore())
    with pytest.raises(SessionError):
        session.start([])
    assert session.state == SessionState.IDLE


def test_submit_correct_scenario():
    store = _single_store()
    session = QuizSession(store)
    session.start(["only"])
    assert session.state == SessionState.PRESENTING
    result = session.submit("B")
    assert result.correct is True
    assert store.get("only").mastery_level == 1
    assert store.mistake_ids == []
    assert session.state == SessionState.ANSWERED


def test_submit_incorrect_scenario():
    store = _single_store()
    session = QuizSession(store)
    session.start(["only"])
    result = session.submit("A")
    assert result.correct is False
    assert result.expected == "B"
    assert store.get("only").mastery_level == -1
    assert store.mistake_ids == ["only"]
    assert store.stats.total_answered == 1
    assert store.stats.correct_count == 0


def test_double_submit_does_not_double_score():
    store = _single_store()
    session = QuizSession(store)
    session.start(["only"])
    first = session.submit("B")
    second = session.submit("A")
    assert second is first
    assert store.stats.total_answered == 1
    assert store.get("only").mastery_level == 1


def test_submit_when_idle_raises():
    with pytest.raises(SessionError):
        QuizSession(_single_store()).submit("B")


def test_advance_requires_answer():
    session = QuizSession(_single_store())
    session.start(["only"])
    with pytest.raises(SessionError):
        session.advance()


def test_advance_through_queue_then_complete(sample_store):
    session = QuizSession(sample_store)
    session.start(["q1", "q2", "q3"])
    session.submit("B")
    assert session.advance() is False
    assert session.position == 1
    assert session.state == SessionState.PRESENTING
    assert session.result is None
    session.submit("AC")
    assert session.advance() is False
    session.submit("water")
    assert session.advance() is True
    assert session.state == SessionState.IDLE
    assert session.answered == 3
    assert session.correct == 3


def test_exit_keeps_committed_answers(sample_store):
    session = QuizSession(sample_store)
    session.start(["q1", "q2"])
    session.submit("A")
    session.exit()
    assert session.state == SessionState.IDLE
    assert session.current_question is None
    assert sample_store.mistake_ids == ["q1"]
    assert sample_store.stats.total_answered == 1


def test_exit_from_idle_is_allowed():
    session = QuizSession(QuestionStore())
    session.exit()
    assert session.state == SessionState.IDLE


def test_three_wrong_answers_trigger_encouragement(sample_store):
    session = QuizSession(sample_store, rng=random.Random(3))
    session.start(["q1", "q2", "q3"])
    assert session.submit("A").encouragement is None
    session.advance()
    assert session.submit("B").encouragement is None
    session.advance()
    result = session.submit("fire")
    assert session.wrong_streak == 3
    assert result.encouragement in ENCOURAGEMENTS


def test_correct_answer_resets_wrong_streak(sample_store):
    session = QuizSession(sample_store)
    session.start(["q1", "q2", "q3"])
    session.submit("A")
    session.advance()
    session.submit("B")
    session.advance()
    result = session.submit("water")
    assert session.wrong_streak == 0
    assert result.encouragement is None


def test_persist_called_after_each_answer(sample_store):
    saved = []
    session = QuizSession(sample_store, persist=lambda s: saved.append(s.stats.total_answered))
    session.start(["q1", "q2"])
    session.submit("B")
    session.submit("B")
    session.advance()
    session.submit("A")
    assert saved == [1, 2]


def test_persist_failure_does_not_break_session(sample_store):
    def broken(store):
        raise OSError("disk full")

    session = QuizSession(sample_store, persist=broken)
    session.start(["q1"])
    result = session.submit("B")
    assert result.correct is True
    assert session.state == SessionState.ANSWERED


def test_dismiss_current_removes_mistake_and_saves(sample_store):
    saved = []
    sample_store.record_answer("q2", False)
    session = QuizSession(sample_store, persist=lambda s: saved.append(list(s.mistake_ids)))
    session.start(["q2"])
    session.submit("B")
    session.dismiss_current()
    assert sample_store.mistake_ids == []
    assert saved[-1] == []


def test_mistake_review_queue_survives_dismissal(sample_store):
    sample_store.record_answer("q1", False)
    sample_store.record_answer("q3", False)
    session = QuizSession(sample_store)
    session.start(list(sample_store.mistake_ids))
    session.submit("A")
    session.dismiss_current()
    session.advance()
    assert session.current_question.id == "q3"


def test_grade_multiple_with_option_text_answer():
    q = Question(id="m", type="multiple", prompt="p", answer="2,5", options=["2", "4", "5", "9"])
    assert grade_response(q, "AC") is True
    assert grade_response(q, "A,C") is True
    assert grade_response(q, ["2", "5"]) is True
    assert grade_response(q, "5；2") is True
    assert grade_response(q, "A") is False
    assert grade_response(q, "2,4") is False


def test_grade_multiple_mixed_text_and_letters():
    q = Question(id="m", type="multiple", prompt="p", answer="Red, Blue",
                 options=["Red", "Green", "Blue"])
    assert grade_response(q, "a c") is True
    assert grade_response(q, "Blue/Red") is True
    assert grade_response(q, "Red, Green") is False
