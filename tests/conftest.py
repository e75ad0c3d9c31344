import pytest

from quiz_drill.models import Question
from quiz_drill.store import QuestionStore


@pytest.fixture
def tmp_db(tmp_path):
    """Provide a temporary SQLite database path for tests."""
    db_path = str(tmp_path / "test_quiz.db")
    return db_path


@pytest.fixture
def sample_store():
    """A store with one question of each type."""
    store = QuestionStore()
    store.replace_all([
        Question(id="q1", type="single", prompt="Capital of France?", answer="B",
                 options=["Berlin", "Paris", "Rome", "Madrid"], explanation="Paris is the capital."),
        Question(id="q2", type="multiple", prompt="Which are primes?", answer="A,C",
                 options=["2", "4", "5", "9"]),
        Question(id="q3", type="blank", prompt="H2O is commonly called ____.", answer="Water"),
    ])
    return store
