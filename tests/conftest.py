import pytest

from skill_diag.config import Settings
from skill_diag.db import init_db
from skill_diag.questions import add_question
from skill_diag.users import register_user


@pytest.fixture
def tmp_db(tmp_path):
    """Provide a temporary SQLite database path for tests."""
    db_path = str(tmp_path / "test_diagnostic.db")
    return db_path


@pytest.fixture
def db(tmp_db):
    """An initialized, empty database."""
    init_db(tmp_db)
    return tmp_db


@pytest.fixture
def settings(tmp_path):
    return Settings(
        db_path=str(tmp_path / "test_diagnostic.db"),
        test_size=5,
        results_cache=str(tmp_path / "last_results.json"),
    )


@pytest.fixture
def student(db):
    return register_user(db, "Ada", "ada@example.com")


def make_questions(db_path, category="Technical", count=3, topic="Basics"):
    """Insert ``count`` questions whose correct answer is always 'right'."""
    return [
        add_question(db_path, category, topic, f"{category} question {i}?",
                     ["right", "wrong", "other", "none"], "right")
        for i in range(count)
    ]
