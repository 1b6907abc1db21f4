"""Seed the database with the bundled sample question bank."""
from pathlib import Path

from skill_diag.importer import import_questions
from skill_diag.questions import count_questions

CONTENT_DIR = Path(__file__).parent / "content"


def is_seeded(db_path: str) -> bool:
    """Check whether the question bank already holds any questions."""
    return count_questions(db_path) > 0


def seed_questions(db_path: str) -> int:
    """Insert the sample questions from questions.yaml. Returns the count added."""
    report = import_questions(db_path, str(CONTENT_DIR / "questions.yaml"))
    return report.imported


def seed_all(db_path: str) -> None:
    if is_seeded(db_path):
        return
    seed_questions(db_path)
