# tests/test_seed.py
from skill_diag.models import CATEGORIES
from skill_diag.questions import count_questions, list_questions
from skill_diag.seed import is_seeded, seed_all, seed_questions


def test_is_seeded_false_initially(db):
    assert is_seeded(db) is False


def test_seed_questions(db):
    added = seed_questions(db)
    assert added == 16
    assert is_seeded(db)


def test_seed_covers_every_category(db):
    seed_all(db)
    assert {q.category for q in list_questions(db)} == set(CATEGORIES)


def test_seeded_answers_match_options(db):
    seed_all(db)
    for q in list_questions(db):
        assert q.correct_answer in q.options
        assert len(q.options) == 4


def test_seed_all_is_idempotent(db):
    seed_all(db)
    seed_all(db)
    assert count_questions(db) == 16
