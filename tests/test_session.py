# tests/test_session.py
import random
import sqlite3
from dataclasses import replace
from unittest.mock import patch

import pytest

from conftest import make_questions
from skill_diag.errors import IncompleteSubmission, PoolTooSmall, PoolUnavailable
from skill_diag.session import (
    load_cached_results, save_cached_results, start_test, submit_test,
)
from skill_diag.store import append_answer, fetch_latest_overall_snapshot
from skill_diag.users import register_user


def test_start_test_selects_target_size(db, student, settings):
    make_questions(db, count=8)
    questions = start_test(db, student.user_id, settings, rng=random.Random(0))
    assert len(questions) == 5


def test_start_test_prefers_unanswered(db, student, settings):
    pool = make_questions(db, count=10)
    for q in pool[:5]:
        append_answer(db, student.user_id, q.id, "right", True)
    questions = start_test(db, student.user_id, settings)
    assert {q.id for q in questions} == {q.id for q in pool[5:]}


def test_start_test_falls_back_when_exhausted(db, student, settings):
    pool = make_questions(db, count=6)
    for q in pool[:4]:
        append_answer(db, student.user_id, q.id, "right", True)
    questions = start_test(db, student.user_id, settings)
    assert len(questions) == 5


def test_start_test_empty_pool_raises(db, student, settings):
    with pytest.raises(PoolTooSmall) as exc:
        start_test(db, student.user_id, settings)
    assert exc.value.available == 0


def test_start_test_below_minimum_raises(db, student, settings):
    make_questions(db, count=3)
    with pytest.raises(PoolTooSmall):
        start_test(db, student.user_id, replace(settings, min_pool_size=4))


def test_start_test_store_error_is_pool_unavailable(db, student, settings):
    with patch("skill_diag.session.fetch_pool", side_effect=sqlite3.OperationalError("locked")):
        with pytest.raises(PoolUnavailable):
            start_test(db, student.user_id, settings)


def test_submit_test_scores_caches_and_persists(db, student, settings):
    make_questions(db, count=5)
    questions = start_test(db, student.user_id, settings)
    selections = ["right", "right", "wrong", "right", "right"]
    report, outcome = submit_test(db, student.user_id, questions, selections, settings)
    assert report.total_correct == 4
    assert report.total_score == 80
    assert outcome.ok
    assert load_cached_results(settings.results_cache, student.user_id) == report
    assert fetch_latest_overall_snapshot(db, student.user_id).accuracy == 80


def test_submit_test_incomplete_raises_before_writing(db, student, settings):
    make_questions(db, count=5)
    questions = start_test(db, student.user_id, settings)
    with pytest.raises(IncompleteSubmission):
        submit_test(db, student.user_id, questions, ["right", None, "right", "right", "right"], settings)
    assert fetch_latest_overall_snapshot(db, student.user_id) is None
    assert load_cached_results(settings.results_cache, student.user_id) is None


def test_submit_test_survives_persistence_failure(db, student, settings):
    make_questions(db, count=5)
    questions = start_test(db, student.user_id, settings)
    with patch("skill_diag.persist.append_answer", side_effect=sqlite3.OperationalError("readonly")):
        report, outcome = submit_test(db, student.user_id, questions, ["right"] * 5, settings)
    assert report.total_score == 100
    assert len(outcome.errors) == 5
    assert outcome.snapshots_written == 2
    assert load_cached_results(settings.results_cache, student.user_id) == report


def test_load_cached_results_missing(tmp_path):
    assert load_cached_results(str(tmp_path / "none.json"), "u1") is None


def test_load_cached_results_corrupt(tmp_path):
    (tmp_path / "bad-u1.json").write_text("{not json")
    assert load_cached_results(str(tmp_path / "bad.json"), "u1") is None


def test_cached_results_round_trip(db, tmp_path):
    from skill_diag.scoring import score_submission
    questions = make_questions(db, "Logical", 2)
    report = score_submission(questions, ["right", "wrong"])
    path = str(tmp_path / "nested" / "results.json")
    save_cached_results(path, report, "u1")
    assert load_cached_results(path, "u1") == report
    assert (tmp_path / "nested" / "results-u1.json").exists()


def test_cached_results_are_kept_per_user(db, tmp_path):
    from skill_diag.scoring import score_submission
    questions = make_questions(db, "Logical", 2)
    path = str(tmp_path / "results.json")
    save_cached_results(path, score_submission(questions, ["right", "right"]), "ada")
    save_cached_results(path, score_submission(questions, ["wrong", "wrong"]), "bob")
    assert load_cached_results(path, "ada").total_score == 100
    assert load_cached_results(path, "bob").total_score == 0
    assert load_cached_results(path, "cy") is None


def test_load_cached_results_ignores_other_users_file(db, tmp_path):
    from skill_diag.scoring import score_submission
    questions = make_questions(db, "Logical", 2)
    path = str(tmp_path / "results.json")
    save_cached_results(path, score_submission(questions, ["right", "right"]), "bob")
    (tmp_path / "results-ada.json").write_text((tmp_path / "results-bob.json").read_text())
    assert load_cached_results(path, "ada") is None


def test_submit_test_does_not_overwrite_other_users_results(db, student, settings):
    bob = register_user(db, "Bob", "bob@example.com")
    make_questions(db, count=5)
    questions = start_test(db, student.user_id, settings)
    submit_test(db, student.user_id, questions, ["right"] * 5, settings)
    submit_test(db, bob.user_id, questions, ["wrong"] * 5, settings)
    assert load_cached_results(settings.results_cache, student.user_id).total_score == 100
    assert load_cached_results(settings.results_cache, bob.user_id).total_score == 0
