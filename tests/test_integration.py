# tests/test_integration.py
"""End-to-end test of the core workflow."""
import random

from skill_diag.analytics import get_category_accuracy, get_overview_stats, get_topic_breakdown
from skill_diag.db import init_db
from skill_diag.models import OVERALL
from skill_diag.seed import seed_all
from skill_diag.session import load_cached_results, start_test, submit_test
from skill_diag.store import fetch_answered_question_ids, fetch_latest_overall_snapshot, get_user_results
from skill_diag.users import register_user


def test_full_test_workflow(tmp_db, settings):
    init_db(tmp_db)
    seed_all(tmp_db)
    user = register_user(tmp_db, "Ada", "ada@example.com")

    # First test: 5 of the 16 seeded questions, Technical answered right, rest wrong.
    first = start_test(tmp_db, user.user_id, settings, rng=random.Random(7))
    assert len(first) == 5
    answers = [
        q.correct_answer if q.category == "Technical"
        else next(o for o in q.options if o != q.correct_answer)
        for q in first
    ]
    report, outcome = submit_test(tmp_db, user.user_id, first, answers, settings)
    assert outcome.ok
    technical = sum(1 for q in first if q.category == "Technical")
    assert report.total_correct == technical
    assert load_cached_results(settings.results_cache, user.user_id) == report

    snaps = get_user_results(tmp_db, user.user_id)
    assert sum(1 for s in snaps if s.category == OVERALL) == 1
    assert {s.category for s in snaps} == {OVERALL, *report.categories}

    # Second test avoids the questions already answered.
    answered = fetch_answered_question_ids(tmp_db, user.user_id)
    assert answered == {q.id for q in first}
    second = start_test(tmp_db, user.user_id, settings, rng=random.Random(8))
    assert not {q.id for q in second} & answered
    submit_test(tmp_db, user.user_id, second, [q.correct_answer for q in second], settings)

    latest = fetch_latest_overall_snapshot(tmp_db, user.user_id)
    assert latest.accuracy == 100
    assert latest.total_questions == 5

    stats = get_overview_stats(tmp_db)
    assert stats["tests_taken"] == 2
    assert stats["total_users"] == 1
    assert any(row["name"] == OVERALL for row in get_category_accuracy(tmp_db))
    assert len(get_topic_breakdown(tmp_db, user.user_id)) > 0
