# tests/test_store.py
from conftest import make_questions
from skill_diag.db import get_connection
from skill_diag.models import OVERALL
from skill_diag.store import (
    append_answer, append_result_snapshot, count_completed_tests,
    fetch_answered_question_ids, fetch_latest_overall_snapshot, fetch_pool,
    get_user_results,
)


def test_fetch_pool_empty(db):
    assert fetch_pool(db) == []


def test_fetch_pool_round_trips_options(db):
    make_questions(db, count=2)
    pool = fetch_pool(db)
    assert len(pool) == 2
    assert pool[0].options == ["right", "wrong", "other", "none"]
    assert pool[0].correct_answer == "right"
    assert pool[0].difficulty == "medium"


def test_fetch_answered_question_ids(db, student):
    questions = make_questions(db, count=3)
    append_answer(db, student.user_id, questions[0].id, "right", True)
    append_answer(db, student.user_id, questions[2].id, "wrong", False)
    assert fetch_answered_question_ids(db, student.user_id) == {questions[0].id, questions[2].id}


def test_answered_ids_are_per_user(db, student):
    from skill_diag.users import register_user
    other = register_user(db, "Bob", "bob@example.com")
    q = make_questions(db, count=1)[0]
    append_answer(db, other.user_id, q.id, "right", True)
    assert fetch_answered_question_ids(db, student.user_id) == set()


def test_append_answer_returns_record(db, student):
    q = make_questions(db, count=1)[0]
    record = append_answer(db, student.user_id, q.id, "wrong", False)
    assert record.user_id == student.user_id
    assert record.question_id == q.id
    assert record.selected_option == "wrong"
    assert record.is_correct is False
    assert record.answered_at is not None


def test_append_answer_upserts_same_question(db, student):
    q = make_questions(db, count=1)[0]
    first = append_answer(db, student.user_id, q.id, "wrong", False)
    second = append_answer(db, student.user_id, q.id, "right", True)
    assert second.id == first.id
    assert second.is_correct is True
    conn = get_connection(db)
    count = conn.execute("SELECT COUNT(*) FROM user_answers WHERE question_id = ?", (q.id,)).fetchone()[0]
    conn.close()
    assert count == 1


def test_append_result_snapshot_and_latest(db, student):
    assert fetch_latest_overall_snapshot(db, student.user_id) is None
    append_result_snapshot(db, student.user_id, OVERALL, 3, 5, 60, [], [], "2026-01-01T10:00:00")
    append_result_snapshot(db, student.user_id, "Logical", 1, 2, 50, [], [], "2026-01-01T10:00:00")
    append_result_snapshot(db, student.user_id, OVERALL, 5, 5, 100, [], ["Logical"], "2026-02-01T10:00:00")
    latest = fetch_latest_overall_snapshot(db, student.user_id)
    assert latest.accuracy == 100
    assert latest.strong_topics == ["Logical"]
    assert count_completed_tests(db, student.user_id) == 2


def test_get_user_results_newest_first(db, student):
    append_result_snapshot(db, student.user_id, OVERALL, 1, 2, 50, [], [], "2026-01-01T10:00:00")
    append_result_snapshot(db, student.user_id, OVERALL, 2, 2, 100, [], [], "2026-03-01T10:00:00")
    results = get_user_results(db, student.user_id)
    assert [r.accuracy for r in results] == [100, 50]


def test_snapshot_topics_round_trip(db, student):
    append_result_snapshot(db, student.user_id, OVERALL, 1, 4, 25, ["Verbal", "Logical"], [])
    snap = get_user_results(db, student.user_id)[0]
    assert snap.weak_topics == ["Verbal", "Logical"]
    assert snap.strong_topics == []
