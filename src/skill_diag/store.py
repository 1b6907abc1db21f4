"""SQLite-backed question pool, answer history and result stores."""
import json
import logging
import sqlite3
import uuid
from datetime import datetime
from typing import Optional

from skill_diag.db import DEFAULT_TIMEOUT, get_connection
from skill_diag.models import OVERALL, AnswerRecord, Question, TestResultSnapshot

logger = logging.getLogger(__name__)


def question_from_row(row: sqlite3.Row) -> Question:
    return Question(
        id=row["id"],
        category=row["category"],
        topic=row["topic"],
        prompt=row["question"],
        options=json.loads(row["options"]),
        correct_answer=row["correct_answer"],
        difficulty=row["difficulty"] or "medium",
        created_at=row["created_at"],
    )


def snapshot_from_row(row: sqlite3.Row) -> TestResultSnapshot:
    return TestResultSnapshot(
        id=row["id"],
        user_id=row["user_id"],
        category=row["category"],
        score=row["score"],
        total_questions=row["total_questions"],
        accuracy=row["accuracy"],
        weak_topics=json.loads(row["weak_topics"] or "[]"),
        strong_topics=json.loads(row["strong_topics"] or "[]"),
        created_at=row["created_at"],
    )


def fetch_pool(db_path: str, timeout: float = DEFAULT_TIMEOUT) -> list[Question]:
    """Full read of the question bank, oldest first."""
    conn = get_connection(db_path, timeout)
    try:
        rows = conn.execute(
            "SELECT * FROM questions ORDER BY created_at, rowid"
        ).fetchall()
    finally:
        conn.close()
    return [question_from_row(r) for r in rows]


def fetch_answered_question_ids(db_path: str, user_id: str, timeout: float = DEFAULT_TIMEOUT) -> set[str]:
    conn = get_connection(db_path, timeout)
    try:
        rows = conn.execute(
            "SELECT question_id FROM user_answers WHERE user_id = ?", (user_id,)
        ).fetchall()
    finally:
        conn.close()
    return {r["question_id"] for r in rows}


def append_answer(
    db_path: str,
    user_id: str,
    question_id: str,
    selected_option: str,
    is_correct: bool,
    answered_at: Optional[str] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> AnswerRecord:
    """Record an answer, replacing any earlier answer to the same question.

    At most one row exists per (user, question); a repeat answer overwrites
    the selection, correctness and timestamp of the stored row.
    """
    answered_at = answered_at or datetime.now().isoformat()
    conn = get_connection(db_path, timeout)
    try:
        conn.execute(
            """INSERT INTO user_answers
            (id, user_id, question_id, selected_option, is_correct, answered_at)
            VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT(user_id, question_id) DO UPDATE SET
                selected_option = excluded.selected_option,
                is_correct = excluded.is_correct,
                answered_at = excluded.answered_at""",
            (str(uuid.uuid4()), user_id, question_id, selected_option, int(is_correct), answered_at),
        )
        conn.commit()
        row = conn.execute(
            "SELECT * FROM user_answers WHERE user_id = ? AND question_id = ?",
            (user_id, question_id),
        ).fetchone()
    except sqlite3.Error as e:
        logger.error("append_answer failed for user=%s question=%s: %s", user_id, question_id, e)
        raise
    finally:
        conn.close()
    return AnswerRecord(
        id=row["id"],
        user_id=row["user_id"],
        question_id=row["question_id"],
        selected_option=row["selected_option"],
        is_correct=bool(row["is_correct"]),
        answered_at=row["answered_at"],
    )


def append_result_snapshot(
    db_path: str,
    user_id: str,
    category: str,
    score: int,
    total_questions: int,
    accuracy: int,
    weak_topics: list[str],
    strong_topics: list[str],
    created_at: Optional[str] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> TestResultSnapshot:
    snapshot = TestResultSnapshot(
        id=str(uuid.uuid4()),
        user_id=user_id,
        category=category,
        score=score,
        total_questions=total_questions,
        accuracy=accuracy,
        weak_topics=list(weak_topics),
        strong_topics=list(strong_topics),
        created_at=created_at or datetime.now().isoformat(),
    )
    conn = get_connection(db_path, timeout)
    try:
        conn.execute(
            """INSERT INTO test_results
            (id, user_id, category, score, total_questions, accuracy, weak_topics, strong_topics, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                snapshot.id, user_id, category, score, total_questions, accuracy,
                json.dumps(snapshot.weak_topics), json.dumps(snapshot.strong_topics),
                snapshot.created_at,
            ),
        )
        conn.commit()
    except sqlite3.Error as e:
        logger.error("append_result_snapshot failed for user=%s category=%s: %s", user_id, category, e)
        raise
    finally:
        conn.close()
    return snapshot


def fetch_latest_overall_snapshot(
    db_path: str, user_id: str, timeout: float = DEFAULT_TIMEOUT
) -> Optional[TestResultSnapshot]:
    conn = get_connection(db_path, timeout)
    try:
        row = conn.execute(
            """SELECT * FROM test_results
            WHERE user_id = ? AND category = ?
            ORDER BY created_at DESC, rowid DESC LIMIT 1""",
            (user_id, OVERALL),
        ).fetchone()
    finally:
        conn.close()
    return snapshot_from_row(row) if row else None


def get_user_results(db_path: str, user_id: str) -> list[TestResultSnapshot]:
    """All snapshots for a user, newest first."""
    conn = get_connection(db_path)
    rows = conn.execute(
        "SELECT * FROM test_results WHERE user_id = ? ORDER BY created_at DESC, rowid DESC",
        (user_id,),
    ).fetchall()
    conn.close()
    return [snapshot_from_row(r) for r in rows]


def count_completed_tests(db_path: str, user_id: str) -> int:
    conn = get_connection(db_path)
    count = conn.execute(
        "SELECT COUNT(*) FROM test_results WHERE user_id = ? AND category = ?",
        (user_id, OVERALL),
    ).fetchone()[0]
    conn.close()
    return count
