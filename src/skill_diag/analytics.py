"""Aggregate statistics for the admin dashboard and per-user review."""
import math

from skill_diag.db import get_connection
from skill_diag.models import OVERALL
from skill_diag.scoring import classify, percentage


def _round(value: float) -> int:
    return math.floor(value + 0.5)


def get_overview_stats(db_path: str) -> dict:
    conn = get_connection(db_path)
    users = conn.execute("SELECT COUNT(*) FROM profiles").fetchone()[0]
    questions = conn.execute("SELECT COUNT(*) FROM questions").fetchone()[0]
    row = conn.execute(
        "SELECT COUNT(*) as tests, AVG(accuracy) as avg FROM test_results WHERE category = ?",
        (OVERALL,),
    ).fetchone()
    conn.close()
    return {
        "total_users": users,
        "total_questions": questions,
        "tests_taken": row["tests"],
        "avg_accuracy": _round(row["avg"]) if row["avg"] is not None else 0,
    }


def get_category_accuracy(db_path: str) -> list[dict]:
    """Snapshot count and mean accuracy per category label, Overall included."""
    conn = get_connection(db_path)
    rows = conn.execute(
        """SELECT category, COUNT(*) as tests, AVG(accuracy) as avg
        FROM test_results GROUP BY category ORDER BY MIN(rowid)"""
    ).fetchall()
    conn.close()
    return [
        {"name": r["category"], "tests": r["tests"], "avg_accuracy": _round(r["avg"])}
        for r in rows
    ]


def get_accuracy_trend(db_path: str, limit: int = 10) -> list[dict]:
    """The last ``limit`` snapshots, oldest first."""
    conn = get_connection(db_path)
    rows = conn.execute(
        """SELECT created_at, accuracy FROM test_results
        ORDER BY created_at DESC, rowid DESC LIMIT ?""",
        (limit,),
    ).fetchall()
    conn.close()
    return [
        {"date": r["created_at"][:10], "accuracy": r["accuracy"]}
        for r in reversed(rows)
    ]


def get_difficulty_distribution(db_path: str) -> dict[str, int]:
    conn = get_connection(db_path)
    rows = conn.execute(
        """SELECT COALESCE(difficulty, 'medium') as difficulty, COUNT(*) as n
        FROM questions GROUP BY COALESCE(difficulty, 'medium')"""
    ).fetchall()
    conn.close()
    return {r["difficulty"]: r["n"] for r in rows}


def get_recent_tests(db_path: str, limit: int = 5) -> list[dict]:
    conn = get_connection(db_path)
    rows = conn.execute(
        """SELECT r.user_id, p.name, r.score, r.total_questions, r.accuracy, r.created_at
        FROM test_results r
        LEFT JOIN profiles p ON r.user_id = p.user_id
        WHERE r.category = ?
        ORDER BY r.created_at DESC, r.rowid DESC LIMIT ?""",
        (OVERALL, limit),
    ).fetchall()
    conn.close()
    return [dict(r) for r in rows]


def get_topic_breakdown(db_path: str, user_id: str) -> list[dict]:
    """Accuracy over a user's answer history per category and topic, weakest first."""
    conn = get_connection(db_path)
    rows = conn.execute(
        """SELECT q.category, q.topic, COUNT(*) as total, SUM(a.is_correct) as correct
        FROM user_answers a
        JOIN questions q ON a.question_id = q.id
        WHERE a.user_id = ?
        GROUP BY q.category, q.topic""",
        (user_id,),
    ).fetchall()
    conn.close()
    results = []
    for r in rows:
        pct = percentage(r["correct"], r["total"])
        is_strong, is_weak = classify(pct)
        label = "strong" if is_strong else "weak" if is_weak else "average"
        results.append({
            "category": r["category"],
            "topic": r["topic"],
            "correct": r["correct"],
            "total": r["total"],
            "percentage": pct,
            "label": label,
        })
    results.sort(key=lambda d: (d["percentage"], d["category"], d["topic"]))
    return results
