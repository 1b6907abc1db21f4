"""Question bank management for administrators."""
import json
import uuid
from datetime import datetime
from typing import Optional

from skill_diag.db import get_connection
from skill_diag.errors import QuestionValidationError
from skill_diag.models import CATEGORIES, DIFFICULTIES, Question
from skill_diag.store import question_from_row


def validate_question(
    category: str,
    topic: str,
    prompt: str,
    options: list[str],
    correct_answer: str,
    difficulty: Optional[str] = "medium",
) -> list[str]:
    """Return a list of validation messages; empty means the question is valid."""
    errors = []
    if category not in CATEGORIES:
        errors.append(f'Invalid category: "{category}". Must be one of: {", ".join(CATEGORIES)}')
    if (difficulty or "medium").lower() not in DIFFICULTIES:
        errors.append(f'Invalid difficulty: "{difficulty}". Must be one of: {", ".join(DIFFICULTIES)}')
    if not (topic or "").strip():
        errors.append("Topic is required")
    if not (prompt or "").strip():
        errors.append("Question is required")
    for i, option in enumerate(options):
        if not (option or "").strip():
            errors.append(f"Option {chr(ord('A') + i)} is required")
    if len(options) < 2:
        errors.append("At least two options are required")
    if correct_answer not in options:
        errors.append(f'Correct answer "{correct_answer}" must match one of the options')
    return errors


def add_question(
    db_path: str,
    category: str,
    topic: str,
    prompt: str,
    options: list[str],
    correct_answer: str,
    difficulty: Optional[str] = "medium",
) -> Question:
    errors = validate_question(category, topic, prompt, options, correct_answer, difficulty)
    if errors:
        raise QuestionValidationError(errors)
    question = Question(
        id=str(uuid.uuid4()),
        category=category,
        topic=topic.strip(),
        prompt=prompt.strip(),
        options=list(options),
        correct_answer=correct_answer,
        difficulty=(difficulty or "medium").lower(),
        created_at=datetime.now().isoformat(),
    )
    conn = get_connection(db_path)
    conn.execute(
        """INSERT INTO questions
        (id, category, topic, question, options, correct_answer, difficulty, created_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
        (question.id, question.category, question.topic, question.prompt,
         json.dumps(question.options), question.correct_answer,
         question.difficulty, question.created_at),
    )
    conn.commit()
    conn.close()
    return question


def get_question(db_path: str, question_id: str) -> Optional[Question]:
    conn = get_connection(db_path)
    row = conn.execute("SELECT * FROM questions WHERE id = ?", (question_id,)).fetchone()
    conn.close()
    return question_from_row(row) if row else None


def update_question(db_path: str, question_id: str, **changes) -> Question:
    """Apply field changes to a question and re-validate it as a whole."""
    current = get_question(db_path, question_id)
    if current is None:
        raise KeyError(question_id)
    allowed = {"category", "topic", "prompt", "options", "correct_answer", "difficulty"}
    unknown = set(changes) - allowed
    if unknown:
        raise TypeError(f"Unknown question field(s): {', '.join(sorted(unknown))}")
    for key, value in changes.items():
        setattr(current, key, value)
    current.difficulty = (current.difficulty or "medium").lower()

    errors = validate_question(
        current.category, current.topic, current.prompt,
        current.options, current.correct_answer, current.difficulty,
    )
    if errors:
        raise QuestionValidationError(errors)
    conn = get_connection(db_path)
    conn.execute(
        """UPDATE questions SET category = ?, topic = ?, question = ?, options = ?,
        correct_answer = ?, difficulty = ? WHERE id = ?""",
        (current.category, current.topic, current.prompt, json.dumps(current.options),
         current.correct_answer, current.difficulty, question_id),
    )
    conn.commit()
    conn.close()
    return current


def delete_question(db_path: str, question_id: str) -> bool:
    conn = get_connection(db_path)
    cur = conn.execute("DELETE FROM questions WHERE id = ?", (question_id,))
    conn.commit()
    conn.close()
    return cur.rowcount > 0


def list_questions(
    db_path: str,
    category: Optional[str] = None,
    topic: Optional[str] = None,
    difficulty: Optional[str] = None,
) -> list[Question]:
    clauses, params = [], []
    if category:
        clauses.append("category = ?")
        params.append(category)
    if topic:
        clauses.append("topic = ?")
        params.append(topic)
    if difficulty:
        clauses.append("difficulty = ?")
        params.append(difficulty.lower())
    where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
    conn = get_connection(db_path)
    rows = conn.execute(
        f"SELECT * FROM questions {where} ORDER BY created_at DESC, rowid DESC", params
    ).fetchall()
    conn.close()
    return [question_from_row(r) for r in rows]


def count_questions(db_path: str) -> int:
    conn = get_connection(db_path)
    count = conn.execute("SELECT COUNT(*) FROM questions").fetchone()[0]
    conn.close()
    return count
