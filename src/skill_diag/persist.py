"""Best-effort recording of a scored test into the answer and result stores.

Writes happen in a fixed order: every answer, then the Overall snapshot, then
one snapshot per category. A failed write is logged and collected, and the
remaining writes still run. Nothing already written is rolled back.
"""
import logging
import sqlite3
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Sequence

from skill_diag.db import DEFAULT_TIMEOUT
from skill_diag.errors import PersistenceFailure
from skill_diag.models import OVERALL, Question, ScoreReport
from skill_diag.scoring import answers_match
from skill_diag.store import append_answer, append_result_snapshot

logger = logging.getLogger(__name__)


@dataclass
class PersistOutcome:
    answers_written: int = 0
    snapshots_written: int = 0
    errors: list[PersistenceFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def first_error(self) -> Optional[PersistenceFailure]:
        return self.errors[0] if self.errors else None


def persist_results(
    db_path: str,
    report: ScoreReport,
    user_id: str,
    pairs: Sequence[tuple[Question, str]],
    timestamp: Optional[str] = None,
    timeout: float = DEFAULT_TIMEOUT,
    normalize: bool = False,
) -> PersistOutcome:
    timestamp = timestamp or datetime.now().isoformat()
    outcome = PersistOutcome()

    def attempt(target: str, write, *args) -> bool:
        try:
            write(db_path, *args, timestamp, timeout)
        except sqlite3.Error as e:
            failure = PersistenceFailure(target, e)
            logger.warning("%s (user=%s)", failure, user_id)
            outcome.errors.append(failure)
            return False
        return True

    use_report = len(report.correctness) == len(pairs)
    for i, (question, selected) in enumerate(pairs):
        is_correct = (
            report.correctness[i] if use_report
            else answers_match(selected, question.correct_answer, normalize=normalize)
        )
        if attempt(f"answer {question.id}", append_answer,
                   user_id, question.id, selected, is_correct):
            outcome.answers_written += 1

    if attempt(f"{OVERALL} snapshot", append_result_snapshot,
               user_id, OVERALL, report.total_correct, report.total_questions,
               report.total_score, report.weak_topics, report.strong_topics):
        outcome.snapshots_written += 1

    for name, c in report.categories.items():
        if attempt(f"{name} snapshot", append_result_snapshot,
                   user_id, name, c.correct, c.total, c.percentage,
                   [name] if c.is_weak else [], [name] if c.is_strong else []):
            outcome.snapshots_written += 1

    if outcome.errors:
        logger.warning(
            "Persisted %d answer(s) and %d snapshot(s) for user=%s with %d failure(s)",
            outcome.answers_written, outcome.snapshots_written, user_id, len(outcome.errors),
        )
    return outcome
