"""Test session flow: start a test, submit it, cache the results."""
import json
import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Optional, Sequence

from skill_diag.config import Settings
from skill_diag.errors import PoolTooSmall, PoolUnavailable
from skill_diag.models import Question, ScoreReport
from skill_diag.persist import PersistOutcome, persist_results
from skill_diag.scoring import score_submission
from skill_diag.selector import select_test
from skill_diag.store import fetch_answered_question_ids, fetch_pool

logger = logging.getLogger(__name__)


def start_test(db_path: str, user_id: str, settings: Settings, rng=None) -> list[Question]:
    """Select the questions for a new test.

    Raises:
        PoolUnavailable: the pool or the user's history could not be read.
        PoolTooSmall: fewer than ``settings.min_pool_size`` questions exist.
    """
    try:
        pool = fetch_pool(db_path, settings.store_timeout)
        answered = fetch_answered_question_ids(db_path, user_id, settings.store_timeout)
    except sqlite3.Error as e:
        logger.error("Could not load question pool: %s", e)
        raise PoolUnavailable(str(e)) from e

    fresh = sum(1 for q in pool if q.id not in answered)
    if fresh < settings.test_size and answered:
        logger.info(
            "Only %d unanswered question(s) for user=%s; sampling the full pool",
            fresh, user_id,
        )

    questions = select_test(pool, answered, settings.test_size, rng=rng)
    if len(questions) < settings.min_pool_size:
        raise PoolTooSmall(len(questions), settings.min_pool_size)
    return questions


def user_cache_path(path: str, user_id: str) -> Path:
    """Per-user file next to the configured cache, e.g. last_results-<id>.json."""
    p = Path(path)
    return p.with_name(f"{p.stem}-{user_id}{p.suffix}")


def save_cached_results(path: str, report: ScoreReport, user_id: str) -> None:
    data = report.to_dict()
    data["userId"] = user_id
    data["date"] = datetime.now().isoformat()
    p = user_cache_path(path, user_id)
    p.parent.mkdir(parents=True, exist_ok=True)
    with p.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


def load_cached_results(path: str, user_id: str) -> Optional[ScoreReport]:
    """Return the cached report if it belongs to ``user_id``."""
    p = user_cache_path(path, user_id)
    if not p.exists():
        return None
    try:
        with p.open("r", encoding="utf-8") as f:
            data = json.load(f)
        if data.get("userId") != user_id:
            return None
        return ScoreReport.from_dict(data)
    except (ValueError, KeyError, TypeError, AttributeError) as e:
        logger.warning("Ignoring unreadable results cache %s: %s", path, e)
        return None


def submit_test(
    db_path: str,
    user_id: str,
    questions: Sequence[Question],
    selections: Sequence[Optional[str]],
    settings: Settings,
) -> tuple[ScoreReport, PersistOutcome]:
    """Score a finished test, cache the report, then persist it.

    Scoring errors propagate. Storage errors do not: they are reported in
    the returned outcome, and the cached report stays available.
    """
    report = score_submission(questions, selections, normalize=settings.normalize_answers)
    try:
        save_cached_results(settings.results_cache, report, user_id)
    except OSError as e:
        logger.warning("Could not cache results at %s: %s", settings.results_cache, e)
    outcome = persist_results(
        db_path, report, user_id, list(zip(questions, selections)),
        timeout=settings.store_timeout, normalize=settings.normalize_answers,
    )
    return report, outcome
