"""Question selection for a single test session."""
import random
from typing import Iterable, Optional

from skill_diag.models import Question


def select_test(
    pool: Iterable[Question],
    answered_ids: Iterable[str],
    target_size: int,
    rng: Optional[random.Random] = None,
) -> list[Question]:
    """Pick up to ``target_size`` questions in random order.

    Questions the user has already answered are excluded while enough fresh
    ones remain. When fewer than ``target_size`` fresh questions exist the
    exclusion is dropped and the whole pool is sampled instead.
    """
    rng = rng or random.Random()
    pool = list(pool)
    answered = set(answered_ids)

    available = [q for q in pool if q.id not in answered]
    if len(available) < target_size:
        available = pool

    rng.shuffle(available)
    return available[:max(target_size, 0)]
