"""Scoring of a completed test: per-category tallies and classification."""
from typing import Optional, Sequence

from skill_diag.errors import EmptyQuestionSet, IncompleteSubmission
from skill_diag.models import (
    STRONG_THRESHOLD, WEAK_THRESHOLD, CategoryResult, Question, ScoreReport,
)


def answers_match(selected: str, correct: str, normalize: bool = False) -> bool:
    if normalize:
        return selected.strip().casefold() == correct.strip().casefold()
    return selected == correct


def percentage(correct: int, total: int) -> int:
    """Round-half-up integer percentage, exact for all integer inputs."""
    return (200 * correct + total) // (2 * total)


def classify(pct: int) -> tuple[bool, bool]:
    """Return ``(is_strong, is_weak)`` for a rounded percentage."""
    return pct >= STRONG_THRESHOLD, pct < WEAK_THRESHOLD


def score_submission(
    questions: Sequence[Question],
    selected_options: Sequence[Optional[str]],
    normalize: bool = False,
) -> ScoreReport:
    """Score a completed test.

    Args:
        questions: The questions in the order they were presented.
        selected_options: One selected option text per question. ``None``
            marks an unanswered question.
        normalize: Compare answers after trimming and case-folding.

    Raises:
        EmptyQuestionSet: ``questions`` is empty.
        IncompleteSubmission: a question has no selected option.
    """
    if not questions:
        raise EmptyQuestionSet("Cannot score a test with no questions")
    missing = [
        i for i in range(len(questions))
        if i >= len(selected_options) or selected_options[i] is None
    ]
    if missing:
        raise IncompleteSubmission(missing)

    tallies: dict[str, list[int]] = {}
    correctness = []
    for question, selected in zip(questions, selected_options):
        ok = answers_match(selected, question.correct_answer, normalize)
        correctness.append(ok)
        tally = tallies.setdefault(question.category, [0, 0])
        tally[0] += int(ok)
        tally[1] += 1

    categories = {}
    for name, (correct, total) in tallies.items():
        pct = percentage(correct, total)
        is_strong, is_weak = classify(pct)
        categories[name] = CategoryResult(
            correct=correct, total=total, percentage=pct,
            is_strong=is_strong, is_weak=is_weak,
        )

    total_correct = sum(correctness)
    return ScoreReport(
        total_score=percentage(total_correct, len(questions)),
        total_correct=total_correct,
        total_questions=len(questions),
        categories=categories,
        correctness=correctness,
    )
