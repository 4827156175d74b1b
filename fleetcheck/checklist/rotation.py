"""Rotation of inspection questions.

Each check shows a random, bounded subset of the vehicle's question bank
instead of the whole bank. Selection runs in four steps:

1. Critical quota: up to ``critical_question_minimum`` critical questions.
2. Category coverage: one more question for every required category that
   still has an unselected question.
3. Standard fill: non-critical questions up to ``max_questions_per_check``,
   capped by ``standard_question_maximum``.
4. A final shuffle, so the order does not reveal which step picked an item.

The random source is a parameter so that callers can seed it.
"""
import logging
import random
from collections.abc import Sequence

from fleetcheck.checklist.types import ChecklistItem, RotationRules

logger = logging.getLogger(__name__)


def _unique_by_id(items: Sequence[ChecklistItem]) -> list[ChecklistItem]:
    seen = set()
    unique = []
    for item in items:
        if item.id not in seen:
            seen.add(item.id)
            unique.append(item)
    return unique


def select_questions(
    all_items: Sequence[ChecklistItem],
    rules: RotationRules,
    rng: random.Random | None = None,
) -> list[ChecklistItem]:
    """
    Sample the questions for one check from the question bank.

    Returns fresh copies with ``user_answer`` unset and no repeated ids.
    An empty bank yields an empty list. The result is normally no larger
    than ``rules.max_questions_per_check``; when the critical quota plus
    the required categories alone exceed it, the policy is logged as
    over budget and the guaranteed picks are kept as they are.
    """
    rng = rng or random.Random()
    bank = _unique_by_id(all_items)
    if not bank:
        return []

    if rules.budget_overrun:
        logger.warning(
            f"Rotation policy over budget by {rules.budget_overrun}: "
            f"critical minimum {rules.critical_question_minimum} + "
            f"{len(set(rules.required_categories))} required categories > "
            f"max {rules.max_questions_per_check}"
        )

    selected: list[ChecklistItem] = []
    selected_ids: set[str] = set()

    def take(picks: list[ChecklistItem]) -> None:
        selected.extend(picks)
        selected_ids.update(item.id for item in picks)

    # Critical quota
    critical = [item for item in bank if item.is_critical]
    take(rng.sample(critical, min(rules.critical_question_minimum, len(critical))))

    # Category coverage; categories with nothing left are skipped
    for category in dict.fromkeys(rules.required_categories):
        candidates = [
            item for item in bank
            if item.category == category and item.id not in selected_ids
        ]
        if candidates:
            take([rng.choice(candidates)])

    # Standard fill
    remaining = rules.max_questions_per_check - len(selected)
    if remaining > 0:
        standard = [
            item for item in bank
            if not item.is_critical and item.id not in selected_ids
        ]
        count = min(remaining, max(rules.standard_question_maximum, 0), len(standard))
        take(rng.sample(standard, count))

    rng.shuffle(selected)
    return [item.fresh_copy() for item in selected]
