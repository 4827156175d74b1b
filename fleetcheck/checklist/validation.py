"""Evaluate a check's answers against the pass/fail/blocking policy."""
from collections.abc import Sequence

from fleetcheck.checklist.types import ChecklistItem, CheckStatus, ValidationResult


def validate(items: Sequence[ChecklistItem]) -> ValidationResult:
    """
    Compute completion, blocking and session eligibility for a set of items.

    A check is complete when every item is answered. It is blocked when it
    is complete and a critical item was answered differently from its
    expected answer; failed non-critical items are reported in
    ``failed_item_ids`` but never block. Partial answer sets are valid
    input and simply report an incomplete, unblocked result. An empty item
    set has nothing left unanswered and is complete; checks are never
    started without questions.
    """
    answered = [item for item in items if item.is_answered]
    failed = [item for item in answered if item.user_answer != item.expected_answer]

    is_complete = len(answered) == len(items)
    is_blocked = is_complete and any(item.is_critical for item in failed)

    status = None
    if is_complete:
        status = CheckStatus.COMPLETED_FAIL if is_blocked else CheckStatus.COMPLETED_PASS

    return ValidationResult(
        is_complete=is_complete,
        is_blocked=is_blocked,
        status=status,
        can_start_session=is_complete and not is_blocked,
        answered_count=len(answered),
        total_count=len(items),
        failed_item_ids=[item.id for item in failed],
    )
