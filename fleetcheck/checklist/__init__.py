from fleetcheck.checklist.gate import SessionGate
from fleetcheck.checklist.rotation import select_questions
from fleetcheck.checklist.session import ChecklistSession
from fleetcheck.checklist.sync import AnswerSync, SyncResult
from fleetcheck.checklist.types import (
    Answer,
    ChecklistItem,
    CheckStatus,
    PreShiftCheck,
    RotationRules,
    SubmitOutcome,
    ValidationResult,
)
from fleetcheck.checklist.validation import validate

__all__ = [
    "Answer",
    "AnswerSync",
    "ChecklistItem",
    "ChecklistSession",
    "CheckStatus",
    "PreShiftCheck",
    "RotationRules",
    "SessionGate",
    "SubmitOutcome",
    "SyncResult",
    "ValidationResult",
    "select_questions",
    "validate",
]
