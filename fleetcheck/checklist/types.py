"""Value types shared by the rotation, validation and gating components.

These are plain pydantic models rather than tables: a check in progress
lives in memory first and is persisted through a ``CheckStore``, so the
engine never depends on how or where records are stored.
"""

from datetime import UTC, datetime
from enum import Enum
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class Answer(str, Enum):
    """Possible answers to an inspection question."""
    PASS = "PASS"
    FAIL = "FAIL"


class CheckStatus(str, Enum):
    """Lifecycle states of a pre-shift check."""
    NOT_STARTED = "NOT_STARTED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED_PASS = "COMPLETED_PASS"
    COMPLETED_FAIL = "COMPLETED_FAIL"

    @property
    def is_final(self) -> bool:
        return self in (CheckStatus.COMPLETED_PASS, CheckStatus.COMPLETED_FAIL)


class ChecklistItem(BaseModel):
    """One inspection question, either as a bank template or as a check copy.

    Attributes:
        id: Unique question identifier.
        category: Category tag used for required-category coverage.
        is_critical: A failed critical item blocks vehicle operation.
        expected_answer: The answer a healthy vehicle gives.
        rotation_group: Bucket reserved for future grouping; not used by
            selection.
        question: Text shown to the operator.
        description: Longer guidance for the operator.
        subcategory: Finer grouping for display.
        component: Vehicle component the question inspects.
        user_answer: The operator's answer, ``None`` until answered.
    """
    id: str
    category: str
    is_critical: bool = False
    expected_answer: Answer = Answer.PASS
    rotation_group: int = 0
    question: str = ""
    description: str = ""
    subcategory: str = ""
    component: str = ""
    user_answer: Answer | None = None

    @property
    def is_answered(self) -> bool:
        return self.user_answer is not None

    def fresh_copy(self) -> "ChecklistItem":
        """Return a copy of this item with the answer unset."""
        return self.model_copy(update={"user_answer": None})


class RotationRules(BaseModel):
    """Policy controlling how many and which questions a check receives.

    ``critical_question_minimum + len(required_categories)`` is expected to
    fit in ``max_questions_per_check`` but is not enforced here; see
    ``budget_overrun``.
    """
    critical_question_minimum: int = Field(default=0, ge=0)
    required_categories: list[str] = Field(default_factory=list)
    max_questions_per_check: int = 0
    standard_question_maximum: int = 0

    @property
    def budget_overrun(self) -> int:
        """How far the guaranteed picks can exceed the per-check maximum."""
        guaranteed = self.critical_question_minimum + len(set(self.required_categories))
        return max(0, guaranteed - self.max_questions_per_check)


def _now() -> datetime:
    return datetime.now(UTC)


class PreShiftCheck(BaseModel):
    """One inspection instance for a vehicle and operator.

    Attributes:
        id: Unique identifier (UUID).
        vehicle_id: Vehicle being inspected.
        operator_id: Operator performing the inspection.
        items: Ordered copies of the selected questions with answers.
        status: Current lifecycle state. Once it leaves IN_PROGRESS the
            check is read-only.
        created_at: When the check was started.
        last_saved_at: Last answer change or finalization.
        completed_at: When the check was finalized, if it was.
    """
    id: UUID = Field(default_factory=uuid4)
    vehicle_id: UUID
    operator_id: str
    items: list[ChecklistItem] = Field(default_factory=list)
    status: CheckStatus = CheckStatus.NOT_STARTED
    created_at: datetime = Field(default_factory=_now)
    last_saved_at: datetime = Field(default_factory=_now)
    completed_at: datetime | None = None

    @property
    def is_read_only(self) -> bool:
        return self.status != CheckStatus.IN_PROGRESS

    def find_item(self, item_id: str) -> ChecklistItem | None:
        return next((item for item in self.items if item.id == item_id), None)


class ValidationResult(BaseModel):
    """Outcome of evaluating a check's answers against the blocking policy.

    ``status`` is only meaningful when ``is_complete`` is true and is
    ``None`` otherwise.
    """
    is_complete: bool = False
    is_blocked: bool = False
    status: CheckStatus | None = None
    can_start_session: bool = False
    answered_count: int = 0
    total_count: int = 0
    failed_item_ids: list[str] = Field(default_factory=list)


class SubmitOutcome(BaseModel):
    """Result of submitting a check.

    The check is finalized whether or not the operating session could be
    started; ``session_error`` explains a failed start.
    """
    check: PreShiftCheck
    validation: ValidationResult
    session_started: bool = False
    session_id: UUID | None = None
    session_error: str | None = None
