"""Stored pre-shift checks and their answered items.

A PreShiftCheckRecord is the durable copy of a check. Its items are copies
of the questions selected when the check was started, so later edits to the
question bank never change a check that already exists.
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Optional
from uuid import UUID, uuid4

from sqlmodel import Field, Relationship, SQLModel

from fleetcheck.checklist.types import (
    Answer,
    ChecklistItem,
    CheckStatus,
    PreShiftCheck,
)

if TYPE_CHECKING:
    from fleetcheck.models.vehicle import Vehicle


class PreShiftCheckRecord(SQLModel, table=True):
    """A stored pre-shift inspection.

    Attributes:
        id: Unique identifier (UUID), same as the in-memory check's id.
        vehicle_id: Foreign key to the inspected Vehicle.
        operator_id: Operator who performed the inspection.
        status: "IN_PROGRESS", "COMPLETED_PASS" or "COMPLETED_FAIL". Records
            with a completed status are read-only.
        created_at: When the check was started.
        last_saved_at: Last time answers or status were written.
        completed_at: When the check was submitted.
        items: Selected questions with the operator's answers, in the
            order they are presented.
    """
    __tablename__ = "preshiftcheck"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    vehicle_id: UUID = Field(foreign_key="vehicle.id", index=True)
    operator_id: str = Field(index=True)
    status: str = Field(default=CheckStatus.IN_PROGRESS.value, index=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    last_saved_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    completed_at: datetime | None = None

    # Relationships
    items: list["CheckItemRecord"] = Relationship(
        back_populates="check",
        sa_relationship_kwargs={"order_by": "CheckItemRecord.position"},
    )
    vehicle: Optional["Vehicle"] = Relationship()

    def to_check(self) -> PreShiftCheck:
        return PreShiftCheck(
            id=self.id,
            vehicle_id=self.vehicle_id,
            operator_id=self.operator_id,
            items=[item.to_item() for item in self.items],
            status=CheckStatus(self.status),
            created_at=self.created_at,
            last_saved_at=self.last_saved_at,
            completed_at=self.completed_at,
        )


class CheckItemRecord(SQLModel, table=True):
    """One selected question inside a stored check.

    Attributes:
        id: Unique identifier (UUID) of the row.
        check_id: Foreign key to the parent PreShiftCheckRecord.
        position: Presentation order within the check.
        item_id: Id of the bank question this item was copied from.
        user_answer: "PASS", "FAIL" or None while unanswered.

    The remaining attributes are copied from the question.
    """
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    check_id: UUID = Field(foreign_key="preshiftcheck.id", index=True)
    position: int
    item_id: str
    category: str
    is_critical: bool = False
    expected_answer: str = Answer.PASS.value
    rotation_group: int = 0
    question: str = ""
    description: str = ""
    subcategory: str = ""
    component: str = ""
    user_answer: str | None = None

    # Relationship
    check: Optional[PreShiftCheckRecord] = Relationship(back_populates="items")

    @classmethod
    def from_item(cls, check_id: UUID, position: int, item: ChecklistItem) -> "CheckItemRecord":
        return cls(
            check_id=check_id,
            position=position,
            item_id=item.id,
            category=item.category,
            is_critical=item.is_critical,
            expected_answer=item.expected_answer.value,
            rotation_group=item.rotation_group,
            question=item.question,
            description=item.description,
            subcategory=item.subcategory,
            component=item.component,
            user_answer=item.user_answer.value if item.user_answer else None,
        )

    def to_item(self) -> ChecklistItem:
        return ChecklistItem(
            id=self.item_id,
            category=self.category,
            is_critical=self.is_critical,
            expected_answer=Answer(self.expected_answer),
            rotation_group=self.rotation_group,
            question=self.question,
            description=self.description,
            subcategory=self.subcategory,
            component=self.component,
            user_answer=Answer(self.user_answer) if self.user_answer else None,
        )
