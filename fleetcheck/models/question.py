"""Question bank and rotation policy models.

Questions are the templates that checks are sampled from. Each vehicle type
has at most one rotation policy; the "ALL" type supplies questions and a
fallback policy for every vehicle.
"""

from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel

from fleetcheck.checklist.types import Answer, ChecklistItem, RotationRules

ALL_VEHICLE_TYPES = "ALL"


class Question(SQLModel, table=True):
    """An inspection question in the bank.

    Attributes:
        id: Unique identifier (UUID).
        vehicle_type: Vehicle type the question applies to, or "ALL".
        category: Category tag, matched against a policy's required
            categories.
        subcategory: Finer grouping for display.
        component: Vehicle component being inspected.
        question: Text shown to the operator.
        description: Additional guidance.
        is_critical: A failed critical question blocks the vehicle.
        expected_answer: "PASS" or "FAIL"; the answer of a healthy vehicle.
        rotation_group: Reserved bucket for future grouping.
        is_active: Inactive questions are never selected.
    """
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    vehicle_type: str = Field(default=ALL_VEHICLE_TYPES, index=True)
    category: str = Field(index=True)
    subcategory: str = ""
    component: str = ""
    question: str
    description: str = ""
    is_critical: bool = Field(default=False)
    expected_answer: str = Field(default=Answer.PASS.value)
    rotation_group: int = Field(default=0)
    is_active: bool = Field(default=True)

    def to_item(self) -> ChecklistItem:
        return ChecklistItem(
            id=str(self.id),
            category=self.category,
            is_critical=self.is_critical,
            expected_answer=Answer(self.expected_answer),
            rotation_group=self.rotation_group,
            question=self.question,
            description=self.description,
            subcategory=self.subcategory,
            component=self.component,
        )


class RotationPolicy(SQLModel, table=True):
    """Stored rotation rules for a vehicle type.

    Attributes:
        id: Unique identifier (UUID).
        vehicle_type: Vehicle type this policy applies to, or "ALL" (unique).
        max_questions_per_check: Upper bound on questions per check.
        critical_question_minimum: Critical questions drawn first.
        standard_question_maximum: Cap on non-critical fill questions.
        required_categories: Comma-separated category tags that each get
            at least one question when available.
    """
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    vehicle_type: str = Field(default=ALL_VEHICLE_TYPES, index=True, unique=True)
    max_questions_per_check: int
    critical_question_minimum: int = Field(default=0, ge=0)
    standard_question_maximum: int
    required_categories: str = ""  # Comma-separated list of categories

    def to_rules(self) -> RotationRules:
        return RotationRules(
            critical_question_minimum=self.critical_question_minimum,
            required_categories=split_categories(self.required_categories),
            max_questions_per_check=self.max_questions_per_check,
            standard_question_maximum=self.standard_question_maximum,
        )


def split_categories(value: str) -> list[str]:
    return [c.strip() for c in value.split(",") if c.strip()]
