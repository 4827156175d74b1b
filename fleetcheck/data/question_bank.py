"""Question bank and rotation policy lookups backed by the database."""
import logging
from uuid import UUID

from sqlalchemy import Engine
from sqlmodel import Session, select

from fleetcheck.checklist.errors import VehicleNotFound
from fleetcheck.checklist.types import ChecklistItem, RotationRules
from fleetcheck.core.config import settings
from fleetcheck.models import Question, RotationPolicy, Vehicle
from fleetcheck.models.question import ALL_VEHICLE_TYPES, split_categories

logger = logging.getLogger(__name__)


def _vehicle_type(session: Session, vehicle_id: UUID) -> str:
    vehicle = session.get(Vehicle, vehicle_id)
    if vehicle is None:
        raise VehicleNotFound(vehicle_id)
    return vehicle.vehicle_type


def default_rules() -> RotationRules:
    """Rotation rules from settings, used when no policy is stored."""
    return RotationRules(
        critical_question_minimum=settings.default_critical_question_minimum,
        required_categories=split_categories(settings.default_required_categories),
        max_questions_per_check=settings.default_max_questions_per_check,
        standard_question_maximum=settings.default_standard_question_maximum,
    )


class SqlQuestionBank:
    """Active questions for a vehicle's type plus the questions for all types."""

    def __init__(self, engine: Engine):
        self.engine = engine

    def list_items(self, vehicle_id: UUID) -> list[ChecklistItem]:
        with Session(self.engine) as session:
            vehicle_type = _vehicle_type(session, vehicle_id)
            statement = (
                select(Question)
                .where(Question.is_active == True)  # noqa: E712
                .where(Question.vehicle_type.in_([vehicle_type, ALL_VEHICLE_TYPES]))
            )
            return [question.to_item() for question in session.exec(statement).all()]


class SqlRotationRules:
    """Rotation policy for a vehicle's type, then "ALL", then settings."""

    def __init__(self, engine: Engine):
        self.engine = engine

    def for_vehicle(self, vehicle_id: UUID) -> RotationRules:
        with Session(self.engine) as session:
            vehicle_type = _vehicle_type(session, vehicle_id)
            for candidate in (vehicle_type, ALL_VEHICLE_TYPES):
                policy = session.exec(
                    select(RotationPolicy).where(RotationPolicy.vehicle_type == candidate)
                ).first()
                if policy is not None:
                    return policy.to_rules()

        logger.debug(f"No rotation policy for {vehicle_type}, using defaults")
        return default_rules()
