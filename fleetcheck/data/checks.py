"""Persistence of pre-shift checks."""
import logging
from uuid import UUID

from sqlalchemy import Engine
from sqlmodel import Session, select

from fleetcheck.checklist.errors import CheckNotFound, ReadOnlyViolation
from fleetcheck.checklist.types import CheckStatus, PreShiftCheck
from fleetcheck.models import CheckItemRecord, PreShiftCheckRecord, Vehicle
from fleetcheck.models.vehicle import VehicleStatus, status_after_check

logger = logging.getLogger(__name__)


class SqlCheckStore:
    """CheckStore backed by SQLModel tables.

    Every call opens its own session, so the store can be used from the
    answer-sync worker thread as well as from request handlers.
    """

    def __init__(self, engine: Engine):
        self.engine = engine

    def find_in_progress(self, vehicle_id: UUID) -> PreShiftCheck | None:
        with Session(self.engine) as session:
            record = session.exec(
                select(PreShiftCheckRecord)
                .where(PreShiftCheckRecord.vehicle_id == vehicle_id)
                .where(PreShiftCheckRecord.status == CheckStatus.IN_PROGRESS.value)
                .order_by(PreShiftCheckRecord.created_at.desc())
            ).first()
            return record.to_check() if record else None

    def get(self, check_id: UUID) -> PreShiftCheck | None:
        with Session(self.engine) as session:
            record = session.get(PreShiftCheckRecord, check_id)
            return record.to_check() if record else None

    def create(self, check: PreShiftCheck) -> None:
        with Session(self.engine) as session:
            record = PreShiftCheckRecord(
                id=check.id,
                vehicle_id=check.vehicle_id,
                operator_id=check.operator_id,
                status=check.status.value,
                created_at=check.created_at,
                last_saved_at=check.last_saved_at,
                completed_at=check.completed_at,
            )
            session.add(record)
            for position, item in enumerate(check.items):
                session.add(CheckItemRecord.from_item(check.id, position, item))
            session.commit()

    def update(self, check: PreShiftCheck) -> None:
        """
        Write answers and status of an existing check.

        Finalized records are read-only: updating one raises
        ``ReadOnlyViolation``. Writing a final status also moves the vehicle
        to the status the inspection outcome implies, unless the vehicle is
        in use by an operating session.
        """
        with Session(self.engine) as session:
            record = session.get(PreShiftCheckRecord, check.id)
            if record is None:
                raise CheckNotFound(check.id)
            stored_status = CheckStatus(record.status)
            if stored_status.is_final:
                raise ReadOnlyViolation(check.id, stored_status)

            answers = {item.id: item.user_answer for item in check.items}
            for item in record.items:
                if item.item_id in answers:
                    answer = answers[item.item_id]
                    item.user_answer = answer.value if answer else None
                    session.add(item)

            record.status = check.status.value
            record.last_saved_at = check.last_saved_at
            record.completed_at = check.completed_at
            session.add(record)

            if check.status.is_final:
                vehicle = session.get(Vehicle, check.vehicle_id)
                # An operating session keeps its vehicle IN_USE; ending it
                # applies the latest check outcome.
                if vehicle is not None and vehicle.status != VehicleStatus.IN_USE.value:
                    vehicle.status = status_after_check(check.status).value
                    session.add(vehicle)
                    logger.info(f"Vehicle {vehicle.code} is now {vehicle.status}")

            session.commit()

    def list_checks(
        self,
        page: int = 1,
        page_size: int = 10,
        vehicle_id: UUID | None = None,
    ) -> list[PreShiftCheck]:
        """Checks ordered by most recent activity, one page at a time."""
        statement = select(PreShiftCheckRecord)
        if vehicle_id is not None:
            statement = statement.where(PreShiftCheckRecord.vehicle_id == vehicle_id)
        statement = (
            statement.order_by(PreShiftCheckRecord.last_saved_at.desc())
            .offset((max(page, 1) - 1) * page_size)
            .limit(page_size)
        )
        with Session(self.engine) as session:
            return [record.to_check() for record in session.exec(statement).all()]

    def last_for_vehicle(self, vehicle_id: UUID) -> PreShiftCheck | None:
        with Session(self.engine) as session:
            record = session.exec(
                select(PreShiftCheckRecord)
                .where(PreShiftCheckRecord.vehicle_id == vehicle_id)
                .order_by(PreShiftCheckRecord.created_at.desc())
            ).first()
            return record.to_check() if record else None
