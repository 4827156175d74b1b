"""Operating session lifecycle backed by the database."""
import logging
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import Engine
from sqlmodel import Session, select

from fleetcheck.checklist.errors import (
    SessionNotFound,
    SessionStartError,
    VehicleNotFound,
)
from fleetcheck.checklist.types import CheckStatus
from fleetcheck.models import PreShiftCheckRecord, Vehicle, VehicleSession
from fleetcheck.models.session import CloseMethod, SessionStatus
from fleetcheck.models.vehicle import VehicleStatus, status_after_check

logger = logging.getLogger(__name__)


class SqlSessionStore:
    """Start, end and list operating sessions."""

    def __init__(self, engine: Engine):
        self.engine = engine

    def start(self, vehicle_id: UUID, operator_id: str, check_id: UUID) -> VehicleSession:
        """
        Start an operating session from a passed check.

        Raises ``SessionStartError`` if the check did not pass, belongs to
        another vehicle, or if the vehicle or the operator is already in an
        active session.
        """
        with Session(self.engine) as session:
            vehicle = session.get(Vehicle, vehicle_id)
            if vehicle is None:
                raise VehicleNotFound(vehicle_id)

            check = session.get(PreShiftCheckRecord, check_id)
            if check is None or check.vehicle_id != vehicle_id:
                raise SessionStartError(f"Check {check_id} does not belong to vehicle {vehicle.code}")
            if check.status != CheckStatus.COMPLETED_PASS.value:
                raise SessionStartError(f"Check is not approved. Current status: {check.status}")

            active = session.exec(
                select(VehicleSession)
                .where(VehicleSession.status == SessionStatus.ACTIVE.value)
                .where(
                    (VehicleSession.vehicle_id == vehicle_id)
                    | (VehicleSession.operator_id == operator_id)
                )
            ).first()
            if active is not None:
                if active.vehicle_id == vehicle_id:
                    raise SessionStartError(f"Vehicle {vehicle.code} already has an active session")
                raise SessionStartError(f"Operator {operator_id} already has an active session")

            record = VehicleSession(
                vehicle_id=vehicle_id,
                operator_id=operator_id,
                check_id=check_id,
            )
            vehicle.status = VehicleStatus.IN_USE.value
            session.add(record)
            session.add(vehicle)
            session.commit()
            session.refresh(record)
            logger.info(f"Operator {operator_id} started session {record.id} on {vehicle.code}")
            return record

    def end(
        self,
        session_id: UUID,
        close_method: CloseMethod = CloseMethod.USER_CLOSED,
        closed_by: str | None = None,
        notes: str | None = None,
    ) -> VehicleSession:
        """
        Close an active session and release its vehicle.

        The vehicle returns to the status implied by its most recently
        completed check, so a check failed during the session leaves it out
        of service.
        """
        with Session(self.engine) as session:
            record = session.get(VehicleSession, session_id)
            if record is None:
                raise SessionNotFound(session_id)
            if record.status != SessionStatus.ACTIVE.value:
                raise SessionStartError(f"Session {session_id} is already closed")

            record.status = SessionStatus.CLOSED.value
            record.ended_at = datetime.now(UTC)
            record.close_method = CloseMethod(close_method).value
            record.closed_by = closed_by
            record.notes = notes
            session.add(record)

            vehicle = session.get(Vehicle, record.vehicle_id)
            if vehicle is not None and vehicle.status == VehicleStatus.IN_USE.value:
                # A check finalized during the session decides what comes next
                last_check = session.exec(
                    select(PreShiftCheckRecord)
                    .where(PreShiftCheckRecord.vehicle_id == record.vehicle_id)
                    .where(PreShiftCheckRecord.completed_at != None)  # noqa: E711
                    .order_by(PreShiftCheckRecord.completed_at.desc())
                ).first()
                if last_check is not None:
                    vehicle.status = status_after_check(CheckStatus(last_check.status)).value
                else:
                    vehicle.status = VehicleStatus.AVAILABLE.value
                session.add(vehicle)

            session.commit()
            session.refresh(record)
            logger.info(f"Session {session_id} closed ({record.close_method})")
            return record

    def list_active(self) -> list[VehicleSession]:
        with Session(self.engine) as session:
            statement = (
                select(VehicleSession)
                .where(VehicleSession.status == SessionStatus.ACTIVE.value)
                .order_by(VehicleSession.started_at.desc())
            )
            return list(session.exec(statement).all())
