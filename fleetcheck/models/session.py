"""Operating session model.

A VehicleSession records an operator actively using a vehicle. It can only
be started from a passed pre-shift check and is distinct from the check
itself: the check is the inspection, the session is the shift.
"""

from datetime import UTC, datetime
from enum import Enum
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel


class SessionStatus(str, Enum):
    ACTIVE = "ACTIVE"
    CLOSED = "CLOSED"


class CloseMethod(str, Enum):
    USER_CLOSED = "USER_CLOSED"
    ADMIN_CLOSED = "ADMIN_CLOSED"
    TIMEOUT_CLOSED = "TIMEOUT_CLOSED"


class VehicleSession(SQLModel, table=True):
    """An operator's session on a vehicle.

    Attributes:
        id: Unique identifier (UUID).
        vehicle_id: Foreign key to the operated Vehicle.
        operator_id: Operator using the vehicle.
        check_id: Foreign key to the passed check that allowed the session.
        status: "ACTIVE" or "CLOSED".
        started_at: When the session started.
        ended_at: When the session was closed.
        close_method: How the session was closed, see ``CloseMethod``.
        closed_by: Who closed it, for sessions closed by an administrator.
        notes: Free text recorded when closing.
    """
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    vehicle_id: UUID = Field(foreign_key="vehicle.id", index=True)
    operator_id: str = Field(index=True)
    check_id: UUID = Field(foreign_key="preshiftcheck.id")
    status: str = Field(default=SessionStatus.ACTIVE.value, index=True)
    started_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    ended_at: datetime | None = None
    close_method: str | None = None
    closed_by: str | None = None
    notes: str | None = None
