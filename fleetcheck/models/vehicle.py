"""Vehicle model for the equipment being inspected.

This module defines the Vehicle model which represents one piece of
equipment (forklift, reach truck, ...) that operators inspect before a
shift and then operate. The vehicle's status follows the outcome of its
most recent inspection and of its operating sessions.
"""

from enum import Enum
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel

from fleetcheck.checklist.types import CheckStatus


class VehicleStatus(str, Enum):
    AVAILABLE = "AVAILABLE"
    IN_USE = "IN_USE"
    OUT_OF_SERVICE = "OUT_OF_SERVICE"


def status_after_check(check_status: CheckStatus) -> VehicleStatus:
    """Vehicle status implied by a finalized check."""
    if check_status == CheckStatus.COMPLETED_FAIL:
        return VehicleStatus.OUT_OF_SERVICE
    return VehicleStatus.AVAILABLE


class Vehicle(SQLModel, table=True):
    """A vehicle in the fleet.

    Attributes:
        id: Unique identifier (UUID).
        code: Fleet code painted on the vehicle (unique).
        vehicle_type: Type used to pick the question bank and rotation
            policy, e.g. "forklift".
        status: One of "AVAILABLE", "IN_USE" or "OUT_OF_SERVICE". A failed
            inspection puts the vehicle out of service until a later
            inspection passes.
    """
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    code: str = Field(index=True, unique=True)
    vehicle_type: str = Field(default="forklift", index=True)
    status: str = Field(default=VehicleStatus.AVAILABLE.value)
