from fleetcheck.models.check import CheckItemRecord, PreShiftCheckRecord
from fleetcheck.models.question import Question, RotationPolicy
from fleetcheck.models.session import VehicleSession
from fleetcheck.models.vehicle import Vehicle

__all__ = [
    "Vehicle",
    "Question",
    "RotationPolicy",
    "PreShiftCheckRecord",
    "CheckItemRecord",
    "VehicleSession",
]
