"""Collaborators the checklist engine depends on.

The engine only talks to these interfaces; ``fleetcheck.data`` provides
the SQL-backed implementations and the tests provide in-memory ones.
"""
from typing import Protocol
from uuid import UUID

from fleetcheck.checklist.types import ChecklistItem, PreShiftCheck, RotationRules


class QuestionBank(Protocol):
    def list_items(self, vehicle_id: UUID) -> list[ChecklistItem]:
        """Return the question templates that apply to the vehicle."""
        ...


class RotationRulesSource(Protocol):
    def for_vehicle(self, vehicle_id: UUID) -> RotationRules:
        """Return the rotation policy that applies to the vehicle."""
        ...


class CheckStore(Protocol):
    def find_in_progress(self, vehicle_id: UUID) -> PreShiftCheck | None: ...

    def get(self, check_id: UUID) -> PreShiftCheck | None: ...

    def create(self, check: PreShiftCheck) -> None: ...

    def update(self, check: PreShiftCheck) -> None:
        """Persist answers and status; must refuse to touch a finalized record."""
        ...


class OperatingSession(Protocol):
    id: UUID


class SessionStore(Protocol):
    def start(self, vehicle_id: UUID, operator_id: str, check_id: UUID) -> OperatingSession:
        """Start an operating session or raise ``SessionStartError``."""
        ...
