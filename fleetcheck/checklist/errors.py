"""Typed failures raised by the checklist engine."""


class ChecklistError(Exception):
    """Base class for all checklist engine errors."""


class NotFound(ChecklistError):
    """A referenced record does not exist."""


class CheckNotFound(NotFound):
    def __init__(self, check_id):
        super().__init__(f"Check {check_id} not found")
        self.check_id = check_id


class VehicleNotFound(NotFound):
    def __init__(self, vehicle_id):
        super().__init__(f"Vehicle {vehicle_id} not found")
        self.vehicle_id = vehicle_id


class SessionNotFound(NotFound):
    def __init__(self, session_id):
        super().__init__(f"Operating session {session_id} not found")
        self.session_id = session_id


class ItemNotFound(ChecklistError):
    """The item id is not among the check's selected items."""

    def __init__(self, check_id, item_id):
        super().__init__(f"Item {item_id} is not part of check {check_id}")
        self.check_id = check_id
        self.item_id = item_id


class ReadOnlyViolation(ChecklistError):
    """A mutation was attempted on a finalized check."""

    def __init__(self, check_id, status):
        super().__init__(f"Check {check_id} is {status.value} and can no longer be modified")
        self.check_id = check_id
        self.status = status


class AlreadyFinalized(ChecklistError):
    """Submit was called on a check that has already been submitted."""

    def __init__(self, check_id, status):
        super().__init__(f"Check {check_id} was already submitted ({status.value})")
        self.check_id = check_id
        self.status = status


class IncompleteChecklist(ChecklistError):
    """Submit was attempted before every item was answered."""

    def __init__(self, check_id, unanswered: list[str]):
        super().__init__(
            f"Cannot submit check {check_id}: {len(unanswered)} items unanswered"
        )
        self.check_id = check_id
        self.unanswered = unanswered


class NoChecklistAvailable(ChecklistError):
    """The question bank produced no questions for the vehicle."""

    def __init__(self, vehicle_id):
        super().__init__(f"No checklist questions available for vehicle {vehicle_id}")
        self.vehicle_id = vehicle_id


class SessionStartError(ChecklistError):
    """The operating session could not be started or ended."""
