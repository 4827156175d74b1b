"""Helpers shared by the route modules."""
from fastapi import HTTPException

from fleetcheck.checklist.errors import (
    AlreadyFinalized,
    ChecklistError,
    IncompleteChecklist,
    ItemNotFound,
    NoChecklistAvailable,
    NotFound,
    ReadOnlyViolation,
    SessionStartError,
)

_STATUS_CODES = [
    (NotFound, 404),
    (ItemNotFound, 404),
    (IncompleteChecklist, 400),
    (NoChecklistAvailable, 422),
    (ReadOnlyViolation, 409),
    (AlreadyFinalized, 409),
    (SessionStartError, 409),
]


def http_error(error: ChecklistError) -> HTTPException:
    """Translate an engine error into the matching HTTP error."""
    for error_type, status_code in _STATUS_CODES:
        if isinstance(error, error_type):
            break
    else:
        status_code = 400

    detail = str(error)
    if isinstance(error, IncompleteChecklist):
        return HTTPException(
            status_code=status_code,
            detail={"message": detail, "unanswered": error.unanswered},
        )
    return HTTPException(status_code=status_code, detail=detail)
