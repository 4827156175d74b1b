"""Operating session routes."""
from uuid import UUID

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from fleetcheck.checklist.errors import ChecklistError
from fleetcheck.core.services import Services, get_services
from fleetcheck.models.session import CloseMethod
from fleetcheck.routes.common import http_error

router = APIRouter(prefix="/sessions", tags=["sessions"])


class StartSessionRequest(BaseModel):
    check_id: UUID


class EndSessionRequest(BaseModel):
    close_method: CloseMethod = CloseMethod.USER_CLOSED
    closed_by: str | None = None
    notes: str | None = None


@router.post("", status_code=201)
async def start_session(body: StartSessionRequest, services: Services = Depends(get_services)):
    """
    Start the operating session for a passed check.

    Used to retry after the session could not be started on submit. Returns
    409 if the check did not pass or the vehicle or operator is busy.
    """
    try:
        return services.gate.start_session(body.check_id)
    except ChecklistError as e:
        raise http_error(e)


@router.get("/active")
async def active_sessions(services: Services = Depends(get_services)):
    """List operating sessions in progress, newest first."""
    return services.sessions.list_active()


@router.post("/{session_id}/end")
async def end_session(
    session_id: UUID,
    body: EndSessionRequest,
    services: Services = Depends(get_services),
):
    """Close an operating session and make its vehicle available again."""
    try:
        return services.sessions.end(
            session_id,
            close_method=body.close_method,
            closed_by=body.closed_by,
            notes=body.notes,
        )
    except ChecklistError as e:
        raise http_error(e)
