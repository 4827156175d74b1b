"""Check routes: answering, validating and submitting pre-shift checks."""
from uuid import UUID

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from fleetcheck.checklist.errors import ChecklistError
from fleetcheck.checklist.types import Answer, PreShiftCheck
from fleetcheck.checklist.validation import validate
from fleetcheck.core.config import settings
from fleetcheck.core.services import Services, get_services
from fleetcheck.routes.common import http_error

router = APIRouter(prefix="/checks", tags=["checks"])


class AnswerRequest(BaseModel):
    answer: Answer


def check_response(services: Services, check: PreShiftCheck) -> dict:
    """Check payload with its current validation and sync state."""
    return {
        "check": check.model_dump(mode="json"),
        "validation": validate(check.items).model_dump(mode="json"),
        "sync_pending": services.checklist.sync_pending(check.id),
    }


@router.get("")
async def list_checks(
    page: int = 1,
    vehicle_id: UUID | None = None,
    services: Services = Depends(get_services),
):
    """
    List checks, most recently active first.

    Paged by ``check_page_size``; optionally restricted to one vehicle.
    """
    checks = services.checks.list_checks(
        page=page, page_size=settings.check_page_size, vehicle_id=vehicle_id
    )
    return {
        "page": page,
        "checks": [check.model_dump(mode="json") for check in checks],
    }


@router.get("/{check_id}")
async def get_check(check_id: UUID, services: Services = Depends(get_services)):
    """Return a check, including answers not yet written to storage."""
    try:
        check = services.checklist.get(check_id)
    except ChecklistError as e:
        raise http_error(e)
    return check_response(services, check)


@router.get("/{check_id}/validation")
async def get_validation(check_id: UUID, services: Services = Depends(get_services)):
    """Evaluate the check's current answers without changing anything."""
    try:
        check = services.checklist.get(check_id)
    except ChecklistError as e:
        raise http_error(e)
    return validate(check.items).model_dump(mode="json")


@router.put("/{check_id}/items/{item_id}")
async def record_answer(
    check_id: UUID,
    item_id: str,
    body: AnswerRequest,
    services: Services = Depends(get_services),
):
    """
    Answer one question.

    The answer is applied immediately and written to storage in the
    background. ``sync_pending`` is true while an earlier write for this
    check has failed; the answer is kept and re-sent later.
    """
    try:
        check = services.checklist.record_answer(check_id, item_id, body.answer)
    except ChecklistError as e:
        raise http_error(e)
    return check_response(services, check)


@router.delete("/{check_id}/items/{item_id}")
async def clear_answer(
    check_id: UUID,
    item_id: str,
    services: Services = Depends(get_services),
):
    """Remove the answer to one question."""
    try:
        check = services.checklist.clear_answer(check_id, item_id)
    except ChecklistError as e:
        raise http_error(e)
    return check_response(services, check)


@router.post("/{check_id}/submit")
async def submit_check(check_id: UUID, services: Services = Depends(get_services)):
    """
    Submit a fully answered check.

    Returns 400 with the unanswered item ids if the check is incomplete and
    409 if it was already submitted. A passed check starts an operating
    session; if that fails the check stays submitted and
    ``session_error`` says why.
    """
    try:
        outcome = services.gate.submit(check_id)
    except ChecklistError as e:
        raise http_error(e)
    return outcome.model_dump(mode="json")
