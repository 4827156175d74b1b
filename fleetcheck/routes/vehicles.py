"""Vehicle routes: fleet administration and starting pre-shift checks."""
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlmodel import Session, select

from fleetcheck.checklist.errors import ChecklistError
from fleetcheck.core.database import get_session
from fleetcheck.core.services import Services, get_services
from fleetcheck.models import Vehicle
from fleetcheck.routes.checks import check_response
from fleetcheck.routes.common import http_error

router = APIRouter(prefix="/vehicles", tags=["vehicles"])


class VehicleCreate(BaseModel):
    code: str
    vehicle_type: str = "forklift"


class StartCheckRequest(BaseModel):
    operator_id: str


@router.post("", status_code=201)
async def create_vehicle(body: VehicleCreate, session: Session = Depends(get_session)):
    """Register a vehicle. Returns 400 if the fleet code is already taken."""
    code = body.code.strip()
    existing = session.exec(select(Vehicle).where(Vehicle.code == code)).first()
    if existing:
        raise HTTPException(status_code=400, detail=f"Vehicle {code} already exists")

    vehicle = Vehicle(code=code, vehicle_type=body.vehicle_type.strip())
    session.add(vehicle)
    session.commit()
    session.refresh(vehicle)
    return vehicle


@router.get("")
async def list_vehicles(session: Session = Depends(get_session)):
    """List all vehicles ordered by fleet code."""
    return session.exec(select(Vehicle).order_by(Vehicle.code)).all()


@router.get("/{vehicle_id}")
async def get_vehicle(vehicle_id: UUID, session: Session = Depends(get_session)):
    vehicle = session.get(Vehicle, vehicle_id)
    if not vehicle:
        raise HTTPException(status_code=404, detail="Vehicle not found")
    return vehicle


@router.post("/{vehicle_id}/checks")
async def start_check(
    vehicle_id: UUID,
    body: StartCheckRequest,
    services: Services = Depends(get_services),
):
    """
    Start a pre-shift check, or resume the one already in progress.

    A vehicle never has two checks in progress: if one exists it is returned
    with its questions and answers unchanged. Otherwise a new rotation of
    questions is drawn. Returns 422 if the vehicle has no questions.
    """
    try:
        check = services.checklist.start_or_resume(vehicle_id, body.operator_id.strip())
    except ChecklistError as e:
        raise http_error(e)
    return check_response(services, check)


@router.get("/{vehicle_id}/checks/last")
async def last_check(vehicle_id: UUID, services: Services = Depends(get_services)):
    """Return the vehicle's most recent check, or 404 if it has none."""
    check = services.checks.last_for_vehicle(vehicle_id)
    if check is None:
        raise HTTPException(status_code=404, detail="No checks for this vehicle")
    if not check.is_read_only:
        # Prefer answers that are applied but not yet stored
        check = services.checklist.get(check.id)
    return {
        "check": check.model_dump(mode="json"),
        "in_progress": not check.is_read_only,
    }
