"""Sync routes for monitoring and re-sending background answer writes."""
from fastapi import APIRouter, Depends

from fleetcheck.core.config import settings
from fleetcheck.core.services import Services, get_services

router = APIRouter(prefix="/sync", tags=["sync"])


@router.get("/status")
async def sync_status(services: Services = Depends(get_services)):
    """
    Get current answer sync status.

    Lists the checks whose latest answers are applied but not yet stored
    because a write failed.
    """
    pending = services.checklist.answer_sync.pending_ids()
    return {
        "pending_count": len(pending),
        "pending_check_ids": [str(check_id) for check_id in pending],
        "retry_interval_minutes": settings.pending_sync_interval_minutes,
    }


@router.post("/retry")
async def retry_pending(services: Services = Depends(get_services)):
    """Re-send pending answer writes now instead of waiting for the job."""
    return {"resent": services.checklist.retry_pending_writes()}
