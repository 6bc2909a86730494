from typing import Optional

from fastapi import APIRouter

from app.api.deps import SchedulerDep
from app.schemas import SchedulerStartRequest, SchedulerStatus

router = APIRouter()


@router.get("/status", response_model=SchedulerStatus, summary="In-process scheduler status")
def read_scheduler_status(scheduler: SchedulerDep) -> SchedulerStatus:
    return scheduler.status()


@router.post("/start", response_model=SchedulerStatus, summary="Start the in-process scheduler")
async def start_scheduler(
    scheduler: SchedulerDep,
    payload: Optional[SchedulerStartRequest] = None,
) -> SchedulerStatus:
    """(Re)start polling; a running scheduler is stopped first."""
    payload = payload or SchedulerStartRequest()
    scheduler.start(calendar_id=payload.calendar_id, interval_seconds=payload.interval_seconds)
    return scheduler.status()


@router.post("/stop", response_model=SchedulerStatus, summary="Stop the in-process scheduler")
async def stop_scheduler(scheduler: SchedulerDep) -> SchedulerStatus:
    scheduler.stop()
    return scheduler.status()
