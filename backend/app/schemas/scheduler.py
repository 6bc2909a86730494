from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class SchedulerStatus(BaseModel):
    running: bool
    next_tick_at: Optional[datetime] = None
    interval_seconds: float
    calendar_id: Optional[UUID] = None
    last_tick_at: Optional[datetime] = None
    last_error: Optional[str] = None
    ticks_run: int = 0
    ticks_skipped: int = 0


class SchedulerStartRequest(BaseModel):
    calendar_id: Optional[UUID] = None
    interval_seconds: Optional[int] = Field(default=None, ge=1)
