from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from app.services.notification_check import NotificationCheckService
from app.services.scheduler import PollingScheduler


def get_check_service(request: Request) -> NotificationCheckService:
    return request.app.state.check_service


def get_scheduler(request: Request) -> PollingScheduler:
    return request.app.state.scheduler


CheckServiceDep = Annotated[NotificationCheckService, Depends(get_check_service)]
SchedulerDep = Annotated[PollingScheduler, Depends(get_scheduler)]
