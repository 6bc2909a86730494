from fastapi import APIRouter

from app.api.v1 import cron, health, notifications, scheduler


api_router = APIRouter()
api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(notifications.router, prefix="/notifications", tags=["notifications"])
api_router.include_router(cron.router, prefix="/cron", tags=["cron"])
api_router.include_router(scheduler.router, prefix="/scheduler", tags=["scheduler"])
