from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy import text

router = APIRouter()


@router.get("/", summary="Health check", tags=["health"])
def read_health() -> dict[str, str]:
    """Return basic service health information."""
    return {"status": "ok"}


@router.get("/ready", summary="Readiness check", tags=["health"])
def read_ready(request: Request):
    """Report whether the record store answers and the scheduler is polling."""
    settings = request.app.state.settings
    scheduler_state = "running" if request.app.state.scheduler.is_running else "stopped"
    try:
        with request.app.state.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception as e:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "not_ready",
                "database": "disconnected",
                "scheduler": scheduler_state,
                "error": str(e) if settings.ENVIRONMENT != "production" else "Database connection failed",
            },
        )
    return {
        "status": "ready",
        "database": "connected",
        "scheduler": scheduler_state,
        "storage_timezone": settings.STORAGE_TIMEZONE,
    }
