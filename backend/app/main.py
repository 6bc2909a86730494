import logging
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.engine import Engine

from app.api.router import api_router
from app.core.config import Settings, settings as default_settings
from app.core.logging import configure_logging
from app.db import build_engine, init_db
from app.services.exceptions import (
    DestinationRejectedError,
    MalformedInputError,
    NotificationError,
    SubscriptionNotFound,
    UpstreamUnavailableError,
)
from app.services.notification_check import NotificationCheckService, build_notification_service
from app.services.scheduler import PollingScheduler

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    MalformedInputError: status.HTTP_400_BAD_REQUEST,
    SubscriptionNotFound: status.HTTP_404_NOT_FOUND,
    DestinationRejectedError: status.HTTP_502_BAD_GATEWAY,
    UpstreamUnavailableError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def create_application(
    settings: Optional[Settings] = None,
    engine: Optional[Engine] = None,
    check_service: Optional[NotificationCheckService] = None,
) -> FastAPI:
    settings = settings or default_settings
    configure_logging(settings.LOG_LEVEL)
    # Raises ConfigurationMissingError before anything is served
    settings.require_storage()

    app = FastAPI(title=settings.PROJECT_NAME, version="0.1.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    engine = engine or build_engine(settings.DATABASE_URL)
    init_db(engine)
    check_service = check_service or build_notification_service(engine=engine, settings=settings)

    app.state.settings = settings
    app.state.engine = engine
    app.state.check_service = check_service
    app.state.scheduler = PollingScheduler(
        check_service,
        interval_seconds=settings.NOTIFICATION_CHECK_INTERVAL_SECONDS,
    )

    @app.exception_handler(NotificationError)
    async def notification_error_handler(request: Request, exc: NotificationError):
        status_code = next(
            (code for error_type, code in ERROR_STATUS.items() if isinstance(exc, error_type)),
            status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
        if status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return JSONResponse(
            status_code=status_code,
            content={"detail": exc.message, "kind": exc.kind},
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"},
        )

    app.include_router(api_router, prefix=settings.API_V1_STR)

    @app.on_event("startup")
    async def _startup() -> None:
        if settings.START_SCHEDULER_ON_STARTUP:
            app.state.scheduler.start()

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        await app.state.scheduler.shutdown()

    return app


app = create_application()
