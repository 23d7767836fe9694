"""ASGI application: API routers, probes and the metrics endpoint."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI, HTTPException, Request, Response, status
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

import mentorhub.modules  # noqa: F401
from mentorhub.core.config import get_settings
from mentorhub.core.database import SessionLocal, close_engine
from mentorhub.core.metrics import build_metrics_response, instrument_http_request
from mentorhub.modules.availability.router import router as availability_router
from mentorhub.modules.booking.router import router as booking_router
from mentorhub.modules.identity.router import router as identity_router
from mentorhub.modules.mentors.router import router as mentors_router
from mentorhub.modules.notifications.router import router as notifications_router
from mentorhub.modules.payments.router import router as payments_router
from mentorhub.modules.sessions.router import router as sessions_router
from mentorhub.modules.video.router import router as video_router
from mentorhub.shared.exceptions import register_exception_handlers
from mentorhub.shared.utils import utc_now

settings = get_settings()
logger = logging.getLogger(__name__)

API_ROUTERS: tuple[APIRouter, ...] = (
    identity_router,
    mentors_router,
    availability_router,
    booking_router,
    sessions_router,
    payments_router,
    video_router,
    notifications_router,
)


def configure_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


@asynccontextmanager
async def lifespan(_: FastAPI):
    configure_logging()
    logger.info(
        "%s starting in %s (payments=%s, video=%s)",
        settings.app_name,
        settings.app_env,
        settings.payment_provider,
        settings.video_provider,
    )
    try:
        yield
    finally:
        await close_engine()
        logger.info("%s stopped", settings.app_name)


async def _is_database_ready() -> bool:
    try:
        async with SessionLocal() as session:
            await session.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError):
        logger.exception("Database readiness probe failed")
        return False
    return True


async def healthcheck() -> dict[str, str]:
    """Liveness: the process is up and serving."""
    return {"status": "ok"}


async def readiness_check() -> dict[str, str]:
    """Readiness: the database answers; reports which providers are wired."""
    if not await _is_database_ready():
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database is not ready",
        )
    return {
        "status": "ready",
        "database": "ok",
        "payment_provider": settings.payment_provider,
        "video_provider": settings.video_provider,
        "timestamp": utc_now().isoformat(),
    }


async def metrics_endpoint(_: Request) -> Response:
    return build_metrics_response()


def create_app() -> FastAPI:
    application = FastAPI(title=settings.app_name, debug=settings.debug, lifespan=lifespan)
    application.middleware("http")(instrument_http_request)
    register_exception_handlers(application)

    for router in API_ROUTERS:
        application.include_router(router, prefix=settings.api_prefix)

    application.add_api_route("/health", healthcheck, methods=["GET"], tags=["probes"])
    application.add_api_route("/ready", readiness_check, methods=["GET"], tags=["probes"])
    application.add_api_route("/metrics", metrics_endpoint, methods=["GET"], include_in_schema=False)
    return application


app = create_app()
