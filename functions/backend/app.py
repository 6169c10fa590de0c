"""
FastAPI application entry point for the honors backend.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from backend.config import get_settings
from backend.dependencies import is_offline
from backend.errors import (
    ConfigurationError,
    DocumentNotFoundError,
    HonorsError,
    InvalidStatusTransitionError,
    StorePermissionError,
    SuggestionUnavailableError,
    ValidationError,
)
from backend.notifications import (
    GENERIC_FAILURE,
    OPTIMIZATION_FAILED,
    Notification,
    error_notification,
)
from backend.routes import router

logger = logging.getLogger(__name__)


def _describe(error: HonorsError) -> tuple[int, Notification]:
    """Maps a service error to an HTTP status and a user-facing notification."""
    message = str(error)
    if isinstance(error, ConfigurationError):
        return 503, error_notification("Firebase Not Configured", message)
    if isinstance(error, StorePermissionError):
        return 403, error_notification("Permission Denied", message)
    if isinstance(error, DocumentNotFoundError):
        return 404, error_notification("Not Found", message)
    if isinstance(error, InvalidStatusTransitionError):
        return 409, error_notification("Invalid Status Change", message)
    if isinstance(error, ValidationError):
        return 400, error_notification("Invalid Request", message)
    if isinstance(error, SuggestionUnavailableError):
        return (429 if error.quota_exceeded else 502), OPTIMIZATION_FAILED
    return 500, GENERIC_FAILURE


async def handle_honors_error(request: Request, exc: HonorsError) -> JSONResponse:
    status_code, notification = _describe(exc)
    log = logger.error if status_code >= 500 else logger.warning
    log("%s %s failed with %s: %s", request.method, request.url.path, type(exc).__name__, exc)
    return JSONResponse(
        status_code=status_code,
        content={
            "detail": {
                "message": notification.description,
                "notification": notification.as_dict(),
            }
        },
    )


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={
            "detail": {
                "message": GENERIC_FAILURE.description,
                "notification": GENERIC_FAILURE.as_dict(),
            }
        },
    )


def create_app() -> FastAPI:
    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper())
    if is_offline(settings):
        logger.warning("Starting without backend credentials (offline mode).")

    app = FastAPI(title="Honors Backend (FastAPI)", version="0.1.0")
    app.add_exception_handler(HonorsError, handle_honors_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
    app.include_router(router, prefix=settings.api_prefix)
    return app


app = create_app()
