"""Domain error hierarchy and the handlers that render it as JSON."""

from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AppException(Exception):
    """Base application exception carrying a stable error code."""

    status_code = 400
    code = "app_error"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ValidationException(AppException):
    """Raised when input has a bad shape or range."""

    status_code = 422
    code = "validation_error"


class InvalidRangeException(ValidationException):
    """Raised when a time range does not satisfy start < end."""

    code = "invalid_range"


class NotFoundException(AppException):
    """Raised when entity is not found."""

    status_code = 404
    code = "not_found"


class ConflictException(AppException):
    """Raised when entity conflicts with current state."""

    status_code = 409
    code = "conflict"


class OverlapException(ConflictException):
    """Raised when a published slot intersects an open slot of the same mentor."""

    code = "slot_overlap"


class AlreadyBookedException(ConflictException):
    """Raised when a slot reservation loses against an earlier booking."""

    code = "slot_already_booked"


class SlotInUseException(ConflictException):
    """Raised when removing a slot that is already booked."""

    code = "slot_in_use"


class IllegalTransitionException(ConflictException):
    """Raised when a session status change is not allowed from the observed state."""

    code = "illegal_transition"


class InvalidStateException(ConflictException):
    """Raised when a payment operation does not fit the session state."""

    code = "invalid_payment_state"


class SessionCreationFailedException(ConflictException):
    """Raised when a reserved slot could not be turned into a session."""

    code = "session_creation_failed"


class UnauthorizedException(AppException):
    """Raised when user has no rights for operation."""

    status_code = 403
    code = "forbidden"


class AuthenticationException(UnauthorizedException):
    """Raised when credentials or a bearer token cannot be trusted."""

    status_code = 401
    code = "not_authenticated"


class PaymentException(AppException):
    """Raised when the payment processor rejects or times out."""

    status_code = 402
    code = "payment_failed"


class VideoProviderException(AppException):
    """Raised when the video provider fails or times out."""

    status_code = 502
    code = "video_unavailable"


class NotificationDeliveryException(AppException):
    """Raised by the dispatcher; callers log it and carry on."""

    status_code = 500
    code = "notification_delivery_failed"


def error_response(status_code: int, code: str, message: str) -> JSONResponse:
    """Every error leaves the API as {"error": {"code", "message"}}."""
    return JSONResponse(status_code=status_code, content={"error": {"code": code, "message": message}})


async def app_exception_handler(_: Request, exc: AppException) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s: %s", exc.code, exc.message)
    return error_response(exc.status_code, exc.code, exc.message)


async def http_exception_handler(_: Request, exc: HTTPException) -> JSONResponse:
    return error_response(exc.status_code, "http_error", str(exc.detail))


async def request_validation_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
    """Name the offending fields without echoing submitted values back."""
    fields = sorted({".".join(map(str, error.get("loc", ()))) for error in exc.errors()})
    return error_response(422, ValidationException.code, f"Invalid request fields: {', '.join(fields)}")


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return error_response(500, "internal_error", "Internal server error")


def register_exception_handlers(app: FastAPI) -> None:
    handlers = (
        (AppException, app_exception_handler),
        (HTTPException, http_exception_handler),
        (RequestValidationError, request_validation_handler),
        (Exception, unhandled_exception_handler),
    )
    for exc_class, handler in handlers:
        app.add_exception_handler(exc_class, handler)
