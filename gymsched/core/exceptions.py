"""
Schedule error taxonomy and the FastAPI handlers that render it.

Every error carries an HTTP status and a stable ``code`` so the remote
client can tell a full timeslot from a missing one without parsing text.
"""
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ScheduleError(Exception):
    """Base class for all schedule errors"""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "INTERNAL"
    default_message = "Internal server error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFoundError(ScheduleError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"
    default_message = "Resource not found"


class ConflictError(ScheduleError):
    status_code = status.HTTP_409_CONFLICT
    code = "CONFLICT"
    default_message = "Request conflicts with the current state"


class AlreadyExistsError(ConflictError):
    code = "ALREADY_EXISTS"
    default_message = "Resource already exists"


class TimeslotFullError(ConflictError):
    code = "FULL"
    default_message = "This timeslot is at full capacity"


class AlreadyJoinedError(ConflictError):
    code = "ALREADY_JOINED"
    default_message = "You are already assigned to this timeslot"


class NotJoinedError(ScheduleError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "NOT_JOINED"
    default_message = "You are not assigned to this timeslot"


class ScheduleValidationError(ScheduleError):
    status_code = 422
    code = "VALIDATION_ERROR"
    default_message = "Invalid schedule data"


class AccessDeniedError(ScheduleError):
    """Raised by the authorization dependencies only, never by the core"""
    status_code = status.HTTP_403_FORBIDDEN
    code = "ACCESS_DENIED"
    default_message = "Access denied"


def _error_body(message: str, code: str, **extra) -> dict:
    body = {"detail": message, "code": code}
    body.update(extra)
    return body


async def schedule_error_handler(request: Request, exc: ScheduleError):
    correlation_id = getattr(request.state, "correlation_id", "unknown")
    logger.info(
        f"{exc.code} on {request.method} {request.url.path}: {exc.message}",
        extra={"correlation_id": correlation_id},
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.message, exc.code),
    )


async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"loc": list(err.get("loc", [])), "msg": err.get("msg")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=422,
        content=_error_body(
            "Invalid request data", ScheduleValidationError.code, errors=errors
        ),
    )


async def unhandled_error_handler(request: Request, exc: Exception):
    correlation_id = getattr(request.state, "correlation_id", "unknown")
    logger.error(
        f"Unhandled error on {request.method} {request.url.path}: {exc}",
        exc_info=True,
        extra={"correlation_id": correlation_id},
    )
    # Storage details stay in the log
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body(ScheduleError.default_message, ScheduleError.code),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ScheduleError, schedule_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
