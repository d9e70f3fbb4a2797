# gymsched/core/middleware.py
"""Request tracing and access logging"""
import uuid
import time
import logging
from starlette.requests import Request

from gymsched.utils.my_logging import correlation_id_var

logger = logging.getLogger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"

# Booking writes are the requests worth reading in the log
BOOKING_ACTIONS = ("/join", "/leave", "/reset", "/reset-all")


async def correlation_id_middleware(request: Request, call_next):
    """
    Tag the request with a correlation id.

    An incoming X-Correlation-ID is kept so a client can follow a join or
    leave through the logs; otherwise a new one is made. The id is echoed in
    the response and stamped on every log record written while the request
    runs.
    """
    correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4())
    request.state.correlation_id = correlation_id
    token = correlation_id_var.set(correlation_id)
    try:
        response = await call_next(request)
    finally:
        correlation_id_var.reset(token)

    response.headers[CORRELATION_HEADER] = correlation_id
    return response


async def request_logging_middleware(request: Request, call_next):
    """Log each request's outcome and duration; booking actions and failures stand out"""
    start_time = time.perf_counter()
    response = await call_next(request)
    duration_ms = round((time.perf_counter() - start_time) * 1000, 2)

    path = request.url.path
    if response.status_code >= 500:
        level = logging.ERROR
    elif response.status_code >= 400 or path.endswith(BOOKING_ACTIONS):
        level = logging.INFO
    else:
        level = logging.DEBUG

    logger.log(
        level,
        f"{request.method} {path} -> {response.status_code} ({duration_ms} ms)",
        extra={
            "method": request.method,
            "path": path,
            "status_code": response.status_code,
            "duration_ms": duration_ms,
            "client": request.client.host if request.client else "unknown",
        }
    )
    response.headers["X-Process-Time-Ms"] = str(duration_ms)
    return response
