# gymsched/utils/my_logging.py
"""Logging configuration"""
import logging
import sys
from contextvars import ContextVar

from gymsched.config.settings import get_settings

# Set per request by the correlation id middleware, "-" outside a request
correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="-")

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(correlation_id)s] - %(message)s"

# Libraries that log every statement or connection at INFO
NOISY_LOGGERS = (
    "sqlalchemy.engine",
    "sqlalchemy.pool",
    "alembic",
    "httpx",
    "httpcore",
    "celery.beat",
    "uvicorn.access",
)


class CorrelationIdFilter(logging.Filter):
    """Stamps each record with the current request's correlation id"""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "correlation_id"):
            record.correlation_id = correlation_id_var.get()
        return True


def setup_logging(verbose=True):
    """
    Configure application logging.

    Booking and reset decisions are logged at INFO by the schedule services;
    ``verbose=False`` keeps only warnings for the app and errors for the
    libraries in NOISY_LOGGERS.
    """
    settings = get_settings()

    if verbose:
        level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    else:
        level = logging.WARNING

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(CorrelationIdFilter())
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    logging.basicConfig(level=level, handlers=[handler])

    library_level = logging.WARNING if verbose else logging.ERROR
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(library_level)
