"""Structured JSON logging shared by the API process and Celery workers."""

import logging
import sys

from pythonjsonlogger import jsonlogger

from ooh_billing.core.config import settings

_NOISY_LOGGERS = (
    "uvicorn.access",
    "httpx",
    "httpcore",
    "sqlalchemy.engine",
    "celery.app.trace",
)


def setup_logging(level: str | None = None) -> None:
    """Route every record through one JSON handler on stdout.

    Every record carries the service name so API and worker output can be
    told apart once aggregated.
    """
    handler = logging.StreamHandler(sys.stdout)
    formatter = jsonlogger.JsonFormatter(
        fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
        rename_fields={"asctime": "timestamp", "levelname": "level"},
        static_fields={"service": settings.app_name},
    )
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel((level or settings.log_level).upper())

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
