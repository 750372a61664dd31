from __future__ import annotations

import logging
import time
from datetime import datetime
from logging.config import dictConfig
from typing import Any, Iterable, Sequence

from settings import get_settings

# Keys passed via ``extra=`` that end up in the log line.
DASHBOARD_CONTEXT_KEYS = (
    "device_name",
    "sensor_type",
    "unit",
    "reading_time",
    "target_time",
    "threshold_hours",
    "row_count",
    "row_number",
    "config_path",
    "reason",
)
REQUEST_CONTEXT_KEYS = ("method", "path", "status_code", "duration_ms")

_configured = False


def _render(value: Any) -> str:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, float):
        return f"{value:g}"
    return str(value)


class ContextualFormatter(logging.Formatter):
    """Appends known ``extra`` attributes as ``key=value`` pairs.

    Timestamps are rendered in UTC so they line up with reading times.
    """

    converter = time.gmtime

    def __init__(
        self,
        fmt: str | None = None,
        datefmt: str | None = None,
        style: str = "%",
        extra_keys: Iterable[str] | None = None,
    ) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt, style=style)
        keys = extra_keys if extra_keys is not None else DASHBOARD_CONTEXT_KEYS + REQUEST_CONTEXT_KEYS
        self._extra_keys: Sequence[str] = tuple(keys)

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        context: list[str] = []
        for key in self._extra_keys:
            value = getattr(record, key, None)
            if value is not None:
                context.append(f"{key}={_render(value)}")
        return f"{message} | {' '.join(context)}" if context else message


def configure_logging(level: str | int | None = None) -> None:
    """Install the root handler once; later calls are no-ops."""
    global _configured
    if _configured:
        return

    log_level = level if level is not None else get_settings().log_level

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "contextual": {
                    "()": "logging_config.ContextualFormatter",
                    "fmt": "%(asctime)sZ | %(levelname)s | %(name)s | %(message)s",
                    "datefmt": "%Y-%m-%dT%H:%M:%S",
                    "extra_keys": list(DASHBOARD_CONTEXT_KEYS + REQUEST_CONTEXT_KEYS),
                }
            },
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "level": log_level,
                    "formatter": "contextual",
                }
            },
            "loggers": {
                # Requests are already logged by the app middleware.
                "uvicorn.access": {"level": "WARNING"},
            },
            "root": {"handlers": ["default"], "level": log_level},
        }
    )

    _configured = True
