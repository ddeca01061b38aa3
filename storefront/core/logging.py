from __future__ import annotations

import json
import logging
import logging.config
from datetime import datetime, timezone
from typing import IO, Any

from storefront.core.config import settings

ORDERS_LOGGER = "storefront.orders"

_RECORD_FIELDS = frozenset(logging.makeLogRecord({}).__dict__) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    """One JSON object per line; ``extra`` values land under ``context``."""

    def format(self, record: logging.LogRecord) -> str:
        context = {key: value for key, value in record.__dict__.items() if key not in _RECORD_FIELDS}
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "alert": bool(context.pop("alert", False)),
        }
        if context:
            entry["context"] = context
        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str, ensure_ascii=False)


def configure_logging(level_name: str | None = None, stream: IO[str] | None = None) -> None:
    """Install the JSON handler for host applications embedding the checkout."""
    level = logging.getLevelName((level_name or settings.LOG_LEVEL).upper())
    if not isinstance(level, int):
        level = logging.INFO

    handler: dict[str, Any] = {"class": "logging.StreamHandler", "formatter": "json"}
    if stream is not None:
        handler["stream"] = stream

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"json": {"()": JsonFormatter}},
            "handlers": {"default": handler},
            "root": {"handlers": ["default"], "level": level},
            "loggers": {
                # request lines from httpx are noise below WARNING
                "httpx": {"level": max(level, logging.WARNING)},
                "storefront": {"level": level},
            },
        }
    )


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def order_alert(message: str, **context: Any) -> None:
    """Failed order submissions, flagged so log-based alerting can pick them up."""
    get_logger(ORDERS_LOGGER).warning(message, extra={"alert": True, **context})
