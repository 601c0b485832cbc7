"""Log formatters for JSON and human-readable output."""

import json
import logging
from datetime import UTC, datetime
from typing import Any

from .context import TRIP_FIELDS


class JSONFormatter(logging.Formatter):
    """One JSON object per line; trip fields are included only when set."""

    def __init__(self, environment: str = "development", service: str = "taximeter"):
        super().__init__()
        self.environment = environment
        self.service = service

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "thread": record.threadName,
            "message": record.getMessage(),
            "service": self.service,
            "env": self.environment,
        }
        log_data.update(
            {
                field: value
                for field in TRIP_FIELDS
                if (value := getattr(record, field, "-")) != "-"
            }
        )

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data)


class DevFormatter(logging.Formatter):
    """Readable single-line output with a short trip tag."""

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s [%(levelname)8s] %(threadName)s %(name)s %(trip_tag)s: %(message)s",
            datefmt="%H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        trip_id = getattr(record, "trip_id", "-")
        if trip_id == "-":
            record.trip_tag = "[no trip]"
        else:
            record.trip_tag = f"[trip={trip_id[:8]} {getattr(record, 'phase', '-')}]"
        return super().format(record)
