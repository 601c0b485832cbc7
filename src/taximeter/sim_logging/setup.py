"""Logging setup and configuration."""

import logging
import sys
from typing import TextIO

from .context import ContextFilter
from .filters import LocationFilter, TripFieldDefaultsFilter
from .formatters import DevFormatter, JSONFormatter

HANDLER_NAME = "taximeter"


def setup_logging(
    level: str = "INFO",
    json_output: bool = False,
    environment: str = "development",
    mask_locations: bool = True,
    stream: TextIO | None = None,
) -> logging.Handler:
    """Install the meter's handler on the root logger, replacing a previous one.

    Handlers installed by anyone else are left in place.
    """
    root_logger = logging.getLogger()
    for existing in list(root_logger.handlers):
        if existing.get_name() == HANDLER_NAME:
            root_logger.removeHandler(existing)

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.set_name(HANDLER_NAME)
    handler.setFormatter(JSONFormatter(environment) if json_output else DevFormatter())

    if mask_locations:
        handler.addFilter(LocationFilter())
    handler.addFilter(ContextFilter())
    handler.addFilter(TripFieldDefaultsFilter())

    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, level.upper()))
    return handler


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the given name."""
    return logging.getLogger(name)
