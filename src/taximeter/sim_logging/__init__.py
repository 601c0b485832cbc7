"""Logging for the meter: JSON or dev output, coordinate masking and per-thread trip context."""

from .context import TRIP_FIELDS, ContextFilter, LogContext, log_context, log_trip_context
from .filters import LocationFilter, TripFieldDefaultsFilter
from .formatters import DevFormatter, JSONFormatter
from .setup import get_logger, setup_logging

__all__ = [
    "TRIP_FIELDS",
    "setup_logging",
    "get_logger",
    "log_context",
    "log_trip_context",
    "JSONFormatter",
    "DevFormatter",
    "LocationFilter",
    "TripFieldDefaultsFilter",
    "LogContext",
    "ContextFilter",
]
