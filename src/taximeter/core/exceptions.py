"""Exception hierarchy for the fare meter."""

from typing import Any


class MeterError(Exception):
    """Base exception for all meter errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class NoFixError(MeterError):
    """A trip was started before any position fix was known."""

    pass


class PositionUnavailableError(MeterError):
    """The position source signalled a terminal status (denied or unavailable)."""

    def __init__(self, status: str, details: dict[str, Any] | None = None):
        super().__init__(f"Position source reported '{status}'", details)
        self.status = status


class ConfigurationFault(MeterError):
    """Rate schedule or trip type configuration is internally inconsistent.

    Raised at construction time; never raised while metering a trip.
    """

    pass
