"""Client-side taxi fare meter: GPS sample filtering, distance and fare metering."""

__version__ = "0.1.0"
