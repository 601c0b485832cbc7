"""Log filters for location masking and trip field defaults."""

import logging
import re

from .context import TRIP_FIELDS


class LocationFilter(logging.Filter):
    """Truncates high-precision coordinates in log messages to three decimals.

    Three decimals is roughly 100 m, enough to debug a trip without
    recording the rider's exact pickup or dropoff point.
    """

    COORDINATE_PATTERN = re.compile(r"(-?\d{1,3}\.\d{3})\d+")

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str) and "." in record.msg:
            record.msg = self.COORDINATE_PATTERN.sub(r"\1", record.msg)
        return True


class TripFieldDefaultsFilter(logging.Filter):
    """Fills every trip field missing from a record with ``-``."""

    def filter(self, record: logging.LogRecord) -> bool:
        for field in TRIP_FIELDS:
            if field not in record.__dict__:
                setattr(record, field, "-")
        return True
