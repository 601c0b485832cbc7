"""Timestamped GPS position samples."""

import math

from pydantic import BaseModel, ConfigDict


class Position(BaseModel):
    """A single position sample as delivered by a sample source."""

    model_config = ConfigDict(frozen=True)

    latitude: float
    longitude: float
    timestamp: int  # epoch milliseconds

    @property
    def coordinates(self) -> tuple[float, float]:
        return self.latitude, self.longitude

    def is_plausible(self) -> bool:
        """True if both coordinates are finite and inside their valid ranges."""
        if not (math.isfinite(self.latitude) and math.isfinite(self.longitude)):
            return False
        return -90.0 <= self.latitude <= 90.0 and -180.0 <= self.longitude <= 180.0
