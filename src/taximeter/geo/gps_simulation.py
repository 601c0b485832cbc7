import math
import random


class GPSSimulator:
    """Synthetic trajectory for the simulated sample source.

    Each step moves latitude and longitude independently by a uniform offset
    in ``[-step_degrees / 2, step_degrees / 2]``. The default 0.01 degree span
    covers several hundred meters per tick, fast enough to watch the tiers
    change while testing the meter by hand.
    """

    def __init__(
        self,
        step_degrees: float = 0.01,
        noise_meters: float = 0.0,
        rng: random.Random | None = None,
    ):
        self.step_degrees = step_degrees
        self.noise_meters = noise_meters
        self._rng = rng or random.Random()

    def step(self, lat: float, lon: float) -> tuple[float, float]:
        lat += (self._rng.random() - 0.5) * self.step_degrees
        lon += (self._rng.random() - 0.5) * self.step_degrees
        return max(-90.0, min(90.0, lat)), ((lon + 180.0) % 360.0) - 180.0

    def add_noise(
        self, lat: float, lon: float, max_noise_meters: float = 15.0
    ) -> tuple[float, float]:
        if self.noise_meters == 0:
            return lat, lon

        # Generate Gaussian noise and clamp to max value
        noise_lat = max(
            -max_noise_meters, min(max_noise_meters, self._rng.gauss(0, self.noise_meters))
        )
        noise_lon = max(
            -max_noise_meters, min(max_noise_meters, self._rng.gauss(0, self.noise_meters))
        )

        lat_offset = noise_lat / 111000
        lon_offset = noise_lon / (111000 * max(math.cos(math.radians(lat)), 1e-6))

        return lat + lat_offset, lon + lon_offset
