"""Position sample sources.

The session talks to one capability interface, ``SampleSource``. Live trips
use ``DeviceSampleSource``, fed by the host's geolocation layer; test mode
uses ``SimulatedSampleSource``, which generates a random walk on a clock tick.
"""

import logging
import random
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable
from enum import Enum

from taximeter.engine.clock import MeterClock, PeriodicJob
from taximeter.geo.gps_simulation import GPSSimulator
from taximeter.geo.position import Position

logger = logging.getLogger(__name__)


class SampleMode(str, Enum):
    LIVE = "live"
    SIMULATED = "simulated"


class SourceStatus(str, Enum):
    """Position source availability as shown to the rider."""

    REQUESTING = "requesting"
    AVAILABLE = "available"
    DENIED = "denied"
    UNAVAILABLE = "unavailable"

    @property
    def is_terminal(self) -> bool:
        return self in (SourceStatus.DENIED, SourceStatus.UNAVAILABLE)


SampleCallback = Callable[[Position], None]
StatusCallback = Callable[[SourceStatus], None]


class SampleSource(ABC):
    """Supplier of position samples for one trip at a time."""

    @abstractmethod
    def request_fix(self, on_sample: SampleCallback, on_status: StatusCallback) -> None:
        """Deliver one current position, or a terminal status, exactly once."""

    @abstractmethod
    def start(
        self,
        origin: Position | None,
        on_sample: SampleCallback,
        on_status: StatusCallback,
    ) -> None:
        """Begin streaming samples until ``stop`` is called."""

    @abstractmethod
    def stop(self) -> None:
        """Stop streaming. No callback runs after this returns."""

    @property
    @abstractmethod
    def is_active(self) -> bool: ...


class DeviceSampleSource(SampleSource):
    """Push adapter for a real device.

    The host geolocation layer calls ``push`` for every reading and
    ``signal`` when permission is denied or positioning is unavailable.
    Readings are forwarded to the pending one-shot fix request and, while
    a trip is streaming, to the trip subscriber.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._fix_request: tuple[SampleCallback, StatusCallback] | None = None
        self._subscriber: tuple[SampleCallback, StatusCallback] | None = None
        self._status = SourceStatus.REQUESTING

    @property
    def status(self) -> SourceStatus:
        return self._status

    @property
    def is_active(self) -> bool:
        return self._subscriber is not None

    def request_fix(self, on_sample: SampleCallback, on_status: StatusCallback) -> None:
        """Wait for the next reading. A denial already reported is answered at once."""
        with self._lock:
            status = self._status
            if not status.is_terminal:
                self._fix_request = (on_sample, on_status)
        if status.is_terminal:
            on_status(status)

    def start(
        self,
        origin: Position | None,
        on_sample: SampleCallback,
        on_status: StatusCallback,
    ) -> None:
        with self._lock:
            self._subscriber = (on_sample, on_status)
        logger.debug("Device sample stream started")

    def stop(self) -> None:
        with self._lock:
            self._subscriber = None
        logger.debug("Device sample stream stopped")

    def push(self, position: Position) -> None:
        with self._lock:
            self._status = SourceStatus.AVAILABLE
            targets = [t for t in (self._fix_request, self._subscriber) if t is not None]
            self._fix_request = None
        # Callbacks run outside the lock so a subscriber may stop the stream
        for on_sample, _ in targets:
            on_sample(position)

    def signal(self, status: SourceStatus) -> None:
        if not status.is_terminal:
            raise ValueError(f"Only terminal statuses can be signalled, got '{status.value}'")
        with self._lock:
            self._status = status
            targets = [t for t in (self._fix_request, self._subscriber) if t is not None]
            self._fix_request = None
        logger.warning(f"Device position source reported {status.value}")
        for _, on_status in targets:
            on_status(status)


class SimulatedSampleSource(SampleSource):
    """Random-walk samples generated on a periodic clock tick."""

    def __init__(
        self,
        clock: MeterClock,
        simulator: GPSSimulator | None = None,
        interval: float = 1.0,
        home: tuple[float, float] | None = None,
    ) -> None:
        self._clock = clock
        self._simulator = simulator or GPSSimulator()
        self.interval = interval
        self._home = home
        self._job: PeriodicJob | None = None
        self._lat = 0.0
        self._lon = 0.0
        self._on_sample: SampleCallback | None = None

    @classmethod
    def seeded(
        cls,
        clock: MeterClock,
        seed: int | None,
        step_degrees: float = 0.01,
        noise_meters: float = 0.0,
        interval: float = 1.0,
        home: tuple[float, float] | None = None,
    ) -> "SimulatedSampleSource":
        simulator = GPSSimulator(step_degrees, noise_meters, rng=random.Random(seed))
        return cls(clock, simulator, interval=interval, home=home)

    @property
    def is_active(self) -> bool:
        return self._job is not None

    def request_fix(self, on_sample: SampleCallback, on_status: StatusCallback) -> None:
        if self._home is None:
            on_status(SourceStatus.UNAVAILABLE)
            return
        on_sample(self._make_position(*self._home))

    def start(
        self,
        origin: Position | None,
        on_sample: SampleCallback,
        on_status: StatusCallback,
    ) -> None:
        if self._job is not None:
            self.stop()
        if origin is not None:
            self._lat, self._lon = origin.coordinates
        elif self._home is not None:
            self._lat, self._lon = self._home
        else:
            on_status(SourceStatus.UNAVAILABLE)
            return

        self._on_sample = on_sample
        self._job = self._clock.schedule_every(self.interval, self._tick, name="simulated-samples")
        logger.info(f"Simulated samples started at ({self._lat}, {self._lon})")

    def stop(self) -> None:
        if self._job is not None:
            self._job.cancel()
            self._job = None
            self._on_sample = None
            logger.info("Simulated samples stopped")

    def _tick(self) -> None:
        if self._on_sample is None:
            return
        self._lat, self._lon = self._simulator.step(self._lat, self._lon)
        lat, lon = self._simulator.add_noise(self._lat, self._lon)
        self._on_sample(self._make_position(lat, lon))

    def _make_position(self, lat: float, lon: float) -> Position:
        return Position(latitude=lat, longitude=lon, timestamp=self._clock.now_ms())
