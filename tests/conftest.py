import random
from datetime import UTC, datetime

import pytest
import simpy

from taximeter.engine.clock import MeterClock
from taximeter.fare import AIRPORT_TRIP, DEFAULT_RATES, NORMAL_TRIP, FareCalculator
from taximeter.geo.gps_simulation import GPSSimulator
from taximeter.geo.position import Position
from taximeter.sources import DeviceSampleSource, SampleMode, SimulatedSampleSource
from taximeter.trips import TripSession
from tests.factories import make_position

START_TIME = datetime(2025, 3, 1, 12, 0, 0, tzinfo=UTC)


@pytest.fixture
def env() -> simpy.Environment:
    return simpy.Environment()


@pytest.fixture
def clock(env: simpy.Environment) -> MeterClock:
    """Virtual-time clock starting at a fixed instant."""
    return MeterClock(env, start_time=START_TIME)


@pytest.fixture
def calculator() -> FareCalculator:
    return FareCalculator(DEFAULT_RATES)


@pytest.fixture
def normal_trip():
    return NORMAL_TRIP


@pytest.fixture
def airport_trip():
    return AIRPORT_TRIP


@pytest.fixture
def origin() -> Position:
    return make_position()


@pytest.fixture
def device_source() -> DeviceSampleSource:
    return DeviceSampleSource()


@pytest.fixture
def simulated_source(clock: MeterClock) -> SimulatedSampleSource:
    simulator = GPSSimulator(step_degrees=0.01, rng=random.Random(42))
    return SimulatedSampleSource(clock, simulator, interval=1.0, home=(19.4326, -99.1332))


@pytest.fixture
def session(
    clock: MeterClock,
    device_source: DeviceSampleSource,
    simulated_source: SimulatedSampleSource,
) -> TripSession:
    """Session in live mode, fed by pushing samples into the device source."""
    return TripSession(
        clock,
        sources={SampleMode.LIVE: device_source, SampleMode.SIMULATED: simulated_source},
    )


@pytest.fixture
def running_session(session: TripSession, origin: Position) -> TripSession:
    session.accept(origin)
    session.start()
    return session
