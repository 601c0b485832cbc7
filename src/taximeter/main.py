"""Command-line entry point: wires the meter from settings and runs a scripted trip."""

import logging
import os

from taximeter.core.exceptions import MeterError, PositionUnavailableError
from taximeter.engine.clock import MeterClock
from taximeter.fare import DEFAULT_RATES, DEFAULT_TRIP_TYPES, RateSchedule, index_trip_types
from taximeter.geo.sample_filter import GeoSampleFilter
from taximeter.settings import Settings, get_settings
from taximeter.sources import DeviceSampleSource, SampleMode, SimulatedSampleSource
from taximeter.trip import TripSummary, format_waiting_time
from taximeter.trips import TripSession

logger = logging.getLogger(__name__)


def build_session(
    settings: Settings,
    clock: MeterClock,
    schedule: RateSchedule = DEFAULT_RATES,
    device: DeviceSampleSource | None = None,
) -> TripSession:
    """Create a session with both sample sources configured from settings.

    ``device`` is the bridge the host geolocation layer pushes readings into;
    a fresh one is created when omitted.
    """
    meter = settings.meter
    trip_types = index_trip_types(DEFAULT_TRIP_TYPES)
    if settings.demo.trip_type not in trip_types:
        raise ValueError(
            f"Unknown trip type '{settings.demo.trip_type}', "
            f"expected one of {sorted(trip_types)}"
        )

    simulated = SimulatedSampleSource.seeded(
        clock,
        seed=meter.random_seed,
        step_degrees=meter.simulated_step_degrees,
        noise_meters=meter.simulated_noise_m,
        interval=meter.simulated_tick_seconds,
        home=(settings.demo.origin_latitude, settings.demo.origin_longitude),
    )
    return TripSession(
        clock,
        sources={SampleMode.LIVE: device or DeviceSampleSource(), SampleMode.SIMULATED: simulated},
        schedule=schedule,
        trip_type=trip_types[settings.demo.trip_type],
        sample_mode=SampleMode(meter.sample_mode),
        sample_filter=GeoSampleFilter(meter.noise_threshold_m, meter.correction_factor),
        waiting_tick_seconds=meter.waiting_tick_seconds,
    )


def run_demo_trip(session: TripSession, clock: MeterClock, settings: Settings) -> TripSummary:
    """Drive, wait, drive again, then stop. Returns the trip summary.

    Raises:
        PositionUnavailableError: The source denied the position request.
        NoFixError: No position arrived before the trip was started.
    """
    demo = settings.demo
    session.acquire_fix()
    if session.gps_status.is_terminal:
        raise PositionUnavailableError(session.gps_status.value)
    session.start()

    clock.run(until=clock.env.now + demo.driving_seconds)
    session.pause()
    clock.run(until=clock.env.now + demo.waiting_seconds)
    session.resume()
    clock.run(until=clock.env.now + demo.driving_seconds)

    summary = session.stop()
    if summary is None:
        raise MeterError(
            "Trip was no longer active when the scripted run ended",
            details={"phase": session.phase.value},
        )
    return summary


def main() -> None:
    from taximeter.sim_logging import setup_logging

    settings = get_settings()
    log_format = os.environ.get("LOG_FORMAT") or settings.meter.log_format
    setup_logging(
        level=settings.meter.log_level,
        json_output=log_format == "json",
        environment=os.environ.get("ENVIRONMENT", "development"),
        mask_locations=settings.meter.mask_locations,
    )

    clock = MeterClock(
        realtime=settings.meter.realtime,
        realtime_factor=settings.meter.realtime_factor,
        realtime_step=settings.meter.realtime_step_seconds,
    )
    session = build_session(settings, clock)

    try:
        summary = run_demo_trip(session, clock, settings)
    except MeterError as e:
        logger.error(f"{e.message} (gps status: {session.gps_status.value})")
        raise SystemExit(1) from e

    logger.info(
        f"{summary.trip_type_name}: {summary.distance_km:.2f} km, "
        f"waiting {format_waiting_time(summary.waiting_seconds)}, "
        f"total {summary.cost:.2f}"
    )


if __name__ == "__main__":
    main()
