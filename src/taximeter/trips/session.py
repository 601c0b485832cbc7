"""Trip session: the meter's state machine.

Owns the trip lifecycle (idle -> running <-> paused -> idle), the retained
reference position, the waiting-time tick and the sample subscription.
Every operation runs under the clock's lock, so distance and cost always
change together even when samples arrive from a device thread.
"""

import logging
from collections.abc import Callable, Mapping
from contextlib import AbstractContextManager
from uuid import uuid4

from taximeter.core.exceptions import NoFixError
from taximeter.engine.clock import MeterClock, PeriodicJob
from taximeter.fare import (
    DEFAULT_RATES,
    NORMAL_TRIP,
    FareCalculator,
    RateSchedule,
    TripType,
    billable_minutes,
)
from taximeter.geo.position import Position
from taximeter.geo.sample_filter import FilterVerdict, GeoSampleFilter
from taximeter.sim_logging import log_trip_context
from taximeter.sources import SampleMode, SampleSource, SourceStatus
from taximeter.trip import TripPhase, TripState, TripSummary, can_transition

logger = logging.getLogger(__name__)

StateListener = Callable[[TripState], None]


class TripSession:
    """Meters one trip at a time from a stream of position samples."""

    def __init__(
        self,
        clock: MeterClock,
        sources: Mapping[SampleMode, SampleSource],
        schedule: RateSchedule = DEFAULT_RATES,
        trip_type: TripType = NORMAL_TRIP,
        sample_mode: SampleMode = SampleMode.LIVE,
        sample_filter: GeoSampleFilter | None = None,
        waiting_tick_seconds: float = 1.0,
    ) -> None:
        if sample_mode not in sources:
            raise ValueError(f"No sample source configured for mode '{sample_mode.value}'")

        self._clock = clock
        self._lock = clock.lock
        self._sources = dict(sources)
        self._calculator = FareCalculator(schedule)
        self._filter = sample_filter or GeoSampleFilter()
        self._waiting_tick_seconds = waiting_tick_seconds

        self._trip_type = trip_type
        self._sample_mode = sample_mode
        self._state = TripState.baseline(self._calculator.baseline(trip_type))
        self._gps_status = SourceStatus.REQUESTING
        self._current_position: Position | None = None
        self._last_position: Position | None = None
        self._trip_id: str | None = None
        self._active_source: SampleSource | None = None
        self._waiting_job: PeriodicJob | None = None
        self._listeners: list[StateListener] = []

    @property
    def state(self) -> TripState:
        return self._state

    @property
    def phase(self) -> TripPhase:
        return self._state.phase

    @property
    def trip_type(self) -> TripType:
        return self._trip_type

    @property
    def trip_id(self) -> str | None:
        return self._trip_id

    @property
    def sample_mode(self) -> SampleMode:
        return self._sample_mode

    @property
    def gps_status(self) -> SourceStatus:
        return self._gps_status

    @property
    def current_position(self) -> Position | None:
        return self._current_position

    @property
    def last_position(self) -> Position | None:
        """Reference point the next movement is measured from."""
        return self._last_position

    def subscribe(self, listener: StateListener) -> None:
        with self._lock:
            self._listeners.append(listener)

    def unsubscribe(self, listener: StateListener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def select_trip_type(self, trip_type: TripType) -> bool:
        """Switch trip type. Only allowed while idle; returns whether it applied."""
        with self._lock:
            if self.phase != TripPhase.IDLE:
                logger.warning(
                    f"Ignoring trip type change to '{trip_type.id}' while {self.phase.value}"
                )
                return False
            self._trip_type = trip_type
            self._set_state(TripState.baseline(self._calculator.baseline(trip_type)))
            logger.info(f"Selected trip type '{trip_type.id}'")
            return True

    def set_sample_mode(self, mode: SampleMode) -> None:
        """Choose the sample source. A running trip keeps its source until it stops."""
        with self._lock:
            if mode not in self._sources:
                raise ValueError(f"No sample source configured for mode '{mode.value}'")
            if mode == self._sample_mode:
                return
            self._sample_mode = mode
            if self._state.is_active:
                logger.info(f"Sample mode set to {mode.value}, applies from the next trip")
            else:
                logger.info(f"Sample mode set to {mode.value}")

    def acquire_fix(self) -> None:
        """Ask the current source for one position to satisfy ``start``."""
        with self._lock:
            self._gps_status = SourceStatus.REQUESTING
            source = self._sources[self._sample_mode]
        source.request_fix(self.accept, self.report_status)

    def report_status(self, status: SourceStatus) -> None:
        """Record a source status. Terminal statuses never interrupt a trip."""
        with self._lock:
            self._gps_status = status
            if status.is_terminal:
                with self._log_context():
                    logger.warning(f"Position source {status.value}")

    def accept(self, sample: Position) -> None:
        """Process one position sample, in arrival order."""
        with self._lock:
            if not sample.is_plausible():
                logger.debug(f"Ignoring implausible sample {sample.coordinates}")
                return

            self._current_position = sample
            self._gps_status = SourceStatus.AVAILABLE
            if not self._state.is_active:
                return

            decision = self._filter.evaluate(self._last_position, sample, self.phase)
            if decision.updates_reference:
                self._last_position = sample
            if decision.verdict != FilterVerdict.MOVEMENT:
                return

            distance_km = self._state.distance_km + decision.delta_m / 1000
            self._set_state(
                self._state.model_copy(
                    update={
                        "distance_km": distance_km,
                        "cost": self._cost(distance_km, self._state.waiting_seconds),
                    }
                )
            )

    def start(self, initial_position: Position | None = None) -> TripState:
        """Begin metering from the given position or the last known fix.

        Raises:
            NoFixError: No position is known yet. Nothing changes.
        """
        with self._lock:
            if self._state.is_active:
                logger.debug(f"Start ignored, trip already {self.phase.value}")
                return self._state

            origin = initial_position if initial_position is not None else self._current_position
            if origin is None or not origin.is_plausible():
                raise NoFixError(
                    "Cannot start a trip without a position fix",
                    details={"gps_status": self._gps_status.value},
                )

            self._trip_id = str(uuid4())
            self._current_position = origin
            self._last_position = origin
            self._set_state(
                TripState(
                    distance_km=0.0,
                    cost=self._calculator.baseline(self._trip_type),
                    waiting_seconds=0,
                    phase=TripPhase.RUNNING,
                )
            )
            self._active_source = self._sources[self._sample_mode]

            with self._log_context():
                logger.info(
                    f"Trip started ({self._trip_type.name}, {self._sample_mode.value} samples)"
                )
            self._active_source.start(origin, self.accept, self.report_status)
            return self._state

    def pause(self) -> None:
        """Start accruing waiting time. No-op unless running."""
        with self._lock:
            if not can_transition(self.phase, TripPhase.PAUSED):
                return
            self._set_state(self._state.model_copy(update={"phase": TripPhase.PAUSED}))
            self._waiting_job = self._clock.schedule_every(
                self._waiting_tick_seconds, self._on_waiting_tick, name="waiting-time"
            )
            with self._log_context():
                logger.info("Trip paused, waiting time accruing")

    def resume(self) -> None:
        """Freeze waiting time and resume distance metering. No-op unless paused."""
        with self._lock:
            if self.phase != TripPhase.PAUSED:
                return
            self._cancel_waiting()
            self._set_state(self._state.model_copy(update={"phase": TripPhase.RUNNING}))
            with self._log_context():
                logger.info(f"Trip resumed after {self._state.waiting_seconds}s total waiting")

    def toggle_pause(self) -> None:
        with self._lock:
            if self.phase == TripPhase.PAUSED:
                self.resume()
            else:
                self.pause()

    def stop(self) -> TripSummary | None:
        """End the trip and return its summary; ``None`` if no trip is active.

        Timers and the sample stream are halted before the state is reset,
        so no late tick or sample can touch the fresh idle state.
        """
        with self._lock:
            if not self._state.is_active:
                return None

            self._cancel_waiting()
            if self._active_source is not None:
                self._active_source.stop()
                self._active_source = None

            final = self._state
            summary = TripSummary(
                trip_id=self._trip_id or "",
                trip_type_name=self._trip_type.name,
                distance_km=final.distance_km,
                waiting_seconds=final.waiting_seconds,
                cost=final.cost,
                ended_at=self._clock.current_time(),
            )

            with self._log_context():
                logger.info(
                    f"Trip stopped: {summary.distance_km:.2f} km, "
                    f"{summary.waiting_seconds}s waiting, total {summary.cost:.2f}"
                )

            self._set_state(final.model_copy(update={"phase": TripPhase.STOPPED}))
            self._trip_id = None
            self._last_position = self._current_position
            self._set_state(TripState.baseline(self._calculator.baseline(self._trip_type)))
            return summary

    def _on_waiting_tick(self) -> None:
        with self._lock:
            if self.phase != TripPhase.PAUSED:
                return
            waiting_seconds = self._state.waiting_seconds + 1
            self._set_state(
                self._state.model_copy(
                    update={
                        "waiting_seconds": waiting_seconds,
                        "cost": self._cost(self._state.distance_km, waiting_seconds),
                    }
                )
            )

    def _cancel_waiting(self) -> None:
        if self._waiting_job is not None:
            self._waiting_job.cancel()
            self._waiting_job = None

    def _log_context(self) -> AbstractContextManager[None]:
        return log_trip_context(
            self._trip_id,
            trip_type=self._trip_type.id,
            phase=self.phase.value,
            sample_mode=self._sample_mode.value,
        )

    def _cost(self, distance_km: float, waiting_seconds: int) -> float:
        return self._calculator.calculate(
            distance_km, billable_minutes(waiting_seconds), self._trip_type
        ).total_fare

    def _set_state(self, state: TripState) -> None:
        self._state = state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception as e:
                logger.error(f"Trip state listener failed: {e}")
