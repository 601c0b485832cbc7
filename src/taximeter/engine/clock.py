"""SimPy-backed clock for timestamps and periodic ticks.

The meter's timers (waiting-time tick, simulated sample tick) are SimPy
processes. Tests drive the environment in virtual time with ``run``;
live runs pace it against the wall clock. Every environment step happens
under ``MeterClock.lock`` so callers on other threads (a device pushing
samples, a UI pressing stop) are serialized with the ticks.
"""

import logging
import threading
import time
from collections.abc import Callable, Generator
from datetime import UTC, datetime, timedelta
from typing import Any

import simpy

logger = logging.getLogger(__name__)


class PeriodicJob:
    """A callback invoked every ``interval`` seconds until cancelled.

    ``cancel`` is synchronous: once it returns the callback will not run
    again, even if the underlying SimPy timeout is already due.
    """

    def __init__(
        self,
        clock: "MeterClock",
        interval: float,
        callback: Callable[[], None],
        name: str = "job",
    ) -> None:
        self._clock = clock
        self.interval = interval
        self.name = name
        self._callback = callback
        self._cancelled = False
        self._started = False
        self._process = clock.env.process(self._run())

    def _run(self) -> Generator[simpy.Event, Any]:
        self._started = True
        try:
            while not self._cancelled:
                yield self._clock.env.timeout(self.interval)
                if self._cancelled:
                    return
                self._callback()
        except simpy.Interrupt:
            pass

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def is_alive(self) -> bool:
        return self._process.is_alive

    def cancel(self) -> None:
        with self._clock.lock:
            if self._cancelled:
                return
            self._cancelled = True
            # A job that has not started yet, or is cancelling itself from its
            # own callback, exits its loop on the flag alone
            if (
                self._started
                and self._process.is_alive
                and self._clock.env.active_process is not self._process
            ):
                self._process.interrupt("cancelled")
        logger.debug(f"Cancelled periodic job {self.name}")


class MeterClock:
    """Wall timestamps and periodic scheduling over a SimPy environment."""

    def __init__(
        self,
        env: simpy.Environment | None = None,
        start_time: datetime | None = None,
        realtime: bool = False,
        realtime_factor: float = 1.0,
        realtime_step: float = 0.1,
    ) -> None:
        if realtime_step <= 0:
            raise ValueError("Realtime step must be positive")
        self.env = env or simpy.Environment()
        self._start_time = (start_time or datetime.now(UTC)).astimezone(UTC)
        self.realtime = realtime
        self.realtime_factor = realtime_factor
        self.realtime_step = realtime_step
        self.lock = threading.RLock()

    def current_time(self) -> datetime:
        """Convert SimPy now to datetime."""
        return self._start_time + timedelta(seconds=self.env.now)

    def now_ms(self) -> int:
        """Current time as epoch milliseconds."""
        return int(self.current_time().timestamp() * 1000)

    def schedule_every(
        self, interval: float, callback: Callable[[], None], name: str = "job"
    ) -> PeriodicJob:
        if interval <= 0:
            raise ValueError("Interval must be positive")
        with self.lock:
            return PeriodicJob(self, interval, callback, name)

    def run(self, until: float) -> None:
        """Advance the clock to ``until`` seconds after its start.

        In virtual time this returns immediately after processing every due
        event. In realtime mode the environment advances in increments of at
        most ``realtime_step`` simulated seconds, each followed by a sleep that
        keeps it level with the wall clock (``realtime_factor`` wall seconds
        per simulated second). ``env.now`` therefore never lags the wall clock
        by more than one increment, so a job scheduled from another thread
        starts from the current moment.
        """
        if until <= self.env.now:
            return
        if not self.realtime:
            with self.lock:
                self.env.run(until=until)
            return

        start_wall = time.perf_counter()
        start_sim = self.env.now
        while self.env.now < until:
            with self.lock:
                self.env.run(until=min(self.env.now + self.realtime_step, until))

            elapsed_wall = time.perf_counter() - start_wall
            target_wall = (self.env.now - start_sim) * self.realtime_factor
            sleep_time = target_wall - elapsed_wall
            # Lock is not held while sleeping
            if sleep_time > 0:
                time.sleep(sleep_time)

    def run_in_background(self, until: float) -> threading.Thread:
        thread = threading.Thread(target=self.run, args=(until,), name="meter-clock", daemon=True)
        thread.start()
        return thread
