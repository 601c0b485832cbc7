"""Trip phases, metered trip state and the end-of-trip summary."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class TripPhase(str, Enum):
    """Meter lifecycle phases.

    STOPPED is transient: stopping emits a summary and the meter is
    immediately back in IDLE.
    """

    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    STOPPED = "stopped"


VALID_TRANSITIONS: dict[TripPhase, set[TripPhase]] = {
    TripPhase.IDLE: {TripPhase.RUNNING},
    TripPhase.RUNNING: {TripPhase.PAUSED, TripPhase.STOPPED},
    TripPhase.PAUSED: {TripPhase.RUNNING, TripPhase.STOPPED},
    TripPhase.STOPPED: {TripPhase.IDLE},
}


def can_transition(current: TripPhase, new: TripPhase) -> bool:
    return new in VALID_TRANSITIONS[current]


class TripState(BaseModel):
    """Observable meter state. Instances are immutable snapshots."""

    model_config = ConfigDict(frozen=True)

    distance_km: float = Field(default=0.0, ge=0)
    cost: float = Field(ge=0)
    waiting_seconds: int = Field(default=0, ge=0)
    phase: TripPhase = TripPhase.IDLE

    @property
    def is_active(self) -> bool:
        return self.phase in (TripPhase.RUNNING, TripPhase.PAUSED)

    @property
    def is_paused(self) -> bool:
        return self.phase == TripPhase.PAUSED

    @classmethod
    def baseline(cls, cost: float) -> "TripState":
        """Fresh idle state showing the given baseline cost."""
        return cls(distance_km=0.0, cost=cost, waiting_seconds=0, phase=TripPhase.IDLE)


class TripSummary(BaseModel):
    """Snapshot produced once when a trip stops."""

    model_config = ConfigDict(frozen=True)

    trip_id: str
    trip_type_name: str
    distance_km: float = Field(ge=0)
    waiting_seconds: int = Field(ge=0)
    cost: float = Field(ge=0)
    ended_at: datetime


def format_waiting_time(seconds: int) -> str:
    """Render waiting seconds as ``m:ss``."""
    minutes, secs = divmod(max(seconds, 0), 60)
    return f"{minutes}:{secs:02d}"
