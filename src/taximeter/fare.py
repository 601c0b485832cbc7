"""Tiered fare schedule and the fare calculator."""

import math
from collections.abc import Iterable
from typing import Self

from pydantic import BaseModel, ConfigDict, Field, model_validator

from taximeter.core.exceptions import ConfigurationFault


class TripType(BaseModel):
    """A kind of trip. Types with a fixed price ignore distance when pricing."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str = ""
    fixed_price: float | None = Field(default=None, ge=0)

    @property
    def is_fixed_price(self) -> bool:
        return self.fixed_price is not None


class DistanceTier(BaseModel):
    """One distance bracket of the rate schedule.

    A tier either charges a flat ``price`` or, for distances beyond
    ``breakpoint_km`` (default ``min_km``), ``base_price`` plus
    ``extra_rate_per_km`` for every kilometer past the breakpoint.
    ``max_km`` is inclusive; ``None`` means unbounded.
    """

    model_config = ConfigDict(frozen=True)

    min_km: float = Field(ge=0)
    max_km: float | None = None
    price: float | None = Field(default=None, ge=0)
    base_price: float | None = Field(default=None, ge=0)
    extra_rate_per_km: float | None = Field(default=None, ge=0)
    breakpoint_km: float | None = Field(default=None, ge=0)

    @model_validator(mode="after")
    def check_pricing_rule(self) -> Self:
        if self.max_km is not None and self.max_km < self.min_km:
            raise ConfigurationFault(
                f"Tier upper bound {self.max_km} is below its lower bound {self.min_km}",
                details={"min_km": self.min_km, "max_km": self.max_km},
            )
        if self.extra_rate_per_km is not None and self.base_price is None:
            raise ConfigurationFault(
                "Tier with an extra per-km rate needs a base price",
                details={"min_km": self.min_km},
            )
        if self.price is None and self.base_price is None:
            raise ConfigurationFault(
                "Tier needs either a flat price or a base price",
                details={"min_km": self.min_km},
            )
        return self

    @property
    def is_unbounded(self) -> bool:
        return self.max_km is None

    @property
    def effective_breakpoint_km(self) -> float:
        return self.min_km if self.breakpoint_km is None else self.breakpoint_km

    def contains(self, distance_km: float) -> bool:
        if distance_km < self.min_km:
            return False
        return self.max_km is None or distance_km <= self.max_km

    def charge(self, distance_km: float) -> float:
        """Distance component of the fare for a distance inside this tier."""
        if self.extra_rate_per_km is not None and distance_km > self.effective_breakpoint_km:
            extra_km = distance_km - self.effective_breakpoint_km
            return self.base_price + extra_km * self.extra_rate_per_km  # type: ignore[operator]
        return self.price if self.price is not None else self.base_price  # type: ignore[return-value]


class RateSchedule(BaseModel):
    """Global fare configuration.

    Tier bounds are written at ``tier_precision`` decimals (hundredths of a
    kilometer by default), so 0-4.99 followed by 5-5.99 is contiguous.
    Distances are truncated to that precision when selecting a tier, so
    4.995 km still bills as the 0-4.99 tier.
    """

    model_config = ConfigDict(frozen=True)

    base_fare: float = Field(ge=0)
    waiting_rate_per_minute: float = Field(ge=0)
    distance_tiers: tuple[DistanceTier, ...]
    tier_precision: int = Field(default=2, ge=0, le=6)

    @model_validator(mode="after")
    def check_tier_coverage(self) -> Self:
        tiers = self.distance_tiers
        if not tiers:
            raise ConfigurationFault("Rate schedule has no distance tiers")
        if tiers[0].min_km != 0:
            raise ConfigurationFault(
                f"First tier must start at 0 km, starts at {tiers[0].min_km}",
                details={"min_km": tiers[0].min_km},
            )
        if not tiers[-1].is_unbounded:
            raise ConfigurationFault(
                "Last tier must be unbounded",
                details={"max_km": tiers[-1].max_km},
            )

        step = 10**-self.tier_precision
        for index, (lower, upper) in enumerate(zip(tiers, tiers[1:], strict=False)):
            if lower.is_unbounded:
                raise ConfigurationFault(
                    f"Tier {index} is unbounded but is followed by more tiers",
                    details={"index": index},
                )
            expected_min = round(lower.max_km + step, self.tier_precision)  # type: ignore[operator]
            if not math.isclose(upper.min_km, expected_min, abs_tol=step / 100):
                kind = "overlaps" if upper.min_km < expected_min else "leaves a gap after"
                raise ConfigurationFault(
                    f"Tier {index + 1} starting at {upper.min_km} km {kind} "
                    f"tier {index} ending at {lower.max_km} km",
                    details={"index": index + 1, "expected_min_km": expected_min},
                )
        return self

    def lookup_distance(self, distance_km: float) -> float:
        """Truncate a distance to the precision tier bounds are written in."""
        scale = 10**self.tier_precision
        # Epsilon keeps values like 4.99 from truncating to 4.98 through float error
        return math.floor(distance_km * scale + 1e-9) / scale

    def tier_for(self, distance_km: float) -> DistanceTier:
        """First tier containing the distance; tiers are scanned in order."""
        lookup = self.lookup_distance(distance_km)
        for tier in self.distance_tiers:
            if tier.contains(lookup):
                return tier
        # Unreachable for a schedule that passed validation
        raise ConfigurationFault(
            f"No distance tier covers {distance_km} km",
            details={"distance_km": distance_km},
        )


class FareBreakdown(BaseModel):
    """Detailed breakdown of fare components."""

    distance_charge: float = Field(ge=0)
    waiting_minutes: int = Field(ge=0)
    waiting_charge: float = Field(ge=0)
    fixed_price: bool
    total_fare: float = Field(ge=0)


def billable_minutes(waiting_seconds: int) -> int:
    """Billable waiting minutes. A partial minute is not billed until it completes."""
    return max(waiting_seconds, 0) // 60


class FareCalculator:
    """Maps accumulated distance and waiting time to the amount due."""

    def __init__(self, schedule: RateSchedule) -> None:
        self.schedule = schedule

    def calculate(
        self, distance_km: float, waiting_minutes: int, trip_type: TripType
    ) -> FareBreakdown:
        """Calculate the fare for the distance and waiting time so far.

        Fixed-price trip types charge their fixed price regardless of
        distance; every trip type pays waiting time at the schedule's rate.
        """
        if distance_km < 0:
            raise ValueError("Distance must be non-negative")
        if waiting_minutes < 0:
            raise ValueError("Waiting minutes must be non-negative")

        if trip_type.fixed_price is not None:
            distance_charge = trip_type.fixed_price
        else:
            distance_charge = self.schedule.tier_for(distance_km).charge(distance_km)

        waiting_charge = waiting_minutes * self.schedule.waiting_rate_per_minute

        return FareBreakdown(
            distance_charge=distance_charge,
            waiting_minutes=waiting_minutes,
            waiting_charge=waiting_charge,
            fixed_price=trip_type.is_fixed_price,
            total_fare=distance_charge + waiting_charge,
        )

    def baseline(self, trip_type: TripType) -> float:
        """Amount shown before any distance or waiting time accrues."""
        if trip_type.fixed_price is not None:
            return trip_type.fixed_price
        return self.schedule.base_fare


def calculate_fare(
    distance_km: float,
    waiting_minutes: int,
    trip_type: TripType,
    schedule: RateSchedule,
) -> float:
    return FareCalculator(schedule).calculate(distance_km, waiting_minutes, trip_type).total_fare


def index_trip_types(trip_types: Iterable[TripType]) -> dict[str, TripType]:
    """Index trip types by id, rejecting duplicate ids."""
    index: dict[str, TripType] = {}
    for trip_type in trip_types:
        if trip_type.id in index:
            raise ConfigurationFault(
                f"Duplicate trip type id '{trip_type.id}'",
                details={"id": trip_type.id},
            )
        index[trip_type.id] = trip_type
    if not index:
        raise ConfigurationFault("At least one trip type must be configured")
    return index


DEFAULT_RATES = RateSchedule(
    base_fare=50,
    waiting_rate_per_minute=3,
    distance_tiers=(
        DistanceTier(min_km=0, max_km=4.99, price=50),
        DistanceTier(min_km=5, max_km=5.99, price=60),
        DistanceTier(min_km=6, max_km=6.99, price=65),
        DistanceTier(min_km=7, max_km=7.99, price=70),
        DistanceTier(min_km=8, base_price=80, extra_rate_per_km=16),
    ),
)

NORMAL_TRIP = TripType(
    id="normal",
    name="Viaje Normal",
    description="Tarifa estándar por distancia",
)
AIRPORT_TRIP = TripType(
    id="airport",
    name="Aeropuerto",
    description="Viaje al aeropuerto",
    fixed_price=150,
)
OUTBOUND_TRIP = TripType(
    id="outbound",
    name="Foráneo",
    description="Viaje fuera de la ciudad",
    fixed_price=200,
)

DEFAULT_TRIP_TYPES: tuple[TripType, ...] = (NORMAL_TRIP, AIRPORT_TRIP, OUTBOUND_TRIP)
