"""Noise suppression for incoming position samples.

Consumer GPS jitter at rest routinely reports multi-meter jumps. Movement
below the threshold is discarded, but the reference point always advances
to the newest sample so the next real movement is measured from where the
vehicle actually is.
"""

import logging
from dataclasses import dataclass
from enum import Enum

from taximeter.geo.distance import CORRECTION_FACTOR, corrected_distance_m
from taximeter.geo.position import Position
from taximeter.trip import TripPhase

logger = logging.getLogger(__name__)

NOISE_THRESHOLD_M = 5.0


class FilterVerdict(str, Enum):
    """What the session should do with a sample."""

    MOVEMENT = "movement"  # count delta_m and advance the reference
    REFERENCE_ONLY = "reference_only"  # advance the reference, count nothing
    REJECTED = "rejected"  # leave trip state untouched


@dataclass(frozen=True)
class FilterDecision:
    verdict: FilterVerdict
    delta_m: float = 0.0

    @property
    def updates_reference(self) -> bool:
        return self.verdict != FilterVerdict.REJECTED


_REJECT = FilterDecision(FilterVerdict.REJECTED)
_REFERENCE_ONLY = FilterDecision(FilterVerdict.REFERENCE_ONLY)


class GeoSampleFilter:
    """Decides whether a sample counts as movement.

    Sub-threshold drift is forgotten rather than accumulated, so a slow
    crawl made of many sub-threshold steps is never billed.
    """

    def __init__(
        self,
        threshold_m: float = NOISE_THRESHOLD_M,
        correction_factor: float = CORRECTION_FACTOR,
    ) -> None:
        self.threshold_m = threshold_m
        self.correction_factor = correction_factor

    def evaluate(
        self,
        previous: Position | None,
        sample: Position,
        phase: TripPhase,
    ) -> FilterDecision:
        if not sample.is_plausible():
            logger.debug(f"Discarding implausible sample {sample.coordinates}")
            return _REJECT

        if phase not in (TripPhase.RUNNING, TripPhase.PAUSED):
            return _REJECT

        if phase == TripPhase.PAUSED or previous is None:
            return _REFERENCE_ONLY

        delta_m = corrected_distance_m(previous, sample, self.correction_factor)
        if delta_m > self.threshold_m:
            return FilterDecision(FilterVerdict.MOVEMENT, delta_m)

        logger.debug(f"Suppressed {delta_m:.2f} m of drift (threshold {self.threshold_m} m)")
        return _REFERENCE_ONLY
