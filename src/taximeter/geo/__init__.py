from .distance import CORRECTION_FACTOR, corrected_distance_m, haversine_distance_m
from .gps_simulation import GPSSimulator
from .position import Position
from .sample_filter import FilterDecision, FilterVerdict, GeoSampleFilter

__all__ = [
    "Position",
    "CORRECTION_FACTOR",
    "corrected_distance_m",
    "haversine_distance_m",
    "GeoSampleFilter",
    "FilterDecision",
    "FilterVerdict",
    "GPSSimulator",
]
