from .clock import MeterClock, PeriodicJob

__all__ = ["MeterClock", "PeriodicJob"]
