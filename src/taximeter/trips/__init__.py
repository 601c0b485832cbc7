from .session import StateListener, TripSession

__all__ = ["TripSession", "StateListener"]
