"""Virtual time control."""

from .clock import MAX_SPEED, MIN_SPEED, Time, TimeSpan

__all__ = [
    "MAX_SPEED",
    "MIN_SPEED",
    "Time",
    "TimeSpan",
]
