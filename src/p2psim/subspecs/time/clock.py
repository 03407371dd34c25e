"""
Virtual Clock
=============

Maps wall-clock time elapsed on the host to virtual simulation time.

The host (a render loop, a CLI, a test) reports how much real time has
passed. The clock converts that into a target virtual time using a speed
factor. Pausing freezes virtual time regardless of how much real time
passes.

Speed changes only affect future conversions. Events that were already
scheduled keep their virtual due times.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from p2psim.types import RealSeconds, SimSeconds

MIN_SPEED: Final = 1e-6
"""Lower bound for the tenfold speed controls."""

MAX_SPEED: Final = 1e6
"""Upper bound for the tenfold speed controls."""


class Time:
    """Virtual clock with a speed factor and a pause switch."""

    __slots__ = ("_speed", "_now", "_paused")

    def __init__(self, speed: float) -> None:
        self._speed = speed
        self._now: SimSeconds = 0.0
        self._paused = False

    def now(self) -> SimSeconds:
        """Current virtual time."""
        return self._now

    def speed(self) -> float:
        """Virtual seconds per real second."""
        return self._speed

    def paused(self) -> bool:
        return self._paused

    def after(self, elapsed_real_time: RealSeconds) -> SimSeconds:
        """
        Virtual time reached once `elapsed_real_time` has passed on the host.

        Returns `now()` unchanged while paused.
        """
        if self._paused:
            return self._now
        return self._now + elapsed_real_time * self._speed

    def advance_to(self, new_now: SimSeconds) -> None:
        """
        Move virtual time forward.

        Moving backwards is a bug in the caller and aborts.
        """
        assert new_now >= self._now, f"time moved backwards: {new_now} < {self._now}"
        self._now = new_now

    def set_speed(self, speed: float) -> None:
        self._speed = speed

    def toggle_paused(self) -> None:
        self._paused = not self._paused

    def speed_up_tenfold_clamped(self) -> None:
        """Make time run ten times faster, up to `MAX_SPEED`."""
        self._speed = min(self._speed * 10.0, MAX_SPEED)

    def slow_down_tenfold_clamped(self) -> None:
        """Make time run ten times slower, down to `MIN_SPEED`."""
        self._speed = max(self._speed / 10.0, MIN_SPEED)


@dataclass(frozen=True, slots=True)
class TimeSpan:
    """The virtual interval during which a message is in flight."""

    start: SimSeconds
    """Send time."""

    end: SimSeconds
    """Arrival time. The arrival event is scheduled exactly here."""

    def progress(self, now: SimSeconds) -> float:
        """Fraction of the flight completed at `now` (0 at send, 1 at arrival)."""
        duration = self.end - self.start
        if duration <= 0:
            return 1.0
        return (now - self.start) / duration
