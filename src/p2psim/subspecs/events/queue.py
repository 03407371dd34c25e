"""
Event Queue
===========

Time-ordered priority queue of pending events.

Ordering
--------
Events come out by ascending due time. Events due at the same time come out
in the order they were pushed: every push draws a strictly increasing
sequence number that breaks ties.

This tie-break is what makes runs reproducible. All randomness is drawn from
one stream, in event-processing order, so a fixed seed plus a fixed event
order yields the same simulation every time.

There is no cancellation. To cancel work, despawn the entity the event
refers to; handlers treat a missing entity as "nothing to do".
"""

from __future__ import annotations

import heapq
from dataclasses import dataclass, field
from itertools import count

from p2psim.types import SimSeconds

from .event import Event


@dataclass(order=True, frozen=True, slots=True)
class TimedEvent:
    """An event together with when it is due."""

    time_due: SimSeconds
    """Virtual time at which the event should be processed."""

    sequence: int
    """Push order. Breaks ties between equal due times."""

    event: Event = field(compare=False)
    """The event itself. Never compared."""


@dataclass(slots=True)
class EventQueue:
    """Min-heap of `TimedEvent`, FIFO among equal due times."""

    _heap: list[TimedEvent] = field(default_factory=list)
    """Binary heap ordered by (time_due, sequence)."""

    _sequence: count = field(default_factory=count)
    """Monotonic push counter."""

    def __len__(self) -> int:
        return len(self._heap)

    def push(self, time_due: SimSeconds, event: Event) -> None:
        """Schedule `event` at `time_due`. O(log n)."""
        heapq.heappush(self._heap, TimedEvent(time_due, next(self._sequence), event))

    def pop(self) -> tuple[SimSeconds, Event] | None:
        """Remove and return the earliest event, or None if the queue is empty."""
        if not self._heap:
            return None
        timed = heapq.heappop(self._heap)
        return timed.time_due, timed.event

    def peek(self) -> tuple[SimSeconds, Event] | None:
        """Return the earliest event without removing it."""
        if not self._heap:
            return None
        timed = self._heap[0]
        return timed.time_due, timed.event
