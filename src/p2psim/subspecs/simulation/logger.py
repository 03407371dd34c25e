"""
Simulation Log
==============

Bounded, newest-first log of what happened in virtual time.

Hosts render the latest entries next to the network view. Every entry is
also forwarded to the standard `logging` module, so CLI runs and tests see
the full history.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Iterator
from dataclasses import dataclass, field

from p2psim.types import SimSeconds

logger = logging.getLogger(__name__)

DEFAULT_LOG_CAPACITY = 12
"""Number of entries kept for display."""


@dataclass(slots=True)
class Logger:
    """Keeps the `capacity` most recent log entries."""

    capacity: int = DEFAULT_LOG_CAPACITY
    """Maximum number of retained entries."""

    _entries: deque[tuple[SimSeconds, str]] = field(init=False, repr=False)
    """(virtual time, message) pairs, newest first."""

    def __post_init__(self) -> None:
        self._entries = deque(maxlen=self.capacity)

    def __len__(self) -> int:
        return len(self._entries)

    def log(self, sim_time: SimSeconds, message: str, level: int = logging.INFO) -> None:
        """Record `message` at `sim_time`, evicting the oldest entry when full."""
        self._entries.appendleft((sim_time, message))
        logger.log(level, "[t=%.4f] %s", sim_time, message)

    def entries(self) -> Iterator[tuple[SimSeconds, str]]:
        """Retained entries, newest first."""
        return iter(self._entries)
