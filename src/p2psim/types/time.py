"""Time value aliases shared by the kernel and the protocols."""

import sys
from typing import Final

SimSeconds = float
"""Virtual simulation time, totally ordered and monotonically non-decreasing."""

RealSeconds = float
"""Wall-clock seconds, as reported by the host driving the simulation."""

SMALLEST_INTERVAL: Final[SimSeconds] = sys.float_info.min
"""Smallest positive normal float. Recurring commands never wait less than this."""
