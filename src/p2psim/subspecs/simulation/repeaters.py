"""
Command Repeaters
=================

Composite commands that run a wrapped command several times.

Recurring commands reschedule themselves *before* running the wrapped
command, so a failing command does not end the recurrence. The first call
(usually `do_now` at setup time) only bootstraps the recurrence and skips
the wrapped command.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from p2psim.types import SMALLEST_INTERVAL, SimSeconds

from .command import Command

if TYPE_CHECKING:
    from .simulation import Simulation


@dataclass(frozen=True, slots=True)
class MultipleTimes(Command):
    """Run `command` `times` times in a row within one event."""

    command: Command
    times: int

    def execute(self, sim: Simulation) -> None:
        # The first failure aborts the remaining repetitions.
        for _ in range(self.times):
            self.command.execute(sim)


@dataclass(frozen=True, slots=True)
class AtStaticIntervals(Command):
    """Run `command` every `interval` virtual seconds, skipping the bootstrap call."""

    command: Command
    interval: SimSeconds
    skip_one: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "interval", max(SMALLEST_INTERVAL, self.interval))

    def execute(self, sim: Simulation) -> None:
        sim.do_in(self.interval, replace(self, skip_one=False))
        if not self.skip_one:
            self.command.execute(sim)


@dataclass(frozen=True, slots=True)
class AtRandomIntervals(Command):
    """
    Run `command` at normally distributed intervals, skipping the bootstrap call.

    Each interval is drawn from N(mean_interval, std_dev) using the
    simulation's RNG and floored at the smallest positive float.
    """

    command: Command
    mean_interval: SimSeconds
    std_dev: float = 1.0
    skip_one: bool = True

    def random_interval(self, sim: Simulation) -> SimSeconds:
        return max(SMALLEST_INTERVAL, sim.rng.normalvariate(self.mean_interval, self.std_dev))

    def execute(self, sim: Simulation) -> None:
        sim.do_in(self.random_interval(sim), replace(self, skip_one=False))
        if not self.skip_one:
            self.command.execute(sim)
