"""
Commands
========

A command is an action run against the whole simulation at a scheduled
virtual time.

Scheduling a command spawns a throwaway entity holding a `CommandEntry` and
schedules a `CommandEvent` for it. When the event is drained the command
handler looks the entry up and runs the command. Despawning the entry before
it is due cancels the command.

Commands are immutable. A command that must run again (see the repeaters)
schedules a fresh copy of itself.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING

from p2psim.subspecs.events.event import CommandEvent, Event
from p2psim.types import Entity, SimSeconds

from .handlers import EventHandler

if TYPE_CHECKING:
    from .simulation import Simulation


class Command(ABC):
    """An action with exclusive access to the simulation."""

    @abstractmethod
    def execute(self, sim: Simulation) -> None:
        """
        Run the command.

        Raises:
            SimulationError: On an operational failure.
        """


class EntityAction(ABC):
    """An action applied to one entity, usually a node."""

    @abstractmethod
    def execute_for(self, sim: Simulation, entity: Entity) -> None:
        """
        Run the action for `entity`.

        Raises:
            SimulationError: On an operational failure.
        """


@dataclass(frozen=True, slots=True)
class CommandEntry:
    """Component holding a scheduled command."""

    command: Command
    time_due: SimSeconds


@dataclass(frozen=True, slots=True)
class ForSpecific(Command):
    """Apply `action` to one given entity."""

    entity: Entity
    action: EntityAction

    def execute(self, sim: Simulation) -> None:
        self.action.execute_for(sim, self.entity)


class CommandHandler(EventHandler):
    """Runs the command referenced by a `CommandEvent`."""

    def handle_event(self, sim: Simulation, event: Event) -> None:
        if not isinstance(event, CommandEvent):
            return
        # Missing entry: the command was cancelled.
        entry = sim.world.try_get(event.entity, CommandEntry)
        if entry is not None:
            entry.command.execute(sim)
