"""
Event Handlers
==============

Everything that reacts to events implements `EventHandler`.

The kernel offers each drained event to three stages, in order:

1. The command handler (runs due commands).
2. Every registered handler, in registration order. Protocol adapters and
   host observers live here.
3. The despawner, which destroys transient entities whose event has been
   handled.

Handlers get exclusive access to the simulation for the duration of one
event. No handler runs while another one is running.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, TypeVar

from p2psim.subspecs.events.event import (
    CommandEvent,
    Event,
    MessageArrived,
    NodeEvent,
    TimerFired,
)

if TYPE_CHECKING:
    from .simulation import Simulation

H = TypeVar("H", bound="EventHandler")


class EventHandler(ABC):
    """Reacts to drained events."""

    @abstractmethod
    def handle_event(self, sim: Simulation, event: Event) -> None:
        """
        Handle one event.

        Raises:
            SimulationError: On an operational failure. The kernel logs it
                and continues with the next event.
        """


@dataclass(slots=True)
class EventHandlers:
    """Ordered registry of host-registered handlers."""

    _handlers: list[EventHandler] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self._handlers)

    def add(self, handler: EventHandler) -> int:
        """Register `handler`. Returns its index for later lookup."""
        self._handlers.append(handler)
        return len(self._handlers) - 1

    def get(self, index: int, handler_type: type[H]) -> H | None:
        """Return the handler at `index` if it is a `handler_type`, else None."""
        if not 0 <= index < len(self._handlers):
            return None
        handler = self._handlers[index]
        return handler if isinstance(handler, handler_type) else None

    def handle_event(self, sim: Simulation, event: Event) -> None:
        """Offer `event` to every handler in registration order."""
        # Handlers may register further handlers; those see the next event.
        for handler in list(self._handlers):
            handler.handle_event(sim, event)


class Despawner(EventHandler):
    """
    Destroys transient entities once their event has been handled.

    Messages die on arrival, timers when they fire, and command entries once
    the command ran. An entity that is already gone is left alone.
    """

    def handle_event(self, sim: Simulation, event: Event) -> None:
        match event:
            case NodeEvent(kind=MessageArrived(message=entity) | TimerFired(timer=entity)):
                pass
            case CommandEvent(entity=entity):
                pass
            case _:
                return
        if entity in sim.world:
            sim.world.despawn(entity)
