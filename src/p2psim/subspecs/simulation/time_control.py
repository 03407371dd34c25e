"""
Time Control
============

Event handlers that adjust the virtual clock in reaction to the simulation.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

from p2psim.subspecs.events.event import Event, MessageArrived, MessageSent, NodeEvent
from p2psim.subspecs.world.world import World
from p2psim.types import Entity

from .handlers import EventHandler

if TYPE_CHECKING:
    from .simulation import Simulation

MessagePredicate = Callable[[Entity, World], bool]
"""Decides whether a message entity is worth slowing down for."""


class SlowDownOnMessages(EventHandler):
    """
    Runs the clock at `slow_speed` while relevant messages are in flight.

    The speed in effect when the first relevant message leaves is restored
    once the last one arrives. In-flight messages are counted from
    `MessageSent` and `MessageArrived` events, so the handler must be
    registered before those messages are sent.
    """

    def __init__(self, slow_speed: float, is_relevant_message: MessagePredicate) -> None:
        self.slow_speed = slow_speed
        self.is_relevant_message = is_relevant_message
        self.regular_speed = 0.0
        self.messages_in_flight = 0
        self.is_active = True

    def toggle_active(self, sim: Simulation) -> None:
        if self.is_active:
            self.deactivate(sim)
        else:
            self.activate()

    def activate(self) -> None:
        # Messages already in flight are not counted.
        self.is_active = True

    def deactivate(self, sim: Simulation) -> None:
        """Stop slowing down, restoring the regular speed if currently slowed."""
        self.is_active = False
        if self.messages_in_flight > 0:
            self.messages_in_flight = 0
            sim.time.set_speed(self.regular_speed)

    def handle_event(self, sim: Simulation, event: Event) -> None:
        if not self.is_active:
            return
        match event:
            case NodeEvent(kind=MessageSent(message=message)):
                if self.is_relevant_message(message, sim.world):
                    if self.messages_in_flight == 0:
                        self.regular_speed = sim.time.speed()
                        sim.time.set_speed(self.slow_speed)
                    self.messages_in_flight += 1
            case NodeEvent(kind=MessageArrived(message=message)):
                if self.is_relevant_message(message, sim.world) and self.messages_in_flight > 0:
                    self.messages_in_flight -= 1
                    if self.messages_in_flight == 0:
                        sim.time.set_speed(self.regular_speed)
