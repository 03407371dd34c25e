"""
Protocol Dispatch
=================

Runs one protocol's logic on every node.

A `Protocol` reacts to what happens at a single node. Wrapping it in
`InvokeProtocolForAllNodes` turns it into an event handler that routes each
node event to the matching protocol method, with a `NodeInterface` for the
node in question.

Several protocols can share the message bus. Each one only sees messages
whose payload has its `message_type`; everything else passes it by.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from p2psim.subspecs.events.event import (
    Event,
    MessageArrived,
    MessageSent,
    NodeEvent,
    PeerSetChanged,
    PeerSetUpdate,
    Poke,
    TimerFired,
)
from p2psim.subspecs.simulation.command import Command, EntityAction, ForSpecific
from p2psim.subspecs.simulation.handlers import EventHandler
from p2psim.subspecs.underlay.components import Timer, UnderlayMessage
from p2psim.types import Entity

from .node_interface import NodeInterface

if TYPE_CHECKING:
    from p2psim.subspecs.simulation.simulation import Simulation


class Protocol(ABC):
    """Per-node behaviour of a distributed protocol."""

    message_type: type
    """Payload component class of this protocol's messages."""

    @abstractmethod
    def handle_message(
        self, node: NodeInterface, underlay_message: UnderlayMessage, payload: Any
    ) -> None:
        """React to one of this protocol's messages arriving at `node`."""

    def handle_poke(self, node: NodeInterface) -> None:
        """React to user interaction with the node."""
        node.log("I just got poked!")

    def handle_peer_set_update(self, node: NodeInterface, update: PeerSetUpdate) -> None:
        """React to a change of the node's peers. Ignored by default."""

    def handle_timer(self, node: NodeInterface, timer: Entity) -> None:
        """React to a timer set by the node. Ignored by default."""


@dataclass(slots=True)
class InvokeProtocolForAllNodes(EventHandler):
    """Dispatches node events to `protocol`."""

    protocol: Protocol

    def handle_event(self, sim: Simulation, event: Event) -> None:
        if not isinstance(event, NodeEvent):
            return
        node = event.node
        if node not in sim.world:
            # Despawned while the event was pending.
            return

        match event.kind:
            case MessageSent():
                pass
            case MessageArrived(message=message):
                underlay_message = sim.world.try_get(message, UnderlayMessage)
                payload = sim.world.try_get(message, self.protocol.message_type)
                if underlay_message is not None and payload is not None:
                    self.protocol.handle_message(
                        sim.node_interface(node), underlay_message, payload
                    )
            case TimerFired(timer=timer):
                if sim.world.has(timer, Timer):
                    self.protocol.handle_timer(sim.node_interface(node), timer)
            case PeerSetChanged(update=update):
                self.protocol.handle_peer_set_update(sim.node_interface(node), update)
            case Poke():
                self.protocol.handle_poke(sim.node_interface(node))


@dataclass(frozen=True, slots=True)
class PokeNode(EntityAction):
    """Poke a node, as a user clicking on it would."""

    def execute_for(self, sim: Simulation, entity: Entity) -> None:
        sim.schedule_now(NodeEvent(entity, Poke()))


@dataclass(frozen=True, slots=True)
class PokeSpecificNode(Command):
    node: Entity

    def execute(self, sim: Simulation) -> None:
        ForSpecific(self.node, PokeNode()).execute(sim)
