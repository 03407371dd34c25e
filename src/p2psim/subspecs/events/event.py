"""
Simulation Event Types
======================

Events carry entity ids only. Any payload lives in components attached to
the referenced entity, so an event stays valid (and cheap to copy) no matter
what happens to the data it points at.

::

    Event
      +-- CommandEvent(entity)          a scheduled command is due
      +-- NodeEvent(node, kind)         something happened at a node
      |     +-- MessageSent(message)
      |     +-- MessageArrived(message)
      |     +-- TimerFired(timer)
      |     +-- PeerSetChanged(PeerAdded(peer) | PeerRemoved(peer))
      |     +-- Poke()
      +-- GenericEvent(entity)          host-defined marker

Handlers dispatch on these with structural pattern matching.
"""

from __future__ import annotations

from dataclasses import dataclass

from p2psim.types import Entity


@dataclass(frozen=True, slots=True)
class PeerAdded:
    """`peer` was inserted into the node's peer set."""

    peer: Entity


@dataclass(frozen=True, slots=True)
class PeerRemoved:
    """`peer` was removed from the node's peer set."""

    peer: Entity


PeerSetUpdate = PeerAdded | PeerRemoved
"""Change to a node's peer set."""


@dataclass(frozen=True, slots=True)
class MessageSent:
    """
    A message left its source node.

    Scheduled at send time for the source. Protocols ignore it; observers
    such as `SlowDownOnMessages` use it to count messages in flight.
    """

    message: Entity


@dataclass(frozen=True, slots=True)
class MessageArrived:
    """A message reached its destination node. The message entity dies afterwards."""

    message: Entity


@dataclass(frozen=True, slots=True)
class TimerFired:
    """A timer set by the node expired. The timer entity dies afterwards."""

    timer: Entity


@dataclass(frozen=True, slots=True)
class PeerSetChanged:
    """The node's peer set changed."""

    update: PeerSetUpdate


@dataclass(frozen=True, slots=True)
class Poke:
    """External trigger, e.g. a user click or a mining success."""


NodeEventKind = MessageSent | MessageArrived | TimerFired | PeerSetChanged | Poke
"""Everything that can happen at a node."""


@dataclass(frozen=True, slots=True)
class CommandEvent:
    """The command stored on `entity` is due."""

    entity: Entity


@dataclass(frozen=True, slots=True)
class NodeEvent:
    """`kind` happened at `node`."""

    node: Entity
    kind: NodeEventKind


@dataclass(frozen=True, slots=True)
class GenericEvent:
    """Host-defined event referencing an arbitrary entity."""

    entity: Entity


Event = CommandEvent | NodeEvent | GenericEvent
"""Union of all events the kernel can schedule."""
