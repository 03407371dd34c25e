"""
Simple Flooding
===============

Gossip dissemination: every node forwards every new item to every peer that
is not known to have it already.

Each node remembers what it has (`own_haves`) and, per peer, what that peer
is known to have (`peer_haves`). A peer "has" an item once we sent it the
item or received the item from it. This keeps each item crossing each link
at most once per direction, as long as the peer set is stable.

When a peer is added the node catches it up with everything it has, so
partitions heal once they are bridged.

Item types
----------
One `SimpleFlooding` instance floods items of a single type. Message and
state components are specialised per item type, so flooding instances over
different item types never see each other's messages or state.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from functools import cache
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from p2psim.subspecs.events.event import PeerAdded, PeerRemoved, PeerSetUpdate
from p2psim.subspecs.protocol.node_interface import NodeInterface
from p2psim.subspecs.protocol.protocol import Protocol
from p2psim.subspecs.simulation.command import Command
from p2psim.subspecs.underlay.components import UnderlayMessage
from p2psim.types import Entity

if TYPE_CHECKING:
    from p2psim.subspecs.simulation.simulation import Simulation

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class SimpleFloodingMessage(Generic[T]):
    """Payload carrying one flooded item."""

    item: T


@dataclass(slots=True)
class SimpleFloodingState(Generic[T]):
    """Per-node flooding bookkeeping."""

    own_haves: dict[T, None] = field(default_factory=dict)
    """Items this node has, in the order it got them."""

    peer_haves: dict[Entity, set[T]] = field(default_factory=dict)
    """Items each peer is known to have."""


@cache
def flooding_message_type(item_type: type) -> type[SimpleFloodingMessage[Any]]:
    """The message component class for items of `item_type`."""
    return type(
        f"SimpleFloodingMessage[{item_type.__name__}]",
        (SimpleFloodingMessage,),
        {"__slots__": ()},
    )


@cache
def flooding_state_type(item_type: type) -> type[SimpleFloodingState[Any]]:
    """The node state component class for items of `item_type`."""
    return type(
        f"SimpleFloodingState[{item_type.__name__}]",
        (SimpleFloodingState,),
        {"__slots__": ()},
    )


class SimpleFlooding(Protocol, Generic[T]):
    """Floods items of `item_type` through the peer network."""

    def __init__(self, item_type: type[T]) -> None:
        self.item_type = item_type
        self.message_type = flooding_message_type(item_type)
        self.state_type = flooding_state_type(item_type)

    def state(self, node: NodeInterface) -> SimpleFloodingState[T]:
        return node.get(self.state_type)

    def flood(self, node: NodeInterface, item: T) -> None:
        """Take `item` as our own and send it to every peer not known to have it."""
        state = self.state(node)
        state.own_haves[item] = None

        next_hops = []
        for peer in node.peers():
            haves = state.peer_haves.setdefault(peer, set())
            if item not in haves:
                haves.add(item)
                next_hops.append(peer)

        for peer in next_hops:
            node.send_message(peer, self.message_type(item))

    def forget_peer(self, node: NodeInterface, peer: Entity) -> None:
        """Drop what we know about `peer`."""
        self.state(node).peer_haves.pop(peer, None)

    def flood_peer_with(self, node: NodeInterface, peer: Entity, items: Iterable[T]) -> None:
        """Send `items` to `peer` in order, marking them as known to it."""
        items = list(items)
        self.state(node).peer_haves.setdefault(peer, set()).update(items)
        node.send_messages(peer, [self.message_type(item) for item in items])

    def handle_message(
        self,
        node: NodeInterface,
        underlay_message: UnderlayMessage,
        payload: SimpleFloodingMessage[T],
    ) -> None:
        item = payload.item
        state = self.state(node)
        state.peer_haves.setdefault(underlay_message.source, set()).add(item)
        if item not in state.own_haves:
            self.flood(node, item)

    def handle_poke(self, node: NodeInterface) -> None:
        node.log("Got poked. So what? Will init my state at least.")
        self.state(node)

    def handle_peer_set_update(self, node: NodeInterface, update: PeerSetUpdate) -> None:
        match update:
            case PeerAdded(peer=peer):
                self.flood_peer_with(node, peer, list(self.state(node).own_haves))
            case PeerRemoved(peer=peer):
                self.forget_peer(node, peer)


@dataclass(frozen=True, slots=True)
class StartSimpleFlooding(Command, Generic[T]):
    """
    Make `node` flood `item`.

    The item travels over the flooding instance for `item_type`, which defaults
    to the exact type of `item`. Pass it explicitly when `item` is an instance
    of a subclass, e.g. `True` flooded over `SimpleFlooding(int)`.
    """

    node: Entity
    item: T
    item_type: type[T] | None = None

    def execute(self, sim: Simulation) -> None:
        item_type = self.item_type or type(self.item)
        SimpleFlooding(item_type).flood(sim.node_interface(self.node), self.item)
