"""
Random Walks
============

A poked node starts a walk: a token hopping to a uniformly random peer at
each step until its time-to-live runs out.
"""

from __future__ import annotations

from dataclasses import dataclass

from p2psim.subspecs.protocol.node_interface import NodeInterface
from p2psim.subspecs.protocol.protocol import Protocol
from p2psim.subspecs.underlay.components import UnderlayMessage
from p2psim.types import Entity, NotEnoughPeersError


@dataclass(frozen=True, slots=True)
class RandomWalkMessage:
    ttl: int
    """Hops the walk may still take after this one."""


def random_step(node: NodeInterface, current_ttl: int) -> Entity:
    """
    Send the walk to a random peer with one less hop to go.

    Raises:
        NotEnoughPeersError: If the node has no peers.
    """
    peers = list(node.peers())
    if not peers:
        raise NotEnoughPeersError()
    return node.send_message(node.rng.choice(peers), RandomWalkMessage(current_ttl - 1))


class RandomWalks(Protocol):
    """Random walks of `walks_ttl` hops."""

    message_type = RandomWalkMessage

    def __init__(self, walks_ttl: int) -> None:
        if walks_ttl < 1:
            raise ValueError(f"walks_ttl must be at least 1, got {walks_ttl}")
        self.walks_ttl = walks_ttl

    def handle_message(
        self, node: NodeInterface, underlay_message: UnderlayMessage, payload: RandomWalkMessage
    ) -> None:
        if payload.ttl > 0:
            random_step(node, payload.ttl)
        else:
            node.log("A random walk ended!")

    def handle_poke(self, node: NodeInterface) -> None:
        random_step(node, self.walks_ttl)
