"""
Node Interface
==============

The restricted view of the simulation a protocol gets for one node.

Protocols never touch the simulation directly. Everything a node can do
goes through this view: reading and writing its own state, sending
messages, setting timers, logging, drawing randomness, and using the global
block and transaction registry.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, TypeVar

from pydantic import ValidationError

from p2psim.subspecs.underlay.components import PeerSet
from p2psim.types import Entity, InvalidTransactionError, SimSeconds

from .blockchain import Address, BlockContents, BlockHeader, Transaction

if TYPE_CHECKING:
    import random

    from p2psim.subspecs.simulation.simulation import Simulation

T = TypeVar("T")


class NodeInterface:
    """Short-lived view of `sim` scoped to `node`."""

    __slots__ = ("sim", "node")

    def __init__(self, sim: Simulation, node: Entity) -> None:
        self.sim = sim
        self.node = node

    def get(self, component_type: type[T]) -> T:
        """The node's component of `component_type`, created with defaults if absent."""
        return self.sim.world.get_or_insert_default(self.node, component_type)

    def peers(self) -> PeerSet:
        return self.sim.peers(self.node)

    def log(self, message: str) -> None:
        """Log `message`, prefixed with the node's name."""
        self.sim.log(f"{self.sim.name(self.node)}: {message}")

    @property
    def rng(self) -> random.Random:
        return self.sim.rng

    def now(self) -> SimSeconds:
        return self.sim.time.now()

    def send_message(self, dest: Entity, payload: object) -> Entity:
        return self.sim.send_message(self.node, dest, payload)

    def send_messages(self, dest: Entity, payloads: Iterable[object]) -> list[Entity]:
        return self.sim.send_messages(self.node, dest, payloads)

    def set_timer(self, delay: SimSeconds, *components: object) -> Entity:
        return self.sim.set_timer(self.node, delay, *components)

    # -------------------------------------------------------------------------
    # Global block and transaction registry
    # -------------------------------------------------------------------------

    def spawn_transaction(self, sender: Address, recipient: Address, value: int) -> Entity:
        """
        Register a transaction in the global registry.

        Raises:
            InvalidTransactionError: If an address is empty or the value negative.
        """
        try:
            transaction = Transaction(sender=sender, recipient=recipient, value=value)
        except ValidationError as e:
            raise InvalidTransactionError(f"Invalid transaction: {e}") from e
        return self.sim.world.spawn(transaction)

    def get_transaction(self, tx_id: Entity) -> Transaction | None:
        return self.sim.world.try_get(tx_id, Transaction)

    def spawn_block(self, id_prev: Entity | None, contents: Iterable[Entity]) -> BlockHeader:
        """
        Register a block extending `id_prev` in the global registry.

        Pass `id_prev=None` for the first block of a chain.
        """
        if id_prev is None:
            height = 1
        else:
            # A parent that was never registered is a bug in the caller.
            height = self.sim.world.get(id_prev, BlockHeader).height + 1
        block_id = self.sim.world.reserve_entity()
        header = BlockHeader(block_id, id_prev, height)
        self.sim.world.insert(block_id, header, BlockContents.of(contents))
        return header

    def get_block(self, block_id: Entity) -> tuple[BlockHeader, BlockContents] | None:
        header = self.get_block_header(block_id)
        contents = self.get_block_contents(block_id)
        if header is None or contents is None:
            return None
        return header, contents

    def get_block_header(self, block_id: Entity) -> BlockHeader | None:
        return self.sim.world.try_get(block_id, BlockHeader)

    def get_block_contents(self, block_id: Entity) -> BlockContents | None:
        return self.sim.world.try_get(block_id, BlockContents)
