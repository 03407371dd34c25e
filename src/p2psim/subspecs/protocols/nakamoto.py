"""
Nakamoto Consensus
==================

A simplified longest-chain blockchain on top of simple flooding.

Nodes gossip inventory items: references to globally registered blocks and
transactions. Each node keeps the blocks it knows, its current tip, and the
tips of the forks it has seen. Poking a node (or running `MineBlock` on it)
stands in for a successful proof-of-work: the node mints a block on its tip
containing all its unconfirmed transactions and floods it.

Fork choice
-----------
A node switches to a fork only when the fork becomes strictly higher than
its current chain. Equal heights keep the block that arrived first. Blocks
whose parent is unknown are dropped.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import TYPE_CHECKING, Self

from p2psim.subspecs.events.event import PeerAdded, PeerRemoved, PeerSetUpdate
from p2psim.subspecs.metrics import registry as metrics
from p2psim.subspecs.protocol.blockchain import Address, BlockContents, BlockHeader
from p2psim.subspecs.protocol.node_interface import NodeInterface
from p2psim.subspecs.protocol.protocol import Protocol
from p2psim.subspecs.simulation.command import EntityAction
from p2psim.subspecs.underlay.components import UnderlayMessage
from p2psim.types import Entity, UnknownBlockError

from .simple_flooding import SimpleFlooding, SimpleFloodingMessage

if TYPE_CHECKING:
    from p2psim.subspecs.simulation.simulation import Simulation


class InventoryKind(IntEnum):
    TRANSACTION = 0
    BLOCK = 1


@dataclass(frozen=True, slots=True)
class InventoryItem:
    """Reference to a transaction or a block in the global registry."""

    kind: InventoryKind
    id: Entity

    @classmethod
    def transaction(cls, tx_id: Entity) -> Self:
        return cls(InventoryKind.TRANSACTION, tx_id)

    @classmethod
    def block(cls, block_id: Entity) -> Self:
        return cls(InventoryKind.BLOCK, block_id)


@dataclass(slots=True)
class NakamotoNodeState:
    """
    One node's view of the chain.

    Every known block is reachable from the tip or a fork tip by following
    parent links down to the first block.
    """

    known_blocks: dict[Entity, BlockHeader] = field(default_factory=dict)
    """Headers of all blocks this node accepted, forks included."""

    tip: Entity | None = None
    """Head of the chain this node follows. None until the first block."""

    fork_tips: set[Entity] = field(default_factory=set)
    """Heads of the chains this node knows but does not follow."""

    txes_unconfirmed: set[Entity] = field(default_factory=set)
    """Transactions waiting to be included in a block."""

    txes_confirmed: set[Entity] = field(default_factory=set)
    """Transactions included in a block that became tip."""

    def register_block(self, header: BlockHeader, contents: BlockContents) -> bool:
        """
        Apply fork choice to a newly received block.

        Returns:
            True if the tip changed.
        """
        if header.id in self.known_blocks:
            return False

        if header.id_prev == self.tip:
            self.known_blocks[header.id] = header
            self.register_new_tip(header.id, contents)
            return True

        if header.id_prev is None:
            # A competing chain from genesis.
            self.known_blocks[header.id] = header
            self.fork_tips.add(header.id)
            return False

        if header.id_prev in self.known_blocks:
            self.known_blocks[header.id] = header
            # No-op when the block starts a new fork.
            self.fork_tips.discard(header.id_prev)
            self.fork_tips.add(header.id)
            if header.height <= self.tip_height():
                return False

            old_tip = self.tip
            assert old_tip is not None
            self.register_new_tip(header.id, contents)
            self.fork_tips.discard(header.id)
            self.fork_tips.add(old_tip)
            metrics.chain_reorgs.inc()
            return True

        # Orphan: parent unknown.
        return False

    def register_new_tip(self, block_id: Entity, contents: BlockContents) -> None:
        self.tip = block_id
        for tx_id in contents:
            self.txes_unconfirmed.discard(tx_id)
            self.txes_confirmed.add(tx_id)

    def register_transaction_id(self, tx_id: Entity) -> None:
        if tx_id not in self.txes_confirmed:
            self.txes_unconfirmed.add(tx_id)

    def drain_unconfirmed_transactions(self) -> list[Entity]:
        """Take all unconfirmed transactions, ascending."""
        drained = sorted(self.txes_unconfirmed)
        self.txes_unconfirmed.clear()
        return drained

    def block_header(self, block_id: Entity) -> BlockHeader | None:
        return self.known_blocks.get(block_id)

    def height(self, block_id: Entity | None) -> int:
        """
        Height of a known block, 0 for the virtual genesis (None).

        Asking for an unknown block is a bug in the caller.
        """
        if block_id is None:
            return 0
        return self.known_blocks[block_id].height

    def tip_height(self) -> int:
        return self.height(self.tip)

    def known_blocks_sorted(self) -> list[Entity]:
        """All known block ids, parents before children (ascending height)."""
        return [
            block_id
            for block_id, _ in sorted(
                self.known_blocks.items(), key=lambda item: (item[1].height, item[0])
            )
        ]

    def ancestors(self, block_id: Entity) -> list[Entity]:
        """
        `block_id` followed by its known ancestors, down to the first block.

        Stops early at a parent this node does not know.
        """
        chain = []
        current: Entity | None = block_id
        while current is not None and current in self.known_blocks:
            chain.append(current)
            current = self.known_blocks[current].id_prev
        return chain


class NakamotoConsensus(Protocol):
    """Longest-chain consensus over flooded inventory items."""

    def __init__(self) -> None:
        self.flooding: SimpleFlooding[InventoryItem] = SimpleFlooding(InventoryItem)
        self.message_type = self.flooding.message_type

    @staticmethod
    def state(node: NodeInterface) -> NakamotoNodeState:
        return node.get(NakamotoNodeState)

    def handle_transaction(self, node: NodeInterface, tx_id: Entity) -> None:
        self.state(node).register_transaction_id(tx_id)

    def handle_block(self, node: NodeInterface, block_id: Entity) -> None:
        """
        Run fork choice on a block received from a peer.

        Raises:
            UnknownBlockError: If the block is not in the global registry.
        """
        block = node.get_block(block_id)
        if block is None:
            raise UnknownBlockError(block_id)
        header, contents = block
        self.state(node).register_block(header, contents)

    def handle_new_transaction(
        self, node: NodeInterface, sender: Address, recipient: Address, amount: int
    ) -> None:
        """
        Create a transaction at `node` and flood it.

        Raises:
            InvalidTransactionError: If the transaction fields are invalid.
        """
        node.log(f"Building new transaction: {amount} toshis from {sender} to {recipient}.")
        tx_id = node.spawn_transaction(sender, recipient, amount)
        self.state(node).register_transaction_id(tx_id)
        self.flooding.flood(node, InventoryItem.transaction(tx_id))

    def handle_mining_success(self, node: NodeInterface) -> None:
        """Mint a block on the tip with all unconfirmed transactions and flood it."""
        state = self.state(node)
        header = node.spawn_block(state.tip, state.drain_unconfirmed_transactions())
        contents = node.get_block_contents(header.id)
        assert contents is not None
        node.log(
            f"Mined a new block of height {header.height} "
            f"that contains {len(contents)} transactions."
        )
        metrics.blocks_mined.inc()
        state.register_block(header, contents)
        self.flooding.flood(node, InventoryItem.block(header.id))

    def handle_message(
        self,
        node: NodeInterface,
        underlay_message: UnderlayMessage,
        payload: SimpleFloodingMessage[InventoryItem],
    ) -> None:
        item = payload.item
        match item.kind:
            case InventoryKind.TRANSACTION:
                self.handle_transaction(node, item.id)
            case InventoryKind.BLOCK:
                self.handle_block(node, item.id)
        self.flooding.handle_message(node, underlay_message, payload)

    def handle_poke(self, node: NodeInterface) -> None:
        self.handle_mining_success(node)

    def handle_peer_set_update(self, node: NodeInterface, update: PeerSetUpdate) -> None:
        match update:
            case PeerAdded(peer=peer):
                # Parents before children, so the peer can attach every block.
                blocks = self.state(node).known_blocks_sorted()
                self.flooding.flood_peer_with(node, peer, map(InventoryItem.block, blocks))
            case PeerRemoved(peer=peer):
                self.flooding.forget_peer(node, peer)


@dataclass(frozen=True, slots=True)
class MineBlock(EntityAction):
    """Make a node mint and flood a block, as if it solved the proof-of-work."""

    def execute_for(self, sim: Simulation, entity: Entity) -> None:
        NakamotoConsensus().handle_mining_success(sim.node_interface(entity))


@dataclass(frozen=True, slots=True)
class BuildAndBroadcastTransaction(EntityAction):
    """Make a node create a transaction and flood it."""

    sender: Address
    recipient: Address
    amount: int

    def execute_for(self, sim: Simulation, entity: Entity) -> None:
        NakamotoConsensus().handle_new_transaction(
            sim.node_interface(entity), self.sender, self.recipient, self.amount
        )
