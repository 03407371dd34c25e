"""Tests for the Nakamoto consensus protocol."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from p2psim.subspecs.protocol import (
    BlockContents,
    BlockHeader,
    InvokeProtocolForAllNodes,
    PokeSpecificNode,
)
from p2psim.subspecs.protocols import (
    BuildAndBroadcastTransaction,
    InventoryItem,
    InventoryKind,
    MineBlock,
    NakamotoConsensus,
    NakamotoNodeState,
)
from p2psim.subspecs.simulation import ForSpecific, Simulation
from p2psim.subspecs.underlay import ForRandomNode, MakeDelaunayNetwork, SpawnRandomNodes
from p2psim.types import Entity, InvalidTransactionError, UnknownBlockError

EMPTY = BlockContents()


def header(block_id: int, prev: int | None, height: int) -> BlockHeader:
    return BlockHeader(Entity(block_id), None if prev is None else Entity(prev), height)


def get_state(sim: Simulation, node: Entity) -> NakamotoNodeState:
    return sim.world.get(node, NakamotoNodeState)


@pytest.fixture
def line(sim: Simulation, node_at, link) -> tuple[Entity, Entity, Entity]:
    """Three consensus nodes peered in a line: 1 - 2 - 3."""
    sim.add_event_handler(InvokeProtocolForAllNodes(NakamotoConsensus()))
    nodes = node_at(0.0, 0.0), node_at(300.0, 0.0), node_at(600.0, 100.0)
    link(nodes[0], nodes[1])
    link(nodes[1], nodes[2])
    return nodes


class TestInventoryItem:
    def test_constructors(self) -> None:
        assert InventoryItem.block(Entity(1)) == InventoryItem(InventoryKind.BLOCK, Entity(1))
        assert InventoryItem.transaction(Entity(1)) != InventoryItem.block(Entity(1))


class TestRegisterBlock:
    """Tests for fork choice on a single node state."""

    def test_first_block_becomes_tip(self) -> None:
        state = NakamotoNodeState()
        assert state.register_block(header(1, None, 1), EMPTY)
        assert state.tip == Entity(1)
        assert state.fork_tips == set()

    def test_known_block_is_ignored(self) -> None:
        state = NakamotoNodeState()
        state.register_block(header(1, None, 1), EMPTY)
        assert not state.register_block(header(1, None, 1), EMPTY)

    def test_extending_the_tip(self) -> None:
        state = NakamotoNodeState()
        state.register_block(header(1, None, 1), EMPTY)
        assert state.register_block(header(2, 1, 2), EMPTY)
        assert state.tip == Entity(2)
        assert state.tip_height() == 2

    def test_competing_chain_from_genesis_is_a_fork(self) -> None:
        state = NakamotoNodeState()
        state.register_block(header(1, None, 1), EMPTY)
        assert not state.register_block(header(5, None, 1), EMPTY)
        assert state.tip == Entity(1)
        assert state.fork_tips == {Entity(5)}

    def test_equal_height_keeps_first_arrival(self) -> None:
        state = NakamotoNodeState()
        state.register_block(header(1, None, 1), EMPTY)
        state.register_block(header(2, 1, 2), EMPTY)
        assert not state.register_block(header(3, 1, 2), EMPTY)
        assert state.tip == Entity(2)
        assert state.fork_tips == {Entity(3)}

    def test_longer_fork_takes_over(self) -> None:
        state = NakamotoNodeState()
        state.register_block(header(1, None, 1), EMPTY)
        state.register_block(header(2, 1, 2), EMPTY)
        state.register_block(header(3, 1, 2), EMPTY)
        assert state.register_block(header(4, 3, 3), BlockContents.of([Entity(9)]))

        assert state.tip == Entity(4)
        assert state.fork_tips == {Entity(2)}
        assert Entity(9) in state.txes_confirmed

    def test_orphan_is_dropped(self) -> None:
        state = NakamotoNodeState()
        state.register_block(header(1, None, 1), EMPTY)
        assert not state.register_block(header(7, 6, 3), EMPTY)
        assert Entity(7) not in state.known_blocks
        assert state.tip == Entity(1)

    def test_known_blocks_sorted_and_ancestors(self) -> None:
        state = NakamotoNodeState()
        state.register_block(header(1, None, 1), EMPTY)
        state.register_block(header(5, None, 1), EMPTY)
        state.register_block(header(2, 1, 2), EMPTY)
        state.register_block(header(3, 2, 3), EMPTY)

        assert state.known_blocks_sorted() == [Entity(1), Entity(5), Entity(2), Entity(3)]
        assert state.ancestors(Entity(3)) == [Entity(3), Entity(2), Entity(1)]
        assert state.height(None) == 0
        assert state.block_header(Entity(5)) == header(5, None, 1)


class TestTransactionsState:
    def test_confirmed_transactions_are_not_registered_again(self) -> None:
        state = NakamotoNodeState()
        state.register_block(header(1, None, 1), BlockContents.of([Entity(9)]))
        state.register_transaction_id(Entity(9))
        assert state.txes_unconfirmed == set()

    def test_drain_returns_sorted_and_empties(self) -> None:
        state = NakamotoNodeState()
        for i in (4, 2, 3):
            state.register_transaction_id(Entity(i))
        assert state.drain_unconfirmed_transactions() == [Entity(2), Entity(3), Entity(4)]
        assert state.txes_unconfirmed == set()


class TestConsensus:
    """Tests for consensus over a network."""

    def test_blocks_get_distributed(self, sim: Simulation, line) -> None:
        node1, node2, node3 = line
        sim.do_now(ForSpecific(node1, MineBlock()))
        sim.catch_up(100.0)

        tip = get_state(sim, node1).tip
        assert tip is not None
        assert get_state(sim, node2).tip == tip
        assert get_state(sim, node3).tip == tip

    def test_mining_logs_and_extends_own_tip(self, sim: Simulation, line) -> None:
        node1, _, _ = line
        sim.do_now(ForSpecific(node1, MineBlock()))
        sim.do_now(ForSpecific(node1, MineBlock()))
        sim.catch_up(100.0)

        assert get_state(sim, node1).tip_height() == 2
        messages = [message for _, message in sim.logger.entries()]
        expected = "Mined a new block of height 2 that contains 0 transactions."
        assert any(expected in m for m in messages)

    def test_poke_mines(self, sim: Simulation, line) -> None:
        node1, _, node3 = line
        sim.do_now(PokeSpecificNode(node1))
        sim.catch_up(100.0)
        assert get_state(sim, node3).tip_height() == 1

    def test_forks_get_registered(self, sim: Simulation, line) -> None:
        node1, _, node3 = line
        sim.do_now(ForSpecific(node1, MineBlock()))
        sim.catch_up(100.0)

        sim.do_now(ForSpecific(node1, MineBlock()))
        sim.do_now(ForSpecific(node3, MineBlock()))
        sim.catch_up(100.0)

        state1, state3 = get_state(sim, node1), get_state(sim, node3)
        assert state1.tip != state3.tip
        assert state1.fork_tips == {state3.tip}

    def test_forks_get_resolved(self, sim: Simulation, line) -> None:
        node1, _, node3 = line
        sim.do_now(ForSpecific(node1, MineBlock()))
        sim.catch_up(100.0)
        sim.do_now(ForSpecific(node1, MineBlock()))
        sim.do_now(ForSpecific(node3, MineBlock()))
        sim.catch_up(100.0)

        sim.do_now(ForSpecific(node3, MineBlock()))
        sim.catch_up(100.0)

        state1, state3 = get_state(sim, node1), get_state(sim, node3)
        assert state1.tip == state3.tip
        assert state1.tip_height() == 3

    def test_partition_heals_to_longest_chain(
        self, sim: Simulation, node_at, link: Callable[[Entity, Entity], None]
    ) -> None:
        sim.add_event_handler(InvokeProtocolForAllNodes(NakamotoConsensus()))
        node1, node2 = node_at(0.0, 0.0), node_at(400.0, 300.0)

        for _ in range(3):
            sim.do_now(ForSpecific(node1, MineBlock()))
        for _ in range(2):
            sim.do_now(ForSpecific(node2, MineBlock()))
        sim.catch_up(10.0)

        link(node1, node2)
        sim.catch_up(10.0)

        state1, state2 = get_state(sim, node1), get_state(sim, node2)
        assert state1.tip == state2.tip
        assert state1.tip_height() == state2.tip_height() == 3

    def test_all_known_blocks_are_reachable(self, sim: Simulation) -> None:
        """Walking parents from the tip and fork tips covers every known block."""
        sim.add_event_handler(InvokeProtocolForAllNodes(NakamotoConsensus()))
        sim.do_now(SpawnRandomNodes(8))
        sim.do_now(MakeDelaunayNetwork())
        sim.catch_up(1.0)

        for _ in range(20):
            sim.do_now(ForRandomNode(MineBlock()))
            sim.catch_up(100.0)

        for node in sim.all_nodes():
            state = get_state(sim, node)
            assert state.tip_height() == 20
            reached: set[Entity] = set()
            for head in [state.tip, *state.fork_tips]:
                assert head is not None
                chain = state.ancestors(head)
                assert state.known_blocks[chain[-1]].id_prev is None
                reached.update(chain)
            assert reached == set(state.known_blocks)


class TestTransactions:
    """Tests for transaction propagation and confirmation."""

    def test_transactions_get_distributed(self, sim: Simulation, line) -> None:
        node1, node2, node3 = line
        sim.do_now(ForSpecific(node1, BuildAndBroadcastTransaction("Alice", "Bob", 32)))
        sim.catch_up(100.0)

        unconfirmed = get_state(sim, node1).txes_unconfirmed
        assert len(unconfirmed) == 1
        assert get_state(sim, node2).txes_unconfirmed == unconfirmed
        assert get_state(sim, node3).txes_unconfirmed == unconfirmed

        messages = [message for _, message in sim.logger.entries()]
        assert any("Building new transaction: 32 toshis from Alice to Bob." in m for m in messages)

    def test_transactions_end_up_in_blocks(self, sim: Simulation, line) -> None:
        node1, node2, _ = line
        sim.do_now(ForSpecific(node1, BuildAndBroadcastTransaction("Alice", "Bob", 32)))
        sim.catch_up(100.0)
        sim.do_now(ForSpecific(node2, MineBlock()))
        sim.catch_up(100.0)

        state1, state2 = get_state(sim, node1), get_state(sim, node2)
        assert state1.txes_unconfirmed == set()
        assert state2.txes_unconfirmed == set()
        assert len(state1.txes_confirmed) == 1

        assert state1.tip is not None
        assert len(sim.world.get(state1.tip, BlockContents)) == 1

    def test_confirmed_transactions_are_not_registered_again(
        self, sim: Simulation, line
    ) -> None:
        node1, node2, _ = line
        sim.do_now(ForSpecific(node1, BuildAndBroadcastTransaction("Alice", "Bob", 32)))
        sim.do_now(ForSpecific(node1, MineBlock()))
        sim.catch_up(100.0)

        state2 = get_state(sim, node2)
        assert state2.txes_unconfirmed == set()
        tx_id = next(iter(state2.txes_confirmed))
        state2.register_transaction_id(tx_id)
        assert state2.txes_unconfirmed == set()

    def test_invalid_transaction_is_logged(self, sim: Simulation, line) -> None:
        node1, _, _ = line
        sim.do_now(ForSpecific(node1, BuildAndBroadcastTransaction("Alice", "Bob", -5)))
        sim.catch_up(100.0)

        assert any(
            message.startswith("Error handling event: Invalid transaction")
            for _, message in sim.logger.entries()
        )

    def test_invalid_transaction_raises_directly(self, sim: Simulation, line) -> None:
        node1, _, _ = line
        with pytest.raises(InvalidTransactionError):
            NakamotoConsensus().handle_new_transaction(sim.node_interface(node1), "", "Bob", 1)


class TestErrors:
    def test_unknown_block_is_an_error(self, sim: Simulation, line) -> None:
        node1, _, _ = line
        with pytest.raises(UnknownBlockError):
            NakamotoConsensus().handle_block(sim.node_interface(node1), Entity(999))
