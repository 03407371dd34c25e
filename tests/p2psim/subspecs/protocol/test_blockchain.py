"""Tests for blocks, transactions and the currency helpers."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from p2psim.subspecs.protocol import (
    TOSHIS_PER_COIN,
    BlockContents,
    Transaction,
    coins_from,
    toshis_from,
)
from p2psim.subspecs.simulation import Simulation
from p2psim.types import Entity, InvalidTransactionError


class TestCurrency:
    """Tests for coin/toshi conversion."""

    def test_toshis_per_coin(self) -> None:
        assert TOSHIS_PER_COIN == 100_000_000

    def test_coins_from_toshis(self) -> None:
        assert coins_from(150_000_000) == 1.5

    def test_toshis_from_coins_truncates(self) -> None:
        assert toshis_from(0.5) == 50_000_000
        assert toshis_from(-0.000000019) == -1


class TestTransaction:
    """Tests for transaction validation."""

    def test_from_and_to_aliases(self) -> None:
        tx = Transaction.model_validate({"from": "Alice", "to": "Bob", "value": 5})
        assert (tx.sender, tx.recipient, tx.value) == ("Alice", "Bob", 5)
        assert tx.model_dump(by_alias=True) == {"from": "Alice", "to": "Bob", "value": 5}

    @pytest.mark.parametrize(
        "fields",
        [
            {"from": "", "to": "Bob", "value": 1},
            {"from": "Alice", "to": "", "value": 1},
            {"from": "Alice", "to": "Bob", "value": -1},
            {"from": "Alice", "to": "Bob", "value": "12"},
        ],
    )
    def test_rejects_invalid_fields(self, fields: dict[str, object]) -> None:
        with pytest.raises(ValidationError):
            Transaction.model_validate(fields)


class TestBlockContents:
    """Tests for the ordered transaction set of a block."""

    def test_sorted_and_deduplicated(self) -> None:
        contents = BlockContents.of([Entity(3), Entity(1), Entity(3)])
        assert list(contents) == [Entity(1), Entity(3)]
        assert len(contents) == 2
        assert Entity(1) in contents


class TestRegistry:
    """Tests for the global block and transaction registry."""

    def test_transactions_are_spawned_and_gettable(self, sim: Simulation, node_at) -> None:
        node = sim.node_interface(node_at(0.0, 0.0))
        tx_1 = node.spawn_transaction("Alice", "Bob", 123)
        tx_2 = node.spawn_transaction("Bob", "Charlie", 155)

        assert node.get_transaction(tx_1) == Transaction(sender="Alice", recipient="Bob", value=123)
        expected = Transaction(sender="Bob", recipient="Charlie", value=155)
        assert node.get_transaction(tx_2) == expected
        assert node.get_transaction(Entity(999)) is None

    def test_invalid_transaction_is_an_operational_error(self, sim: Simulation, node_at) -> None:
        node = sim.node_interface(node_at(0.0, 0.0))
        with pytest.raises(InvalidTransactionError):
            node.spawn_transaction("Alice", "", 5)

    def test_block_heights(self, sim: Simulation, node_at) -> None:
        node = sim.node_interface(node_at(0.0, 0.0))
        block_1 = node.spawn_block(None, [])
        block_2 = node.spawn_block(block_1.id, [])

        assert block_1.height == 1
        assert block_2.height == 2
        assert block_2.id_prev == block_1.id

    def test_blocks_are_gettable(self, sim: Simulation, node_at) -> None:
        node = sim.node_interface(node_at(0.0, 0.0))
        tx = node.spawn_transaction("Alice", "Bob", 1)
        header = node.spawn_block(None, [tx])

        assert node.get_block_header(header.id) == header
        assert node.get_block_contents(header.id) == BlockContents((tx,))
        assert node.get_block(header.id) == (header, BlockContents((tx,)))
        assert node.get_block(tx) is None
