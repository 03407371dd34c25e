"""
Blockchain Types
================

Globally registered blocks and transactions.

Blocks and transactions live as entities in the world, outside of any node.
Nodes only ever reference them by entity id, which stands in for a hash.
Once registered, neither is modified.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from pydantic import Field

from p2psim.types import Entity, StrictBaseModel

Address = str
"""A wallet address. Any non-empty string."""

TOSHIS_PER_COIN = 10**8
"""Smallest currency unit per coin."""


def coins_from(toshis: int) -> float:
    return toshis / TOSHIS_PER_COIN


def toshis_from(coins: float) -> int:
    """Convert coins to toshis, truncating toward zero."""
    return int(coins * TOSHIS_PER_COIN)


@dataclass(frozen=True, slots=True)
class BlockHeader:
    """Identity and position of a block in its chain."""

    id: Entity
    """Stands in for the block hash."""

    id_prev: Entity | None
    """Parent block. None only for the first block after the virtual genesis."""

    height: int
    """Number of blocks from genesis. The first block has height 1."""


@dataclass(frozen=True, slots=True)
class BlockContents:
    """Transaction ids included in a block, ascending and without duplicates."""

    tx_ids: tuple[Entity, ...] = ()

    @classmethod
    def of(cls, tx_ids: Iterable[Entity]) -> BlockContents:
        return cls(tuple(sorted(set(tx_ids))))

    def __iter__(self) -> Iterator[Entity]:
        return iter(self.tx_ids)

    def __len__(self) -> int:
        return len(self.tx_ids)

    def __contains__(self, tx_id: Entity) -> bool:
        return tx_id in self.tx_ids


class Transaction(StrictBaseModel):
    """
    A transfer of `value` toshis between two addresses.

    Serialized with the keys `from`, `to`, and `value`.
    """

    sender: Address = Field(alias="from", min_length=1)
    recipient: Address = Field(alias="to", min_length=1)
    value: int = Field(ge=0)
