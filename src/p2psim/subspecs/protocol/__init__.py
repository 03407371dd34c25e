"""Protocol dispatch framework and the node-facing simulation API."""

from .blockchain import (
    TOSHIS_PER_COIN,
    Address,
    BlockContents,
    BlockHeader,
    Transaction,
    coins_from,
    toshis_from,
)
from .node_interface import NodeInterface
from .protocol import InvokeProtocolForAllNodes, PokeNode, PokeSpecificNode, Protocol

__all__ = [
    "Address",
    "BlockContents",
    "BlockHeader",
    "InvokeProtocolForAllNodes",
    "NodeInterface",
    "PokeNode",
    "PokeSpecificNode",
    "Protocol",
    "TOSHIS_PER_COIN",
    "Transaction",
    "coins_from",
    "toshis_from",
]
