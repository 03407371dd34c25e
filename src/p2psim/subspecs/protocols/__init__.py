"""Distributed protocols built on the dispatch framework."""

from .nakamoto import (
    BuildAndBroadcastTransaction,
    InventoryItem,
    InventoryKind,
    MineBlock,
    NakamotoConsensus,
    NakamotoNodeState,
)
from .random_walks import RandomWalkMessage, RandomWalks, random_step
from .simple_flooding import (
    SimpleFlooding,
    SimpleFloodingMessage,
    SimpleFloodingState,
    StartSimpleFlooding,
    flooding_message_type,
    flooding_state_type,
)

__all__ = [
    "BuildAndBroadcastTransaction",
    "InventoryItem",
    "InventoryKind",
    "MineBlock",
    "NakamotoConsensus",
    "NakamotoNodeState",
    "RandomWalkMessage",
    "RandomWalks",
    "SimpleFlooding",
    "SimpleFloodingMessage",
    "SimpleFloodingState",
    "StartSimpleFlooding",
    "flooding_message_type",
    "flooding_state_type",
    "random_step",
]
