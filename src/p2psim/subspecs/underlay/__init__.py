"""Simulated physical network: node placement, latency, and peer topology."""

from .components import (
    PeerSet,
    Timer,
    UnderlayLine,
    UnderlayMessage,
    UnderlayNodeName,
    UnderlayPosition,
)
from .config import UnderlayConfig
from .delaunay import triangulate, triangulation_edges
from .commands import (
    AddPeer,
    AddRandomPeers,
    DespawnMostCrowdedNodes,
    ForEachNode,
    ForRandomNode,
    MakeDelaunayNetwork,
    RemovePeer,
    SpawnRandomNodes,
)

__all__ = [
    "AddPeer",
    "AddRandomPeers",
    "DespawnMostCrowdedNodes",
    "ForEachNode",
    "ForRandomNode",
    "MakeDelaunayNetwork",
    "PeerSet",
    "RemovePeer",
    "SpawnRandomNodes",
    "Timer",
    "UnderlayConfig",
    "UnderlayLine",
    "UnderlayMessage",
    "UnderlayNodeName",
    "UnderlayPosition",
    "triangulate",
    "triangulation_edges",
]
