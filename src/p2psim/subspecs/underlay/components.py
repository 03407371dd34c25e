"""
Underlay Components
===================

Data attached to node and message entities by the simulated physical
network.

A node carries an `UnderlayNodeName`, an `UnderlayPosition`, and (once it
has peers) a `PeerSet`. A message in flight carries an `UnderlayMessage`, a
`TimeSpan`, an `UnderlayLine`, and one protocol payload component.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

from p2psim.types import Entity, SimSeconds


@dataclass(frozen=True, slots=True)
class UnderlayNodeName:
    """Display identity of a node. Protocol logic never looks at it."""

    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True, slots=True)
class UnderlayPosition:
    """Node coordinates in the bounded plane. Immutable once assigned."""

    x: float
    y: float

    def distance(self, other: UnderlayPosition) -> float:
        """Euclidean distance to `other`."""
        return math.hypot(self.x - other.x, self.y - other.y)


@dataclass(frozen=True, slots=True)
class UnderlayLine:
    """Straight trajectory of a message from source to destination position."""

    start: UnderlayPosition
    end: UnderlayPosition

    def length(self) -> float:
        return self.start.distance(self.end)


@dataclass(frozen=True, slots=True)
class UnderlayMessage:
    """Envelope of a message entity: who sent it to whom."""

    source: Entity
    dest: Entity


@dataclass(frozen=True, slots=True)
class Timer:
    """Marks a timer entity set by `node`, due at `time_due`."""

    node: Entity
    time_due: SimSeconds


@dataclass(slots=True)
class PeerSet:
    """
    Ordered set of a node's peers.

    Iteration is in ascending entity order. `last_update` is bumped on every
    effective insert or remove; hosts use it to know when to redraw links.
    Protocol logic never reads it.
    """

    _peers: set[Entity] = field(default_factory=set)
    last_update: SimSeconds = 0.0

    @classmethod
    def default_from(cls, peers: list[Entity]) -> PeerSet:
        """Build a peer set without touching `last_update`."""
        return cls(set(peers))

    def __iter__(self):
        return iter(sorted(self._peers))

    def __len__(self) -> int:
        return len(self._peers)

    def __contains__(self, peer: Entity) -> bool:
        return peer in self._peers

    def insert(self, peer: Entity, now: SimSeconds) -> bool:
        """Add `peer`. Returns True if it was not present yet."""
        if peer in self._peers:
            return False
        self._peers.add(peer)
        self.last_update = now
        return True

    def remove(self, peer: Entity, now: SimSeconds) -> bool:
        """Remove `peer`. Returns True if it was present."""
        if peer not in self._peers:
            return False
        self._peers.discard(peer)
        self.last_update = now
        return True
