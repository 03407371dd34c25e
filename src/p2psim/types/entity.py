"""
Entity identifiers.

An entity is an opaque handle with no data of its own. Nodes, in-flight
messages, timers, scheduled commands, blocks and transactions are all
entities; what an entity *is* depends only on the components attached to it.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True, order=True)
class Entity:
    """A unique, totally ordered entity handle."""

    id: int
    """Position in the allocation sequence of the owning world. Never reused."""

    def __repr__(self) -> str:
        return f"Entity({self.id})"
