"""
Shared pytest fixtures for all p2psim tests.

Provides a seeded simulation, helpers to place nodes at fixed positions,
and an event recorder.
"""

from __future__ import annotations

from collections.abc import Callable

import pytest

from p2psim.subspecs.events import Event
from p2psim.subspecs.simulation import EventHandler, Simulation
from p2psim.subspecs.underlay import UnderlayNodeName, UnderlayPosition
from p2psim.types import Entity, SimSeconds


class EventRecorder(EventHandler):
    """Remembers every event it sees, with the virtual time it was handled at."""

    def __init__(self) -> None:
        self.seen: list[tuple[SimSeconds, Event]] = []

    def handle_event(self, sim: Simulation, event: Event) -> None:
        self.seen.append((sim.time.now(), event))

    def events_of(self, event_type: type) -> list[tuple[SimSeconds, Event]]:
        return [(t, e) for t, e in self.seen if isinstance(e, event_type)]


@pytest.fixture
def sim() -> Simulation:
    """A fresh simulation with a fixed seed and default configuration."""
    return Simulation(seed=0)


@pytest.fixture
def node_at(sim: Simulation) -> Callable[..., Entity]:
    """Factory spawning a node at a given position in `sim`."""

    def _spawn(x: float, y: float, name: str | None = None) -> Entity:
        if name is None:
            name = f"n{len(sim.all_nodes()):04d}"
        return sim.world.spawn(UnderlayNodeName(name), UnderlayPosition(x, y))

    return _spawn


@pytest.fixture
def link(sim: Simulation) -> Callable[[Entity, Entity], None]:
    """Factory peering two nodes in both directions."""

    def _link(a: Entity, b: Entity) -> None:
        sim.add_peer(a, b)
        sim.add_peer(b, a)

    return _link


@pytest.fixture
def recorder(sim: Simulation) -> EventRecorder:
    """An event recorder registered on `sim`."""
    handler = EventRecorder()
    sim.add_event_handler(handler)
    return handler
