"""
Underlay Commands
=================

Commands and entity actions that shape the simulated network: spawning and
removing nodes, wiring peers, and applying an action to random or all nodes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from p2psim.subspecs.simulation.command import Command, EntityAction
from p2psim.types import Entity, NotEnoughNodesError

if TYPE_CHECKING:
    from p2psim.subspecs.simulation.simulation import Simulation


@dataclass(frozen=True, slots=True)
class SpawnRandomNodes(Command):
    """Spawn `count` nodes at random positions."""

    count: int

    def execute(self, sim: Simulation) -> None:
        for _ in range(self.count):
            sim.spawn_random_node()


@dataclass(frozen=True, slots=True)
class DespawnMostCrowdedNodes(Command):
    """Remove the `count` nodes sitting in the densest areas, one at a time."""

    count: int

    def execute(self, sim: Simulation) -> None:
        for _ in range(self.count):
            sim.despawn_most_crowded_node()


@dataclass(frozen=True, slots=True)
class ForRandomNode(Command):
    """Apply `action` to one uniformly chosen node."""

    action: EntityAction

    def execute(self, sim: Simulation) -> None:
        node = sim.pick_random_node()
        if node is None:
            raise NotEnoughNodesError()
        self.action.execute_for(sim, node)


@dataclass(frozen=True, slots=True)
class ForEachNode(Command):
    """Apply `action` to every node, in spawn order."""

    action: EntityAction

    def execute(self, sim: Simulation) -> None:
        for node in sim.all_nodes():
            self.action.execute_for(sim, node)


@dataclass(frozen=True, slots=True)
class AddPeer(Command):
    """Make `peer` a peer of `node` (one direction only)."""

    node: Entity
    peer: Entity

    def execute(self, sim: Simulation) -> None:
        sim.add_peer(self.node, self.peer)


@dataclass(frozen=True, slots=True)
class RemovePeer(Command):
    node: Entity
    peer: Entity

    def execute(self, sim: Simulation) -> None:
        sim.remove_peer(self.node, self.peer)


@dataclass(frozen=True, slots=True)
class AddRandomPeers(EntityAction):
    """Peer a node with between `min_peers` and `max_peers` random other nodes."""

    min_peers: int
    max_peers: int

    def execute_for(self, sim: Simulation, entity: Entity) -> None:
        sim.add_random_nodes_as_peers(entity, self.min_peers, self.max_peers)


@dataclass(frozen=True, slots=True)
class MakeDelaunayNetwork(Command):
    """Replace the peer topology with the Delaunay triangulation of all nodes."""

    def execute(self, sim: Simulation) -> None:
        sim.make_delaunay_network()
