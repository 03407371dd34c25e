"""
Simulation Kernel
=================

Owns the world, the virtual clock, the event queue, the RNG, and the log.

Draining
--------
Events leave the queue in (time_due, insertion order) order. For each event
the kernel:

1. advances virtual time to the event's due time,
2. offers the event to the command handler,
3. offers it to every registered event handler,
4. lets the despawner destroy the transient entity behind it.

A `SimulationError` raised in steps 2 or 3 is logged and the remaining
handlers for that event are skipped. Cleanup still runs, and draining
continues with the next event. Anything else propagates.

Determinism
-----------
All randomness comes from one `random.Random` owned by the simulation. With
a fixed seed, the same host inputs give the same run.
"""

from __future__ import annotations

import logging
import math
import random
from collections.abc import Iterable
from typing import TYPE_CHECKING

from p2psim.config import default_seed
from p2psim.subspecs.events.event import (
    CommandEvent,
    Event,
    MessageArrived,
    MessageSent,
    NodeEvent,
    PeerAdded,
    PeerRemoved,
    PeerSetChanged,
    TimerFired,
)
from p2psim.subspecs.events.queue import EventQueue
from p2psim.subspecs.metrics import registry as metrics
from p2psim.subspecs.time.clock import Time, TimeSpan
from p2psim.subspecs.underlay.components import (
    PeerSet,
    Timer,
    UnderlayLine,
    UnderlayMessage,
    UnderlayNodeName,
    UnderlayPosition,
)
from p2psim.subspecs.underlay.config import PER_MESSAGE_DELAY, UnderlayConfig
from p2psim.subspecs.underlay.delaunay import triangulation_edges
from p2psim.subspecs.world.world import World
from p2psim.types import (
    Entity,
    NotEnoughNodesError,
    RealSeconds,
    SimSeconds,
    SimulationError,
)

from .command import Command, CommandEntry, CommandHandler
from .config import SimulationConfig
from .handlers import Despawner, EventHandler, EventHandlers
from .logger import Logger

if TYPE_CHECKING:
    from p2psim.subspecs.protocol.node_interface import NodeInterface

logger = logging.getLogger(__name__)


class Simulation:
    """A discrete-event simulation of nodes on a bounded plane."""

    def __init__(self, config: SimulationConfig | None = None, *, seed: int | None = None) -> None:
        """
        Create an empty simulation.

        Args:
            config: Simulation parameters. Defaults apply when omitted.
            seed: RNG seed. Overrides the seed from `config`.
        """
        self.config = config if config is not None else SimulationConfig()
        if seed is None:
            seed = self.config.seed if self.config.seed is not None else default_seed()
        self.seed = seed

        self.world = World()
        self.time = Time(self.config.speed)
        self.logger = Logger(self.config.log_capacity)
        self.rng = random.Random(seed)
        self.underlay_config: UnderlayConfig = self.config.underlay()

        self._event_queue = EventQueue()
        self._event_handlers = EventHandlers()
        self._command_handler = CommandHandler()
        self._despawner = Despawner()

    # -------------------------------------------------------------------------
    # Event handlers and scheduling
    # -------------------------------------------------------------------------

    @property
    def event_handlers(self) -> EventHandlers:
        return self._event_handlers

    def add_event_handler(self, handler: EventHandler) -> int:
        """Register `handler`. Returns its index in `event_handlers`."""
        return self._event_handlers.add(handler)

    def pending_events(self) -> int:
        return len(self._event_queue)

    def schedule_now(self, event: Event) -> None:
        self.schedule_at(self.time.now(), event)

    def schedule_in(self, delay: SimSeconds, event: Event) -> None:
        self.schedule_at(self.time.now() + delay, event)

    def schedule_at(self, time_due: SimSeconds, event: Event) -> None:
        """Enqueue `event`. `time_due` must not lie in the past."""
        assert time_due >= self.time.now(), f"scheduled in the past: {time_due}"
        self._event_queue.push(time_due, event)

    def do_now(self, command: Command) -> Entity:
        return self.do_at(self.time.now(), command)

    def do_in(self, delay: SimSeconds, command: Command) -> Entity:
        return self.do_at(self.time.now() + delay, command)

    def do_at(self, time_due: SimSeconds, command: Command) -> Entity:
        """
        Schedule `command` to run at `time_due`.

        Returns:
            The entity holding the command. Despawning it cancels the command.
        """
        entity = self.world.spawn(CommandEntry(command, time_due))
        self.schedule_at(time_due, CommandEvent(entity))
        return entity

    # -------------------------------------------------------------------------
    # Draining
    # -------------------------------------------------------------------------

    def catch_up(self, elapsed_real_time: RealSeconds) -> None:
        """
        Advance by `elapsed_real_time` of host time.

        Drains every event due up to the matching virtual time. If a handler
        changes the speed, the real time left over is converted again at the
        new speed.
        """
        reference = self.time.now()
        speed = self.time.speed()
        remaining = elapsed_real_time
        target = self.time.after(remaining)

        while (next_due := self._next_due()) is not None and next_due <= target:
            self.process_next_event()
            if self.time.speed() != speed:
                if speed > 0:
                    remaining = max(0.0, remaining - (self.time.now() - reference) / speed)
                reference = self.time.now()
                speed = self.time.speed()
                target = self.time.after(remaining)

        self.time.advance_to(max(target, self.time.now()))

    def work_until(self, target: SimSeconds) -> None:
        """Drain every event due at or before `target`, then set the clock to it."""
        while (next_due := self._next_due()) is not None and next_due <= target:
            self.process_next_event()
        self.time.advance_to(target)

    def process_next_event(self) -> None:
        """
        Drain exactly one event.

        The queue must not be empty.
        """
        popped = self._event_queue.pop()
        assert popped is not None, "process_next_event called on an empty queue"
        time_due, event = popped
        self.time.advance_to(time_due)
        metrics.events_processed.inc()
        metrics.virtual_time.set(time_due)
        if isinstance(event, NodeEvent) and isinstance(event.kind, MessageArrived):
            metrics.messages_delivered.inc()

        try:
            with metrics.event_handling_time.time():
                self._command_handler.handle_event(self, event)
                self._event_handlers.handle_event(self, event)
        except SimulationError as e:
            metrics.event_handling_errors.inc()
            self.logger.log(self.time.now(), f"Error handling event: {e}", logging.WARNING)
        finally:
            self._despawner.handle_event(self, event)

    def _next_due(self) -> SimSeconds | None:
        head = self._event_queue.peek()
        return None if head is None else head[0]

    # -------------------------------------------------------------------------
    # Logging and naming
    # -------------------------------------------------------------------------

    def log(self, message: str) -> None:
        """Append `message` to the simulation log at the current virtual time."""
        self.logger.log(self.time.now(), message)

    def name(self, entity: Entity) -> str:
        """Display name of `entity`. Never fails."""
        if entity not in self.world:
            return f"INEXISTING ({entity!r})"
        name = self.world.try_get(entity, UnderlayNodeName)
        if name is None:
            return f"UNNAMEABLE ({entity!r})"
        return str(name)

    def node_interface(self, node: Entity) -> NodeInterface:
        """The view of this simulation that protocols get for `node`."""
        from p2psim.subspecs.protocol.node_interface import NodeInterface

        return NodeInterface(self, node)

    # -------------------------------------------------------------------------
    # Nodes
    # -------------------------------------------------------------------------

    def spawn_random_node(self) -> Entity:
        """Spawn a node with a random name at a random position on the plane."""
        # Draw order (name, x, y) is part of what a seed reproduces.
        name = UnderlayNodeName(f"n{self.rng.randrange(10_000):04d}")
        x = self.rng.random() * self.underlay_config.width
        y = self.rng.random() * self.underlay_config.height
        node = self.world.spawn(name, UnderlayPosition(x, y))
        metrics.nodes_spawned.inc()
        logger.debug("Spawned %s at (%.1f, %.1f)", name, x, y)
        return node

    def all_nodes(self) -> list[Entity]:
        """All nodes, in spawn order."""
        return [node for node, _ in self.world.query(UnderlayNodeName)]

    def all_other_nodes(self, node: Entity) -> list[Entity]:
        return [other for other in self.all_nodes() if other != node]

    def pick_random_node(self) -> Entity | None:
        nodes = self.all_nodes()
        return self.rng.choice(nodes) if nodes else None

    def pick_random_other_node(self, node: Entity) -> Entity | None:
        others = self.all_other_nodes(node)
        return self.rng.choice(others) if others else None

    def most_crowded_node(self) -> Entity | None:
        """
        The node with the largest sum of inverse distances to all other nodes.

        Two nodes at the same position count as infinitely crowded.
        """
        positions = list(self.world.query(UnderlayPosition))
        if not positions:
            return None

        def crowdedness(item: tuple[Entity, tuple[UnderlayPosition]]) -> float:
            node, (position,) = item
            total = 0.0
            for other, (other_position,) in positions:
                if other == node:
                    continue
                distance = position.distance(other_position)
                total += math.inf if distance == 0 else 1.0 / distance
            return total

        return max(positions, key=crowdedness)[0]

    def despawn_most_crowded_node(self) -> None:
        """
        Remove the most crowded node, unlinking it from every peer set first.

        Raises:
            NotEnoughNodesError: If no nodes are left.
        """
        node = self.most_crowded_node()
        if node is None:
            raise NotEnoughNodesError("No nodes left to despawn")
        for other, (peers,) in list(self.world.query(PeerSet)):
            if other != node and node in peers:
                self.remove_peer(other, node)
        self.log(f"Despawning {self.name(node)}")
        self.world.despawn(node)

    # -------------------------------------------------------------------------
    # Peers
    # -------------------------------------------------------------------------

    def peers(self, node: Entity) -> PeerSet:
        return self.world.get_or_insert_default(node, PeerSet)

    def add_peer(self, node: Entity, peer: Entity) -> None:
        """Add `peer` to `node`'s peers. Notifies `node` only on an actual change."""
        if self.peers(node).insert(peer, self.time.now()):
            self.schedule_now(NodeEvent(node, PeerSetChanged(PeerAdded(peer))))

    def remove_peer(self, node: Entity, peer: Entity) -> None:
        """Remove `peer` from `node`'s peers. Notifies `node` only on an actual change."""
        if self.peers(node).remove(peer, self.time.now()):
            self.schedule_now(NodeEvent(node, PeerSetChanged(PeerRemoved(peer))))

    def add_random_nodes_as_peers(self, node: Entity, min_peers: int, max_peers: int) -> None:
        """
        Peer `node` with a random sample of other nodes.

        The sample size is drawn from [min_peers, max_peers), both clamped to
        the number of other nodes.
        """
        others = self.all_other_nodes(node)
        low = min(min_peers, len(others))
        high = min(max_peers, len(others))
        count = low if low >= high else self.rng.randrange(low, high)
        for peer in self.rng.sample(others, count):
            self.add_peer(node, peer)

    def make_delaunay_network(self) -> None:
        """
        Replace every node's peers with its Delaunay neighbours.

        Raises:
            TriangulationError: If the positions admit no triangulation. The
                existing topology is left untouched.
        """
        nodes = [
            (node, pos) for node, (_, pos) in self.world.query(UnderlayNodeName, UnderlayPosition)
        ]
        edges = triangulation_edges([(pos.x, pos.y) for _, pos in nodes])

        neighbours: dict[Entity, set[Entity]] = {node: set() for node, _ in nodes}
        for i, j in edges:
            a, b = nodes[i][0], nodes[j][0]
            neighbours[a].add(b)
            neighbours[b].add(a)

        for node, wanted in neighbours.items():
            for stale in [peer for peer in self.peers(node) if peer not in wanted]:
                self.remove_peer(node, stale)
            for peer in sorted(wanted):
                self.add_peer(node, peer)

    # -------------------------------------------------------------------------
    # Messages and timers
    # -------------------------------------------------------------------------

    def send_message(self, source: Entity, dest: Entity, payload: object) -> Entity:
        """
        Put a message carrying `payload` in flight from `source` to `dest`.

        Returns:
            The message entity.
        """
        return self._spawn_message(source, dest, payload, self.time.now())

    def send_messages(
        self, source: Entity, dest: Entity, payloads: Iterable[object]
    ) -> list[Entity]:
        """Send several messages, each one leaving slightly after the previous."""
        start = self.time.now()
        sent = []
        for payload in payloads:
            sent.append(self._spawn_message(source, dest, payload, start))
            start += PER_MESSAGE_DELAY
        return sent

    def _spawn_message(
        self, source: Entity, dest: Entity, payload: object, start: SimSeconds
    ) -> Entity:
        line = UnderlayLine(
            self.world.get(source, UnderlayPosition),
            self.world.get(dest, UnderlayPosition),
        )
        end = start + self.underlay_config.flight_duration(line.length())
        message = self.world.spawn(
            UnderlayMessage(source, dest), TimeSpan(start, end), line, payload
        )
        self.schedule_now(NodeEvent(source, MessageSent(message)))
        self.schedule_at(end, NodeEvent(dest, MessageArrived(message)))
        metrics.messages_sent.inc()
        return message

    def set_timer(self, node: Entity, delay: SimSeconds, *components: object) -> Entity:
        """
        Fire a `TimerFired` event at `node` after `delay`.

        Extra components are attached to the timer entity so the node can tell
        its timers apart.

        Returns:
            The timer entity. Despawning it before it fires cancels the timer.
        """
        time_due = self.time.now() + delay
        timer = self.world.spawn(Timer(node, time_due), *components)
        self.schedule_at(time_due, NodeEvent(node, TimerFired(timer)))
        return timer
