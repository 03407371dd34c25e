"""
Peer-to-peer protocol simulator CLI entry point.

Spawn nodes on a plane, wire them into a Delaunay mesh, run one protocol for
a while in virtual time, and report how it went.

Usage::

    python -m p2psim --protocol flooding --nodes 16
    python -m p2psim --protocol nakamoto --nodes 32 --duration 120 --poke-interval 5
    python -m p2psim --protocol random-walks --seed 7 --metrics
    python -m p2psim --config scenario.yaml -v

Options:
    --protocol       Protocol to run: flooding, nakamoto, random-walks (default: flooding)
    --nodes          Number of nodes to spawn (default: 16)
    --duration       Virtual seconds to simulate (default: 60)
    --poke-interval  Mean virtual seconds between pokes of random nodes (default: 10)
    --seed           RNG seed, overrides the config file
    --config         Path to a YAML simulation config
    --metrics        Print Prometheus metrics when done
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence
from pathlib import Path

from p2psim.subspecs.metrics import generate_metrics
from p2psim.subspecs.protocol import InvokeProtocolForAllNodes, PokeNode, Protocol
from p2psim.subspecs.protocols import (
    NakamotoConsensus,
    NakamotoNodeState,
    RandomWalks,
    SimpleFlooding,
    StartSimpleFlooding,
)
from p2psim.subspecs.simulation import AtRandomIntervals, Simulation, SimulationConfig
from p2psim.subspecs.underlay import ForRandomNode, MakeDelaunayNetwork, SpawnRandomNodes

logger = logging.getLogger(__name__)

FLOODED_ITEM = 42
"""Item flooded from a random node in the flooding scenario."""

RANDOM_WALK_TTL = 23
"""Hops per random walk in the random-walks scenario."""


class ColoredFormatter(logging.Formatter):
    """Logging formatter with ANSI colors for better readability."""

    # ANSI color codes
    GREY = "\x1b[38;5;244m"
    BLUE = "\x1b[38;5;39m"
    GREEN = "\x1b[38;5;40m"
    YELLOW = "\x1b[38;5;220m"
    RED = "\x1b[38;5;196m"
    BOLD_RED = "\x1b[38;5;196;1m"
    CYAN = "\x1b[38;5;51m"
    RESET = "\x1b[0m"

    LEVEL_COLORS = {
        logging.DEBUG: GREY,
        logging.INFO: GREEN,
        logging.WARNING: YELLOW,
        logging.ERROR: RED,
        logging.CRITICAL: BOLD_RED,
    }

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno, self.RESET)
        timestamp = self.formatTime(record, self.datefmt)
        levelname = f"{color}{record.levelname:8}{self.RESET}"
        name = f"{self.BLUE}{record.name}{self.RESET}"
        return f"{self.CYAN}{timestamp}{self.RESET} {levelname} {name}: {record.getMessage()}"


def setup_logging(verbose: bool = False, no_color: bool = False) -> None:
    """Configure root logging with optional colors."""
    level = logging.DEBUG if verbose else logging.INFO

    handler = logging.StreamHandler()
    handler.setLevel(level)

    if no_color:
        formatter = logging.Formatter(
            "%(asctime)s %(levelname)-8s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    else:
        formatter = ColoredFormatter(datefmt="%Y-%m-%d %H:%M:%S")
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(level)
    root.addHandler(handler)


def build_protocol(name: str) -> Protocol:
    """Instantiate the protocol selected on the command line."""
    match name:
        case "flooding":
            return SimpleFlooding(int)
        case "nakamoto":
            return NakamotoConsensus()
        case "random-walks":
            return RandomWalks(RANDOM_WALK_TTL)
    raise ValueError(f"Unknown protocol: {name}")


def run_scenario(
    sim: Simulation,
    protocol_name: str,
    nodes: int,
    duration: float,
    poke_interval: float,
) -> None:
    """
    Run one scenario to completion in virtual time.

    Args:
        sim: A fresh simulation.
        protocol_name: Which protocol to run on every node.
        nodes: Number of nodes to spawn.
        duration: Virtual seconds to simulate.
        poke_interval: Mean virtual seconds between pokes of random nodes.
    """
    sim.add_event_handler(InvokeProtocolForAllNodes(build_protocol(protocol_name)))

    sim.do_now(SpawnRandomNodes(nodes))
    sim.do_now(MakeDelaunayNetwork())
    sim.do_now(AtRandomIntervals(ForRandomNode(PokeNode()), poke_interval))

    # Lets the network settle so the flooded item sees the full topology.
    sim.work_until(0.0)
    if protocol_name == "flooding":
        start = sim.pick_random_node()
        if start is not None:
            logger.info("Flooding %d from %s", FLOODED_ITEM, sim.name(start))
            sim.do_now(StartSimpleFlooding(start, FLOODED_ITEM))

    sim.work_until(duration)


def summarize(sim: Simulation, protocol_name: str) -> None:
    """Log the outcome of a finished scenario."""
    all_nodes = sim.all_nodes()
    match protocol_name:
        case "flooding":
            state_type = SimpleFlooding(int).state_type
            reached = sum(
                1
                for node in all_nodes
                if FLOODED_ITEM in sim.world.get_or_insert_default(node, state_type).own_haves
            )
            logger.info("Item %d reached %d of %d nodes", FLOODED_ITEM, reached, len(all_nodes))
        case "nakamoto":
            states = [
                sim.world.get_or_insert_default(node, NakamotoNodeState) for node in all_nodes
            ]
            tips = {state.tip for state in states}
            height = max((state.tip_height() for state in states), default=0)
            logger.info("Longest chain height %d, %d distinct tips", height, len(tips))
        case _:
            pass
    logger.info("Simulation ended at t=%.3f", sim.time.now())


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Peer-to-peer protocol simulator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--protocol",
        choices=["flooding", "nakamoto", "random-walks"],
        default="flooding",
        help="Protocol to run on every node (default: flooding)",
    )
    parser.add_argument(
        "--nodes",
        type=int,
        default=16,
        help="Number of nodes to spawn (default: 16)",
    )
    parser.add_argument(
        "--duration",
        type=float,
        default=60.0,
        help="Virtual seconds to simulate (default: 60)",
    )
    parser.add_argument(
        "--poke-interval",
        type=float,
        default=10.0,
        help="Mean virtual seconds between pokes of random nodes (default: 10)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="RNG seed, overrides the config file",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to a YAML simulation config",
    )
    parser.add_argument(
        "--metrics",
        action="store_true",
        help="Print Prometheus metrics when done",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colored logging output",
    )

    args = parser.parse_args(argv)

    setup_logging(args.verbose, args.no_color)

    config = SimulationConfig.from_yaml(args.config) if args.config else SimulationConfig()
    sim = Simulation(config, seed=args.seed)
    logger.info("Running %s on %d nodes (seed=%s)", args.protocol, args.nodes, sim.seed)

    try:
        run_scenario(sim, args.protocol, args.nodes, args.duration, args.poke_interval)
    except KeyboardInterrupt:
        logger.info("Interrupted at t=%.3f", sim.time.now())
        return 130

    summarize(sim, args.protocol)
    if args.metrics:
        sys.stdout.write(generate_metrics().decode())
    return 0


if __name__ == "__main__":
    sys.exit(main())
