"""
Metric registry using prometheus_client.

Counters and gauges describing a simulation run. Hosts render them in
Prometheus text format (the CLI prints them with `--metrics`).
"""

from __future__ import annotations

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

# Dedicated registry, free of the default Python process metrics.
REGISTRY = CollectorRegistry()

# -----------------------------------------------------------------------------
# Kernel
# -----------------------------------------------------------------------------

events_processed = Counter(
    "p2psim_events_processed_total",
    "Events drained from the event queue",
    registry=REGISTRY,
)

event_handling_errors = Counter(
    "p2psim_event_handling_errors_total",
    "Events whose handling failed with a simulation error",
    registry=REGISTRY,
)

virtual_time = Gauge(
    "p2psim_virtual_time_seconds",
    "Current virtual time of the simulation",
    registry=REGISTRY,
)

event_handling_time = Histogram(
    "p2psim_event_handling_seconds",
    "Wall-clock time spent running the handlers of one event",
    registry=REGISTRY,
    buckets=(0.00001, 0.0001, 0.001, 0.01, 0.1, 1.0),
)

# -----------------------------------------------------------------------------
# Underlay
# -----------------------------------------------------------------------------

nodes_spawned = Counter(
    "p2psim_nodes_spawned_total",
    "Nodes spawned on the underlay plane",
    registry=REGISTRY,
)

messages_sent = Counter(
    "p2psim_messages_sent_total",
    "Messages put in flight",
    registry=REGISTRY,
)

messages_delivered = Counter(
    "p2psim_messages_delivered_total",
    "Messages that arrived at their destination",
    registry=REGISTRY,
)

# -----------------------------------------------------------------------------
# Consensus
# -----------------------------------------------------------------------------

blocks_mined = Counter(
    "p2psim_blocks_mined_total",
    "Blocks mined by Nakamoto nodes",
    registry=REGISTRY,
)

chain_reorgs = Counter(
    "p2psim_chain_reorgs_total",
    "Tip switches to a block that does not extend the previous tip",
    registry=REGISTRY,
)


def generate_metrics() -> bytes:
    """
    Generate Prometheus metrics output.

    Returns:
        Prometheus text format output as bytes.
    """
    return generate_latest(REGISTRY)
