"""
Metrics module for observability.

Counters and gauges for a simulation run, in Prometheus text format.
"""

from .registry import (
    REGISTRY,
    blocks_mined,
    chain_reorgs,
    event_handling_errors,
    event_handling_time,
    events_processed,
    generate_metrics,
    messages_delivered,
    messages_sent,
    nodes_spawned,
    virtual_time,
)

__all__ = [
    "REGISTRY",
    "blocks_mined",
    "chain_reorgs",
    "event_handling_errors",
    "event_handling_time",
    "events_processed",
    "generate_metrics",
    "messages_delivered",
    "messages_sent",
    "nodes_spawned",
    "virtual_time",
]
