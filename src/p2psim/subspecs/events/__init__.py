"""Simulation events and the time-ordered event queue."""

from .event import (
    CommandEvent,
    Event,
    GenericEvent,
    MessageArrived,
    MessageSent,
    NodeEvent,
    NodeEventKind,
    PeerAdded,
    PeerRemoved,
    PeerSetChanged,
    PeerSetUpdate,
    Poke,
    TimerFired,
)
from .queue import EventQueue, TimedEvent

__all__ = [
    "CommandEvent",
    "Event",
    "EventQueue",
    "GenericEvent",
    "MessageArrived",
    "MessageSent",
    "NodeEvent",
    "NodeEventKind",
    "PeerAdded",
    "PeerRemoved",
    "PeerSetChanged",
    "PeerSetUpdate",
    "Poke",
    "TimedEvent",
    "TimerFired",
]
