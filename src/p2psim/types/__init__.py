"""Reusable type definitions for the simulator."""

from .base import CamelModel, StrictBaseModel
from .entity import Entity
from .exceptions import (
    InvalidTransactionError,
    MissingComponentError,
    NoSuchEntityError,
    NotEnoughNodesError,
    NotEnoughPeersError,
    SimulationError,
    TriangulationError,
    UnknownBlockError,
)
from .time import SMALLEST_INTERVAL, RealSeconds, SimSeconds

__all__ = [
    # Core types
    "Entity",
    "SimSeconds",
    "RealSeconds",
    "SMALLEST_INTERVAL",
    "CamelModel",
    "StrictBaseModel",
    # Exceptions
    "SimulationError",
    "NotEnoughNodesError",
    "NotEnoughPeersError",
    "TriangulationError",
    "UnknownBlockError",
    "InvalidTransactionError",
    "NoSuchEntityError",
    "MissingComponentError",
]
