"""
Exception hierarchy for operational simulation failures.

Everything deriving from `SimulationError` is an *expected* failure of a
single command or protocol step: not enough nodes, a degenerate point set,
malformed user input. The kernel catches these while draining the queue,
logs them, and carries on with the next event.

Broken invariants (time moving backwards, a structurally guaranteed
component missing) are programmer errors and surface as `AssertionError`
or `MissingComponentError`. They are never caught by the kernel.
"""

from __future__ import annotations

from .entity import Entity


class SimulationError(Exception):
    """
    Base exception for recoverable simulation failures.

    Attributes:
        message: Human-readable error description.
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r})"


class NotEnoughNodesError(SimulationError):
    """Raised when an operation needs a node but the world holds none."""

    def __init__(self, message: str = "Not enough nodes?") -> None:
        super().__init__(message)


class NotEnoughPeersError(SimulationError):
    """Raised when a node has no peer to send a message to."""

    def __init__(
        self,
        message: str = "Couldn't find a suitable message destination. Not enough peers?",
    ) -> None:
        super().__init__(message)


class TriangulationError(SimulationError):
    """Raised when node positions admit no triangulation."""


class UnknownBlockError(SimulationError):
    """
    Raised when an inventory item references a block that was never registered.

    Attributes:
        block_id: The unknown block id.
    """

    def __init__(self, block_id: Entity) -> None:
        self.block_id = block_id
        super().__init__(f"Received a block that doesn't exist! ({block_id!r})")


class InvalidTransactionError(SimulationError):
    """Raised when transaction fields entered by a user fail validation."""


class NoSuchEntityError(SimulationError):
    """
    Raised when an entity is not (or no longer) alive in the world.

    Attributes:
        entity: The missing entity.
    """

    def __init__(self, entity: Entity) -> None:
        self.entity = entity
        super().__init__(f"No such entity: {entity!r}")


class MissingComponentError(LookupError):
    """
    Raised when a component that must be present is absent.

    Not a `SimulationError`: asking for a component that the caller knows to
    be attached is a bug, not an operational failure.

    Attributes:
        entity: The entity that was queried.
        component_type: The component class that was requested.
    """

    def __init__(self, entity: Entity, component_type: type) -> None:
        self.entity = entity
        self.component_type = component_type
        super().__init__(f"{entity!r} has no {component_type.__name__} component")
