"""Entity/component storage."""

from .world import World

__all__ = ["World"]
