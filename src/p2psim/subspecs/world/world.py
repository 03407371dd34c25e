"""
Entity/Component World
======================

A minimal store of typed per-entity data.

Layout
------
One column per component class::

    _columns[UnderlayPosition] = {Entity(0): UnderlayPosition(...), ...}
    _columns[PeerSet]          = {Entity(0): PeerSet(...), ...}

A component is keyed by its exact class. An entity holds at most one
component of each class; inserting another replaces it.

Iteration order
---------------
Queries iterate entities in allocation order. Hosts and protocols may rely
on this: it is part of what makes a seeded run reproducible.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any, TypeVar, overload

from p2psim.types import Entity, MissingComponentError, NoSuchEntityError

C = TypeVar("C")
C1 = TypeVar("C1")
C2 = TypeVar("C2")


@dataclass(slots=True)
class World:
    """Owns all entities and their components."""

    _next_id: int = 0
    """Id of the next allocated entity."""

    _alive: dict[Entity, None] = field(default_factory=dict)
    """Live entities, in allocation order."""

    _columns: dict[type, dict[Entity, Any]] = field(default_factory=dict)
    """Component class -> entity -> component."""

    def __len__(self) -> int:
        return len(self._alive)

    def __contains__(self, entity: Entity) -> bool:
        return entity in self._alive

    def reserve_entity(self) -> Entity:
        """Allocate a fresh entity without components."""
        entity = Entity(self._next_id)
        self._next_id += 1
        self._alive[entity] = None
        return entity

    def spawn(self, *components: Any) -> Entity:
        """Allocate a fresh entity carrying `components`."""
        entity = self.reserve_entity()
        self.insert(entity, *components)
        return entity

    def insert(self, entity: Entity, *components: Any) -> None:
        """
        Attach components to a live entity, replacing same-class components.

        Raises:
            NoSuchEntityError: If the entity is not alive.
        """
        if entity not in self._alive:
            raise NoSuchEntityError(entity)
        for component in components:
            self._columns.setdefault(type(component), {})[entity] = component

    def despawn(self, entity: Entity) -> None:
        """
        Destroy an entity and all of its components.

        Raises:
            NoSuchEntityError: If the entity is not alive.
        """
        if entity not in self._alive:
            raise NoSuchEntityError(entity)
        del self._alive[entity]
        for column in self._columns.values():
            column.pop(entity, None)

    def has(self, entity: Entity, component_type: type) -> bool:
        return entity in self._columns.get(component_type, {})

    def try_get(self, entity: Entity, component_type: type[C]) -> C | None:
        """Return the component, or None if the entity does not carry one."""
        return self._columns.get(component_type, {}).get(entity)

    def get(self, entity: Entity, component_type: type[C]) -> C:
        """
        Return a component the caller knows to be present.

        Raises:
            MissingComponentError: If it is absent. This is a bug in the caller.
        """
        try:
            return self._columns[component_type][entity]
        except KeyError:
            raise MissingComponentError(entity, component_type) from None

    def get_or_insert_default(self, entity: Entity, component_type: type[C]) -> C:
        """
        Return the component, attaching `component_type()` first if absent.

        Raises:
            NoSuchEntityError: If the entity is not alive.
        """
        column = self._columns.setdefault(component_type, {})
        component = column.get(entity)
        if component is None:
            if entity not in self._alive:
                raise NoSuchEntityError(entity)
            component = component_type()
            column[entity] = component
        return component

    def remove_one(self, entity: Entity, component_type: type[C]) -> C | None:
        """Detach and return a component, or None if absent."""
        return self._columns.get(component_type, {}).pop(entity, None)

    @overload
    def query(self, t1: type[C1], /) -> Iterator[tuple[Entity, tuple[C1]]]: ...

    @overload
    def query(self, t1: type[C1], t2: type[C2], /) -> Iterator[tuple[Entity, tuple[C1, C2]]]: ...

    def query(self, *component_types: type) -> Iterator[tuple[Entity, tuple[Any, ...]]]:
        """
        Iterate entities carrying all `component_types`, in allocation order.

        Yields:
            (entity, components) with components in the requested order.
        """
        columns = [self._columns.get(t, {}) for t in component_types]
        for entity in self._alive:
            if all(entity in column for column in columns):
                yield entity, tuple(column[entity] for column in columns)
