"""Tests for entity handles, base models and the exception hierarchy."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from p2psim.types import (
    SMALLEST_INTERVAL,
    Entity,
    InvalidTransactionError,
    MissingComponentError,
    NoSuchEntityError,
    NotEnoughNodesError,
    NotEnoughPeersError,
    SimulationError,
    StrictBaseModel,
    TriangulationError,
    UnknownBlockError,
)


class Sample(StrictBaseModel):
    peer_count: int


class TestEntity:
    def test_entities_are_ordered_by_id(self) -> None:
        assert sorted([Entity(3), Entity(1), Entity(2)]) == [Entity(1), Entity(2), Entity(3)]

    def test_entities_are_hashable_values(self) -> None:
        assert {Entity(1), Entity(1)} == {Entity(1)}

    def test_repr(self) -> None:
        assert repr(Entity(7)) == "Entity(7)"


class TestStrictBaseModel:
    def test_camel_case_alias_and_field_name(self) -> None:
        assert Sample(peerCount=3) == Sample(peer_count=3)

    def test_is_frozen(self) -> None:
        sample = Sample(peer_count=3)
        with pytest.raises(ValidationError):
            sample.peer_count = 4  # type: ignore[misc]

    def test_rejects_extra_fields_and_coercion(self) -> None:
        with pytest.raises(ValidationError):
            Sample(peer_count=3, other=1)  # type: ignore[call-arg]
        with pytest.raises(ValidationError):
            Sample(peer_count="3")  # type: ignore[arg-type]


class TestExceptions:
    @pytest.mark.parametrize(
        "error",
        [
            NotEnoughNodesError(),
            NotEnoughPeersError(),
            TriangulationError("collinear"),
            UnknownBlockError(Entity(1)),
            InvalidTransactionError("bad"),
            NoSuchEntityError(Entity(1)),
        ],
    )
    def test_operational_failures_are_simulation_errors(self, error: Exception) -> None:
        assert isinstance(error, SimulationError)

    def test_missing_component_is_a_programmer_error(self) -> None:
        error = MissingComponentError(Entity(1), Sample)
        assert not isinstance(error, SimulationError)
        assert str(error) == "Entity(1) has no Sample component"

    def test_default_messages(self) -> None:
        assert str(NotEnoughNodesError()) == "Not enough nodes?"
        assert str(NotEnoughPeersError()).endswith("Not enough peers?")
        unknown = UnknownBlockError(Entity(4))
        assert str(unknown) == "Received a block that doesn't exist! (Entity(4))"
        assert unknown.block_id == Entity(4)

    def test_repr_shows_message(self) -> None:
        assert repr(NotEnoughNodesError()) == "NotEnoughNodesError('Not enough nodes?')"


def test_smallest_interval_is_positive() -> None:
    assert 0.0 < SMALLEST_INTERVAL < 1e-300
