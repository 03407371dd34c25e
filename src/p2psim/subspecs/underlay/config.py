"""
Underlay Configuration
======================

Dimensions of the simulated plane and the propagation speed of messages.

Message flight time is distance divided by `message_speed`. The default
speed is ten plane-widths per virtual second, so two hosts at opposite
corners see roughly 100 ms of latency. That is about right for hosts on
opposite sides of the globe.
"""

from __future__ import annotations

from typing import Self

from pydantic import Field, model_validator

from p2psim.types import StrictBaseModel

DEFAULT_WIDTH = 800.0
"""Default plane width."""

DEFAULT_HEIGHT = 800.0
"""Default plane height."""

MESSAGE_SPEED_FACTOR = 10.0
"""Default message speed, in plane extents per virtual second."""

PER_MESSAGE_DELAY = 0.001
"""Stagger between consecutive messages of one `send_messages` batch."""


class UnderlayConfig(StrictBaseModel):
    """Geometry and latency model of the underlay network."""

    width: float = Field(default=DEFAULT_WIDTH, gt=0)
    """Plane width. Node x coordinates are drawn from [0, width)."""

    height: float = Field(default=DEFAULT_HEIGHT, gt=0)
    """Plane height. Node y coordinates are drawn from [0, height)."""

    message_speed: float | None = Field(default=None, gt=0)
    """
    Distance units a message travels per virtual second.

    Derived from the plane dimensions when omitted.
    """

    @model_validator(mode="after")
    def _derive_message_speed(self) -> Self:
        if self.message_speed is None:
            object.__setattr__(
                self, "message_speed", MESSAGE_SPEED_FACTOR * max(self.width, self.height)
            )
        return self

    def flight_duration(self, distance: float) -> float:
        """Virtual seconds a message needs to cover `distance`."""
        assert self.message_speed is not None
        return distance / self.message_speed
