"""
Simulation Configuration
========================

Tunable parameters of a simulation run.

Scenario files are YAML with snake_case or camelCase keys::

    width: 1200
    height: 800
    speed: 0.5
    seed: 7
    logCapacity: 32
"""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import Field

from p2psim.subspecs.underlay.config import DEFAULT_HEIGHT, DEFAULT_WIDTH, UnderlayConfig
from p2psim.types import StrictBaseModel

from .logger import DEFAULT_LOG_CAPACITY

DEFAULT_SPEED = 0.1
"""Virtual seconds per real second. Slow enough to watch messages fly."""


class SimulationConfig(StrictBaseModel):
    """Parameters of one simulation."""

    width: float = Field(default=DEFAULT_WIDTH, gt=0)
    """Width of the underlay plane."""

    height: float = Field(default=DEFAULT_HEIGHT, gt=0)
    """Height of the underlay plane."""

    message_speed: float | None = Field(default=None, gt=0)
    """Message propagation speed. Derived from the plane size when omitted."""

    speed: float = Field(default=DEFAULT_SPEED, ge=0)
    """Initial speed factor of the virtual clock."""

    seed: int | None = None
    """
    RNG seed.

    With a fixed seed the whole run is reproducible. When omitted the
    environment default applies (see `p2psim.config`).
    """

    log_capacity: int = Field(default=DEFAULT_LOG_CAPACITY, gt=0)
    """Number of simulation log entries kept for display."""

    def underlay(self) -> UnderlayConfig:
        """The underlay part of this configuration."""
        return UnderlayConfig(
            width=self.width,
            height=self.height,
            message_speed=self.message_speed,
        )

    @classmethod
    def from_yaml(cls, path: Path) -> SimulationConfig:
        """
        Load a configuration from a YAML file.

        An empty file yields the defaults.

        Raises:
            pydantic.ValidationError: If a value has the wrong type or range.
        """
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        return cls.model_validate(data)
