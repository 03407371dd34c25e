"""
Global configuration for the simulator.

This module contains environment-specific settings that apply across all subspecs.
"""

import os
from typing import Final

_SUPPORTED_P2PSIM_ENVS: list[str] = ["prod", "test"]

P2PSIM_ENV = os.environ.get("P2PSIM_ENV", "prod").lower()
"""The environment flag ('prod' or 'test'). Defaults to 'prod'."""

if P2PSIM_ENV not in _SUPPORTED_P2PSIM_ENVS:
    raise ValueError(
        f"Invalid P2PSIM_ENV environment variable: '{P2PSIM_ENV}'. "
        f"Supported values: {_SUPPORTED_P2PSIM_ENVS}"
    )

TEST_DEFAULT_SEED: Final = 0
"""RNG seed used under 'test' when a simulation is built without one."""


def default_seed() -> int | None:
    """Seed for simulations built without an explicit one (None draws from the OS)."""
    return TEST_DEFAULT_SEED if P2PSIM_ENV == "test" else None
