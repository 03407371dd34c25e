"""
Simulation kernel and command layer.

The command module is imported first: the underlay and protocol packages
build on it and are pulled in by the kernel itself.
"""

from .command import Command, CommandEntry, CommandHandler, EntityAction, ForSpecific
from .handlers import Despawner, EventHandler, EventHandlers
from .logger import DEFAULT_LOG_CAPACITY, Logger
from .repeaters import AtRandomIntervals, AtStaticIntervals, MultipleTimes
from .config import SimulationConfig
from .simulation import Simulation
from .time_control import MessagePredicate, SlowDownOnMessages

__all__ = [
    "AtRandomIntervals",
    "AtStaticIntervals",
    "Command",
    "CommandEntry",
    "CommandHandler",
    "DEFAULT_LOG_CAPACITY",
    "Despawner",
    "EntityAction",
    "EventHandler",
    "EventHandlers",
    "ForSpecific",
    "Logger",
    "MessagePredicate",
    "MultipleTimes",
    "Simulation",
    "SimulationConfig",
    "SlowDownOnMessages",
]
