"""
Elevator bank simulator - core simulation engine

This package provides the car state machine, floors, the beat clock and
the rider sources that drive a multi-car elevator bank.
"""

__version__ = "0.1.0"

from .errors import ConfigurationError, InvariantViolation
from .core.rider import Direction, Rider
from .core.floor import Floor
from .core.carriage import Carriage, CarState, DockStage
from .core.building import Building
from .core.clock import BeatClock

from .infrastructure.message_broker import MessageBroker
from .infrastructure.realtime_env import RealtimeEnvironment

__all__ = [
    'ConfigurationError',
    'InvariantViolation',
    'Direction',
    'Rider',
    'Floor',
    'Carriage',
    'CarState',
    'DockStage',
    'Building',
    'BeatClock',
    'MessageBroker',
    'RealtimeEnvironment',
]
