"""Core simulation entities"""

from .entity import Entity
from .rider import Direction, Rider
from .floor import Floor
from .carriage import Carriage, CarState, DockStage
from .building import Building
from .clock import BeatClock

__all__ = [
    'Entity',
    'Direction',
    'Rider',
    'Floor',
    'Carriage',
    'CarState',
    'DockStage',
    'Building',
    'BeatClock',
]
