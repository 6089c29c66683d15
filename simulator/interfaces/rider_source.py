"""
Rider Source Interface

Defines where riders come from. The clock polls the source once per beat
and hands each reported arrival to Building.on_rider_created().
"""

from abc import ABC, abstractmethod
from typing import List, Tuple


class IRiderSource(ABC):
    """
    Interface for rider generators

    Implementations must be deterministic for a given seed: the clock asks
    for arrivals beat by beat and never consults the wall clock.

    Usage Examples:
    - RandomRiderSource: random intervals, random origin/destination pairs
    - ScriptedRiderSource: a fixed list of arrivals (tests, replays)
    """

    @abstractmethod
    def poll(self, beat: int) -> List[Tuple[int, int]]:
        """
        Get the riders appearing at a beat

        Args:
            beat: Current beat (called with strictly increasing values)

        Returns:
            List of (origin_floor, destination_floor) pairs, possibly empty
        """

    @abstractmethod
    def is_exhausted(self) -> bool:
        """
        Whether the source will never produce another rider
        """
