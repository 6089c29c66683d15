import random
from typing import List, Optional, Tuple

from ..interfaces.rider_source import IRiderSource


class RandomRiderSource(IRiderSource):
    """
    Produces a fixed number of riders at random intervals.

    The gap before each rider is a whole number of seconds drawn uniformly
    from [min_interval, max_interval], converted to beats. Origin is any
    floor; destination is any other floor.
    """

    def __init__(self, num_floors: int, num_riders: int, min_interval: int, max_interval: int,
                 beats_per_second: float, seed: Optional[int] = None,
                 rng: Optional[random.Random] = None):
        """
        Args:
            num_floors: Number of floors in the building
            num_riders: Total riders to produce
            min_interval: Shortest gap between riders (seconds)
            max_interval: Longest gap between riders (seconds)
            beats_per_second: Beats per simulated second
            seed: Random seed (ignored when rng is given)
            rng: Random generator to draw from
        """
        if num_floors < 2:
            raise ValueError("num_floors must be at least 2")
        if min_interval > max_interval:
            raise ValueError("min_interval cannot exceed max_interval")

        self.num_floors = num_floors
        self.num_riders = num_riders
        self.min_interval = min_interval
        self.max_interval = max_interval
        self.beats_per_second = beats_per_second
        self.rng = rng if rng is not None else random.Random(seed)

        self.produced = 0
        self._next_beat = self._draw_gap() if num_riders > 0 else None

    def poll(self, beat: int) -> List[Tuple[int, int]]:
        arrivals = []
        while self._next_beat is not None and self._next_beat <= beat:
            arrivals.append(self._draw_trip())
            self.produced += 1
            if self.produced >= self.num_riders:
                self._next_beat = None
            else:
                self._next_beat += self._draw_gap()
        return arrivals

    def is_exhausted(self) -> bool:
        return self.produced >= self.num_riders

    def _draw_gap(self) -> int:
        seconds = self.rng.randint(self.min_interval, self.max_interval)
        return max(1, round(seconds * self.beats_per_second))

    def _draw_trip(self) -> Tuple[int, int]:
        origin = self.rng.randint(1, self.num_floors)
        destination = self.rng.randint(1, self.num_floors - 1)
        if destination >= origin:
            destination += 1
        return origin, destination
