from typing import Iterable, List, Tuple

from ..interfaces.rider_source import IRiderSource


class ScriptedRiderSource(IRiderSource):
    """
    Replays a fixed list of arrivals.

    Example:
        source = ScriptedRiderSource([(0, 1, 3), (12, 5, 2)])
        # beat 0: a rider on floor 1 going to 3; beat 12: floor 5 to 2
    """

    def __init__(self, arrivals: Iterable[Tuple[int, int, int]]):
        """
        Args:
            arrivals: (beat, origin_floor, destination_floor) triples
        """
        self._arrivals = sorted(arrivals, key=lambda arrival: arrival[0])
        self._cursor = 0

    def poll(self, beat: int) -> List[Tuple[int, int]]:
        due = []
        while self._cursor < len(self._arrivals) and self._arrivals[self._cursor][0] <= beat:
            _, origin, destination = self._arrivals[self._cursor]
            due.append((origin, destination))
            self._cursor += 1
        return due

    def is_exhausted(self) -> bool:
        return self._cursor >= len(self._arrivals)
