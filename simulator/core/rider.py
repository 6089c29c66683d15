from dataclasses import dataclass
from enum import Enum


class Direction(Enum):
    UP = "UP"
    DOWN = "DOWN"

    @classmethod
    def of(cls, origin: int, destination: int) -> "Direction":
        """Travel direction from origin to destination (destination > origin is UP)."""
        return cls.UP if destination > origin else cls.DOWN

    @property
    def step(self) -> int:
        """Signed one-unit move along the shaft."""
        return 1 if self is Direction.UP else -1


@dataclass(frozen=True)
class Rider:
    """
    A rider waiting for, or travelling in, a car.

    Created by the building when the rider source reports a new arrival;
    lives in its origin floor's queue, then in exactly one car, and is
    discarded when offloaded at its destination.
    """
    rider_id: int
    origin_floor: int
    destination_floor: int
    created_beat: int = 0

    def __post_init__(self):
        if self.origin_floor == self.destination_floor:
            raise ValueError(f"Rider {self.rider_id}: origin and destination are both {self.origin_floor}")

    @property
    def direction(self) -> Direction:
        return Direction.of(self.origin_floor, self.destination_floor)

    @property
    def name(self) -> str:
        return f"Rider_{self.rider_id}"
