"""
Floor - directional rider queues and hall call flags

A call flag means "riders are waiting in this direction and no car has
been committed to them yet". The dispatcher only looks at the flags; cars
passing by look at the queues themselves.
"""

from collections import deque
from typing import Deque, Dict, Iterable, List, Optional

from .rider import Direction, Rider


class Floor:
    """
    One building level.

    Attributes:
        number: Floor number (1-based)
        height_offset: Shaft position of this floor in feet
    """

    def __init__(self, number: int, floor_height: int):
        if number < 1:
            raise ValueError(f"Floor number must be >= 1, got {number}")
        self.number = number
        self.height_offset = (number - 1) * floor_height
        self._waiting: Dict[Direction, Deque[Rider]] = {
            Direction.UP: deque(),
            Direction.DOWN: deque(),
        }
        self._calls: Dict[Direction, bool] = {
            Direction.UP: False,
            Direction.DOWN: False,
        }

    # --- read-only views ---

    @property
    def waiting_up(self) -> List[Rider]:
        return list(self._waiting[Direction.UP])

    @property
    def waiting_down(self) -> List[Rider]:
        return list(self._waiting[Direction.DOWN])

    @property
    def call_up(self) -> bool:
        return self._calls[Direction.UP]

    @property
    def call_down(self) -> bool:
        return self._calls[Direction.DOWN]

    def has_call(self, direction: Direction) -> bool:
        return self._calls[direction]

    def has_waiting(self, direction: Optional[Direction] = None) -> bool:
        if direction is None:
            return bool(self._waiting[Direction.UP] or self._waiting[Direction.DOWN])
        return bool(self._waiting[direction])

    def waiting_count(self, direction: Direction) -> int:
        return len(self._waiting[direction])

    # --- mutation ---

    def add_rider(self, rider: Rider, cars: Iterable) -> Optional[int]:
        """
        Queue a newly arrived rider and decide whether the call is covered.

        The call flag for the rider's direction is set unless a car already
        committed to a route through this floor in that direction exists.
        The check runs only here, at insertion time.

        Args:
            rider: Rider whose origin is this floor
            cars: All cars of the bank, in id order

        Returns:
            Id of the covering car, or None if the call flag was raised
        """
        if rider.origin_floor != self.number:
            raise ValueError(f"{rider.name} belongs to floor {rider.origin_floor}, not {self.number}")

        direction = rider.direction
        self._waiting[direction].append(rider)

        for car in cars:
            if car.covers(self.number, direction):
                return car.car_id

        self._calls[direction] = True
        return None

    def board(self, direction: Direction, capacity: int) -> List[Rider]:
        """
        Hand over up to `capacity` riders from the front of a queue.

        The call flag for the direction stays set exactly when riders are
        left behind, so the floor gets re-dispatched on a later scan.
        """
        queue = self._waiting[direction]
        boarded: List[Rider] = []
        while queue and len(boarded) < capacity:
            boarded.append(queue.popleft())
        self._calls[direction] = bool(queue)
        return boarded

    def raise_call(self, direction: Direction) -> bool:
        """Set the call flag again if riders are still waiting; returns the new flag."""
        if self._waiting[direction]:
            self._calls[direction] = True
        return self._calls[direction]

    def clear_call(self, direction: Direction):
        self._calls[direction] = False

    def snapshot(self) -> dict:
        return {
            "call_up": self.call_up,
            "call_down": self.call_down,
            "waiting_up_count": self.waiting_count(Direction.UP),
            "waiting_down_count": self.waiting_count(Direction.DOWN),
        }

    def __repr__(self) -> str:
        return (f"Floor({self.number}, up={self.waiting_count(Direction.UP)}"
                f"{'*' if self.call_up else ''}, down={self.waiting_count(Direction.DOWN)}"
                f"{'*' if self.call_down else ''})")
