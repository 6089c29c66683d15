"""
Building - owns every floor and car of the bank

Floors and cars are created once, at startup, and never destroyed. Other
components refer to them by number/id and look them up here:
- Floors are numbered from 1 (ground) to num_floors
- Cars are numbered from 1 to num_cars and all start parked at floor 1
"""

import itertools
from typing import Dict, List, Tuple

import simpy

from .carriage import Carriage, CarState
from .floor import Floor
from .rider import Direction, Rider
from ..infrastructure.message_broker import MessageBroker


class Building:
    """
    Fixed-size collection of floors and cars plus the rider entry point.
    """

    def __init__(self, env: simpy.Environment, broker: MessageBroker, num_floors: int,
                 floor_height: int, num_cars: int, max_riders: int,
                 door_dwell_beats: int, maintenance_trips: int):
        """
        Args:
            env: SimPy environment
            broker: Message broker shared by all components
            num_floors: Number of floors (>= 2)
            floor_height: Height of every floor in feet
            num_cars: Number of cars
            max_riders: Capacity of each car
            door_dwell_beats: Beats the doors stay open at each stop
            maintenance_trips: Completed trips before a car retires
        """
        if num_floors < 2:
            raise ValueError("Building must have at least two floors")
        if num_cars < 1:
            raise ValueError("Building must have at least one car")

        self.env = env
        self.broker = broker
        self.num_floors = num_floors
        self.floor_height = floor_height
        self.max_location = (num_floors - 1) * floor_height

        self._floors: Tuple[Floor, ...] = tuple(
            Floor(number, floor_height) for number in range(1, num_floors + 1)
        )
        self._cars: Tuple[Carriage, ...] = tuple(
            Carriage(env, car_id, self, broker, max_riders, door_dwell_beats, maintenance_trips)
            for car_id in range(1, num_cars + 1)
        )

        self._rider_ids = itertools.count(1)
        self.riders_created = 0
        self.current_beat = 0

    # --- lookup ---

    @property
    def floors(self) -> Tuple[Floor, ...]:
        return self._floors

    @property
    def cars(self) -> Tuple[Carriage, ...]:
        return self._cars

    def floor(self, number: int) -> Floor:
        if not 1 <= number <= self.num_floors:
            raise ValueError(f"Invalid floor: {number} (1-{self.num_floors})")
        return self._floors[number - 1]

    def car(self, car_id: int) -> Carriage:
        if not 1 <= car_id <= len(self._cars):
            raise ValueError(f"Invalid car id: {car_id} (1-{len(self._cars)})")
        return self._cars[car_id - 1]

    def is_valid_floor(self, number: int) -> bool:
        return 1 <= number <= self.num_floors

    # --- rider entry point ---

    def on_rider_created(self, origin_floor: int, destination_floor: int) -> int:
        """
        Accept a rider from the rider source and queue it on its origin floor.

        Args:
            origin_floor: Floor where the rider appears
            destination_floor: Floor the rider wants to reach

        Returns:
            The new rider's id

        Raises:
            ValueError: floors out of range or identical
        """
        if not self.is_valid_floor(origin_floor) or not self.is_valid_floor(destination_floor):
            raise ValueError(f"Rider floors out of range: {origin_floor} -> {destination_floor}")
        if origin_floor == destination_floor:
            raise ValueError(f"Rider origin and destination are both {origin_floor}")

        rider = Rider(next(self._rider_ids), origin_floor, destination_floor, self.current_beat)
        self.riders_created += 1
        floor = self.floor(origin_floor)
        covering_car = floor.add_rider(rider, self._cars)

        if covering_car is None:
            print(f"{self.env.now:.2f} [Floor_{origin_floor}] {rider.name} waiting {rider.direction.value} "
                  f"for floor {destination_floor}. Call ON.")
        else:
            print(f"{self.env.now:.2f} [Floor_{origin_floor}] {rider.name} waiting {rider.direction.value} "
                  f"for floor {destination_floor}. Covered by Car_{covering_car}.")

        self.broker.put("rider/created", {
            "timestamp": self.env.now,
            "beat": self.current_beat,
            "rider_id": rider.rider_id,
            "origin": origin_floor,
            "destination": destination_floor,
            "direction": rider.direction.value,
            "covered_by": covering_car,
        })
        return rider.rider_id

    # --- observation ---

    def waiting_riders(self) -> List[Rider]:
        waiting: List[Rider] = []
        for floor in self._floors:
            waiting.extend(floor.waiting_up)
            waiting.extend(floor.waiting_down)
        return waiting

    def census(self) -> Dict[str, int]:
        """Where every rider created so far currently is."""
        return {
            "created": self.riders_created,
            "waiting": len(self.waiting_riders()),
            "onboard": sum(len(car.onboard) for car in self._cars),
            "delivered": sum(car.riders_delivered for car in self._cars),
        }

    def is_settled(self) -> bool:
        """
        True when no car is busy and nobody is left waiting for a car that
        can still come.
        """
        for car in self._cars:
            if car.state not in (CarState.IDLE, CarState.MAINTENANCE) or car.onboard:
                return False
        if not any(car.is_in_service() for car in self._cars):
            return True
        return not any(floor.has_waiting() for floor in self._floors)

    def pending_calls(self) -> List[Tuple[int, Direction]]:
        calls = []
        for floor in self._floors:
            for direction in (Direction.UP, Direction.DOWN):
                if floor.has_call(direction):
                    calls.append((floor.number, direction))
        return calls

    def snapshot(self) -> dict:
        return {
            "beat": self.current_beat,
            "time": self.env.now,
            "cars": {car.car_id: car.snapshot() for car in self._cars},
            "floors": {floor.number: floor.snapshot() for floor in self._floors},
        }

    def __repr__(self) -> str:
        return f"Building(floors={self.num_floors}, cars={len(self._cars)}, height={self.floor_height}ft)"
