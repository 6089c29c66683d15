"""
Dispatcher - idle-car assignment for pending hall calls

The clock calls Dispatcher.scan() once per beat, before any car steps.
Which car answers a call is decided by a pluggable allocation strategy
looked up by its configuration name (see STRATEGIES).
"""

from typing import Dict, List, Optional, Tuple

from simulator.core.building import Building
from simulator.core.rider import Direction
from simulator.errors import ConfigurationError, InvariantViolation
from simulator.infrastructure.message_broker import MessageBroker
from .algorithms.nearest_car import NearestIdleCarStrategy
from .interfaces.allocation_strategy import IAllocationStrategy


STRATEGIES = {
    "NearestIdleCar": NearestIdleCarStrategy,
}


def build_strategy(name: str, **parameters) -> IAllocationStrategy:
    """Create an allocation strategy from its configuration name."""
    if name not in STRATEGIES:
        raise ConfigurationError(f"Unknown allocation strategy: {name} (known: {sorted(STRATEGIES)})")
    return STRATEGIES[name](**parameters)


class Dispatcher:
    """
    Idle-car scan run by the clock at the start of every beat.

    This is a controller, not a simulated entity: it holds no state of its
    own apart from starvation bookkeeping. It is the only writer that
    clears call flags on behalf of an assignment, and it runs to completion
    before any car steps in the same beat, so an idle car can be assigned
    at most once per beat.
    """

    def __init__(self, broker: MessageBroker, building: Building,
                 strategy: IAllocationStrategy, starved_call_beats: int = 600):
        """
        Args:
            broker: Message broker (assignment and starvation notices)
            building: Building whose floors and cars are dispatched
            strategy: Allocation strategy choosing among the cars
            starved_call_beats: Beats a call may wait unassigned before it is reported
        """
        self.broker = broker
        self.building = building
        self.strategy = strategy
        self.starved_call_beats = starved_call_beats

        self._pending_since: Dict[Tuple[int, Direction], int] = {}
        self._starved_reported = set()
        self.assignments_made = 0

        print(f"{self.broker.get_current_time():.2f} [Dispatch] Using strategy: {self.strategy.get_strategy_name()}")

    def scan(self, beat: int) -> List[Tuple[int, int, Direction]]:
        """
        Assign idle cars to pending calls.

        Floors are scanned bottom to top, UP before DOWN on each floor.

        Args:
            beat: Current beat

        Returns:
            (car_id, floor, direction) for every assignment made
        """
        assignments: List[Tuple[int, int, Direction]] = []
        car_statuses = {car.car_id: car.status() for car in self.building.cars}

        pending = self.building.pending_calls()
        for key in set(self._pending_since) - set(pending):
            self._forget(key)

        for floor_number, direction in pending:
            call_data = {
                'floor': floor_number,
                'direction': direction.value,
                'beat': beat,
            }
            car_id = self.strategy.select_car(call_data, car_statuses)
            if car_id is None:
                self._note_unassigned(floor_number, direction, beat)
                continue

            car = self.building.car(car_id)
            if not car.is_idle():
                raise InvariantViolation(
                    f"Strategy selected busy car for floor {floor_number} {direction.value}",
                    car=car.name, state=car.state, stage=car.dock_stage, beat=beat)

            self.building.floor(floor_number).clear_call(direction)
            car.assign_pickup(floor_number, direction)
            car_statuses[car_id] = car.status()
            self._forget((floor_number, direction))
            self.assignments_made += 1
            assignments.append((car_id, floor_number, direction))

            print(f"{self.broker.get_current_time():.2f} [Dispatch] Assigned {car.name} to floor {floor_number} {direction.value}.")
            self.broker.put("dispatch/assignment", {
                "timestamp": self.broker.get_current_time(),
                "beat": beat,
                "car": car.name,
                "floor": floor_number,
                "direction": direction.value,
            })

        return assignments

    def pending_age(self, floor: int, direction: Direction) -> Optional[int]:
        """Beat at which an unassigned call was first seen, or None."""
        return self._pending_since.get((floor, direction))

    def _note_unassigned(self, floor: int, direction: Direction, beat: int):
        key = (floor, direction)
        if self.pending_age(floor, direction) is None:
            self._pending_since[key] = beat
        waited = beat - self.pending_age(floor, direction)
        if waited < self.starved_call_beats or key in self._starved_reported:
            return
        self._starved_reported.add(key)
        print(f"{self.broker.get_current_time():.2f} [Dispatch] WARNING: Call at floor {floor} {direction.value} "
              f"unassigned for {waited} beats (no idle car).")
        self.broker.put("dispatch/starved_call", {
            "timestamp": self.broker.get_current_time(),
            "beat": beat,
            "floor": floor,
            "direction": direction.value,
            "waiting_beats": waited,
        })

    def _forget(self, key: Tuple[int, Direction]):
        self._pending_since.pop(key, None)
        self._starved_reported.discard(key)
