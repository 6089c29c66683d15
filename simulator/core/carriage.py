"""
Carriage - per-car state machine

Each call to step() performs exactly one state transition, one dock
sub-stage, or one foot of travel. States and dock sub-stages are enums;
every member has exactly one handler method and the handler tables are
checked for completeness when the car is built.

    IDLE --assign_pickup--> PICKUP_TRANSIT --pickup floor--> DOCKED
    IDLE --assign_pickup (same floor)--> DOCKED
    DOCKED: LAND -> OPEN_DOORS (dwell) -> OFFLOAD_RIDERS -> ONBOARD_RIDERS
            -> CLOSE_DOORS -> DOCK_COMPLETE
    DOCK_COMPLETE --riders aboard--> TRANSIT --stop--> DOCKED
    DOCK_COMPLETE --empty--> IDLE | MAINTENANCE (terminal)
"""

from enum import Enum
from typing import TYPE_CHECKING, Dict, List, Optional

import simpy

from .entity import Entity
from .rider import Direction, Rider
from ..errors import InvariantViolation
from ..infrastructure.message_broker import MessageBroker

if TYPE_CHECKING:
    from .building import Building
    from .clock import BeatClock


class CarState(Enum):
    IDLE = "IDLE"
    PICKUP_TRANSIT = "PICKUP_TRANSIT"
    TRANSIT = "TRANSIT"
    DOCKED = "DOCKED"
    MAINTENANCE = "MAINTENANCE"


class DockStage(Enum):
    LAND = "LAND"
    OPEN_DOORS = "OPEN_DOORS"
    OFFLOAD_RIDERS = "OFFLOAD_RIDERS"
    ONBOARD_RIDERS = "ONBOARD_RIDERS"
    CLOSE_DOORS = "CLOSE_DOORS"
    DOCK_COMPLETE = "DOCK_COMPLETE"


# Execution order of the dock sub-stages
DOCK_SEQUENCE = tuple(DockStage)


class Carriage(Entity):
    """
    One elevator car.

    Position is kept in whole feet from the bottom of the shaft; the car is
    "on" a floor whenever its location is a multiple of the floor height.
    """

    MOVING_STATES = (CarState.PICKUP_TRANSIT, CarState.TRANSIT)
    STEERABLE_STATES = (CarState.IDLE, CarState.DOCKED)

    def __init__(self, env: simpy.Environment, car_id: int, building: "Building",
                 broker: MessageBroker, max_riders: int, door_dwell_beats: int,
                 maintenance_trips: int, start_floor: int = 1):
        """
        Args:
            env: SimPy environment
            car_id: Car id (1-based, unique within the building)
            building: Building that owns the floors this car serves
            broker: Message broker for status and rider events
            max_riders: Capacity of the car
            door_dwell_beats: Beats the doors stay open at every stop
            maintenance_trips: Completed trips before the car retires to maintenance
            start_floor: Floor the car is parked at when the simulation starts
        """
        super().__init__(env, f"Car_{car_id}")
        self.car_id = car_id
        self.building = building
        self.broker = broker
        self.max_riders = max_riders
        self.door_dwell_beats = door_dwell_beats
        self.maintenance_trips = maintenance_trips

        self.floor_height = building.floor_height
        self.max_location = building.max_location
        self.location = building.floor(start_floor).height_offset

        self.direction: Optional[Direction] = None
        self.onboard: List[Rider] = []
        self.last_stop: Optional[int] = None
        self.pickup_floor: Optional[int] = None
        self.pickup_direction: Optional[Direction] = None

        self.dock_stage: Optional[DockStage] = None
        self.door_open = False
        self.door_close_countdown = 0

        self.trip_count = 0
        self.floors_since_maintenance = 0
        self.riders_delivered = 0

        self.beat = 0
        self.clock: Optional["BeatClock"] = None

        self._state_handlers = {
            CarState.IDLE: self._idle,
            CarState.PICKUP_TRANSIT: self._pickup_transit,
            CarState.TRANSIT: self._transit,
            CarState.DOCKED: self._docked,
            CarState.MAINTENANCE: self._maintenance,
        }
        self._dock_handlers = {
            DockStage.LAND: self._land,
            DockStage.OPEN_DOORS: self._open_doors,
            DockStage.OFFLOAD_RIDERS: self._offload_riders,
            DockStage.ONBOARD_RIDERS: self._onboard_riders,
            DockStage.CLOSE_DOORS: self._close_doors,
            DockStage.DOCK_COMPLETE: self._dock_complete,
        }
        self._verify_handlers()

        # Initial state is set silently; transitions from here on are logged
        self.state = CarState.IDLE

    # ------------------------------------------------------------------
    # Derived position
    # ------------------------------------------------------------------

    @property
    def current_floor(self) -> int:
        """Floor at (or just below, when between floors) the car's position."""
        return self.location // self.floor_height + 1

    @property
    def at_floor(self) -> bool:
        return self.location % self.floor_height == 0

    @property
    def free_slots(self) -> int:
        return self.max_riders - len(self.onboard)

    def is_idle(self) -> bool:
        return self.state is CarState.IDLE

    def is_in_service(self) -> bool:
        return self.state is not CarState.MAINTENANCE

    # ------------------------------------------------------------------
    # Driving the car
    # ------------------------------------------------------------------

    def bind(self, clock: "BeatClock"):
        """Attach the beat clock whose signal drives the actor process."""
        self.clock = clock

    def run(self):
        """Actor process for parallel stepping: one step per beat signal."""
        if self.clock is None:
            raise InvariantViolation("Actor started without a clock", car=self.name, state=self.state)
        while True:
            beat = yield self.clock.beat_signal()
            try:
                self.step(beat)
            except InvariantViolation as exc:
                print(f"{self.env.now:.2f} [{self.name}] FATAL: invariant violated: {exc}")
                raise
            self.clock.step_complete(self)

    def step(self, beat: int):
        """
        Advance the car by one beat.

        Raises:
            InvariantViolation: the step left the car in an impossible state;
                the step is abandoned and the run must stop.
        """
        self.beat = beat
        handler = self._state_handlers.get(self.state)
        if handler is None:
            raise self._violation(f"No handler for state {self.state!r}")
        handler()
        self._check_invariants()

    def assign_pickup(self, floor: int, call_direction: Direction):
        """
        Send an idle car to answer a hall call.

        An idle car already standing on the calling floor docks in place;
        otherwise it heads towards the floor in pickup transit.

        Args:
            floor: Calling floor
            call_direction: Direction of the waiting riders to pick up
        """
        if self.state is not CarState.IDLE:
            raise self._violation(f"Pickup for floor {floor} assigned to a busy car")
        if not self.at_floor:
            raise self._violation("Idle car is between floors")

        self.pickup_floor = floor
        self.pickup_direction = call_direction

        if floor == self.current_floor:
            print(f"{self.env.now:.2f} [{self.name}] Call at floor {floor} ({call_direction.value}): docking in place.")
            self._set_direction(call_direction)
            self._dock()
        else:
            travel = Direction.of(self.current_floor, floor)
            print(f"{self.env.now:.2f} [{self.name}] Call at floor {floor} ({call_direction.value}): "
                  f"heading {travel.value} from floor {self.current_floor}.")
            self._set_direction(travel)
            self.set_state(CarState.PICKUP_TRANSIT)

    def covers(self, floor: int, direction: Direction) -> bool:
        """
        Whether this car's committed route already serves riders waiting at
        `floor` to travel in `direction`.

        A moving car covers the floor when it is still before the floor in
        its direction of travel and its last stop is at or beyond it. A
        docked car covers floors further along its route, and its own floor
        as long as it has not finished boarding there. A car docked for a
        pickup has no route yet, so it covers only its own floor.
        """
        if self.state is CarState.DOCKED and floor == self.current_floor:
            if DOCK_SEQUENCE.index(self.dock_stage) > DOCK_SEQUENCE.index(DockStage.ONBOARD_RIDERS):
                return False
            return self._boarding_direction() is direction

        if self.direction is not direction or self.last_stop is None:
            return False
        ahead = direction.step
        beyond_last_stop = (self.last_stop - floor) * ahead < 0

        if self.state is CarState.TRANSIT:
            offset = (floor - 1) * self.floor_height
            return (offset - self.location) * ahead > 0 and not beyond_last_stop

        if self.state is CarState.DOCKED:
            return (floor - self.current_floor) * ahead > 0 and not beyond_last_stop

        return False

    def _boarding_direction(self) -> Optional[Direction]:
        # Until LAND runs at a pickup floor the car still points the way it approached
        if self.pickup_floor == self.current_floor:
            return self.pickup_direction
        return self.direction

    # ------------------------------------------------------------------
    # State handlers
    # ------------------------------------------------------------------

    def _idle(self):
        pass

    def _maintenance(self):
        pass

    def _pickup_transit(self):
        floor = self._move_one_foot()
        if floor is not None and floor == self.pickup_floor:
            self._dock()

    def _transit(self):
        floor = self._move_one_foot()
        if floor is not None and self._should_stop_at(floor):
            self._dock()

    def _docked(self):
        handler = self._dock_handlers.get(self.dock_stage)
        if handler is None:
            raise self._violation(f"No handler for dock stage {self.dock_stage!r}")
        handler()

    # --- dock sub-stages ---

    def _land(self):
        floor = self.current_floor
        if self.pickup_floor == floor:
            # Serve the call in the riders' direction, not the approach direction
            self._set_direction(self.pickup_direction)
            self.pickup_floor = None
            self.pickup_direction = None
        self.door_close_countdown = self.door_dwell_beats
        print(f"{self.env.now:.2f} [{self.name}] Landed at floor {floor} ({self.direction.value}).")
        self._advance_stage(DockStage.OPEN_DOORS)

    def _open_doors(self):
        if not self.door_open:
            self.door_open = True
            print(f"{self.env.now:.2f} [{self.name}] Doors open at floor {self.current_floor}.")
        self.door_close_countdown -= 1
        if self.door_close_countdown <= 0:
            self._advance_stage(DockStage.OFFLOAD_RIDERS)

    def _offload_riders(self):
        floor = self.current_floor
        leaving = [rider for rider in self.onboard if rider.destination_floor == floor]
        if leaving:
            self.onboard = [rider for rider in self.onboard if rider.destination_floor != floor]
            self.riders_delivered += len(leaving)
            for rider in leaving:
                self.broker.put("rider/offloaded", {
                    "timestamp": self.env.now,
                    "beat": self.beat,
                    "rider_id": rider.rider_id,
                    "car": self.name,
                    "floor": floor,
                })
            print(f"{self.env.now:.2f} [{self.name}] Offloaded {len(leaving)} rider(s) at floor {floor}. "
                  f"Onboard {len(self.onboard)}/{self.max_riders}.")
        self._advance_stage(DockStage.ONBOARD_RIDERS)

    def _onboard_riders(self):
        floor = self.building.floor(self.current_floor)
        boarded = floor.board(self.direction, self.free_slots)
        for rider in boarded:
            if rider.direction is not self.direction:
                raise self._violation(f"{rider.name} travelling {rider.direction.value} boarded a car going {self.direction.value}")
            self.broker.put("rider/boarded", {
                "timestamp": self.env.now,
                "beat": self.beat,
                "rider_id": rider.rider_id,
                "car": self.name,
                "floor": floor.number,
            })
        if boarded:
            self.onboard.extend(boarded)
            self._sort_onboard()
            names = ", ".join(rider.name for rider in boarded)
            print(f"{self.env.now:.2f} [{self.name}] Boarded {len(boarded)} rider(s) at floor {floor.number}: [{names}]. "
                  f"Onboard {len(self.onboard)}/{self.max_riders}.")
        if floor.has_waiting(self.direction):
            print(f"{self.env.now:.2f} [{self.name}] Full: {floor.waiting_count(self.direction)} rider(s) left at floor "
                  f"{floor.number} ({self.direction.value}), call stays lit.")
        self._advance_stage(DockStage.CLOSE_DOORS)

    def _close_doors(self):
        self.door_open = False
        print(f"{self.env.now:.2f} [{self.name}] Doors closed at floor {self.current_floor}.")
        self._advance_stage(DockStage.DOCK_COMPLETE)

    def _dock_complete(self):
        if self.onboard:
            self.last_stop = self.onboard[-1].destination_floor
            self.dock_stage = None
            print(f"{self.env.now:.2f} [{self.name}] Departing {self.direction.value}, last stop floor {self.last_stop}.")
            self.set_state(CarState.TRANSIT)
            return

        self.trip_count += 1
        self.last_stop = None
        self.pickup_floor = None
        self.pickup_direction = None
        self._set_direction(None)
        self.dock_stage = None
        if self.trip_count >= self.maintenance_trips:
            print(f"{self.env.now:.2f} [{self.name}] Trip {self.trip_count} completed: retiring for maintenance.")
            self.set_state(CarState.MAINTENANCE)
        else:
            print(f"{self.env.now:.2f} [{self.name}] Trip {self.trip_count} completed at floor {self.current_floor}.")
            self.set_state(CarState.IDLE)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _move_one_foot(self) -> Optional[int]:
        """Move one foot in the current direction; returns the floor reached, if any."""
        new_location = self.location + self.direction.step
        if not 0 <= new_location <= self.max_location:
            raise self._violation(f"Move to {new_location} ft leaves the shaft [0, {self.max_location}]")
        self.location = new_location
        if new_location % self.floor_height:
            return None
        self.floors_since_maintenance += 1
        return self.current_floor

    def _should_stop_at(self, floor_number: int) -> bool:
        if self.onboard and self.onboard[0].destination_floor == floor_number:
            return True
        floor = self.building.floor(floor_number)
        if not floor.has_waiting(self.direction):
            return False
        if self.free_slots > 0:
            return True
        # Full-load bypass: hand the waiting riders back to the dispatcher
        floor.raise_call(self.direction)
        print(f"{self.env.now:.2f} [{self.name}] Full, passing floor {floor_number} "
              f"({floor.waiting_count(self.direction)} waiting {self.direction.value}).")
        return False

    def _dock(self):
        self.dock_stage = DockStage.LAND
        self.set_state(CarState.DOCKED)

    def _advance_stage(self, stage: DockStage):
        self.dock_stage = stage

    def _sort_onboard(self):
        self.onboard.sort(key=lambda rider: rider.destination_floor,
                          reverse=self.direction is Direction.DOWN)

    def _set_direction(self, new_direction: Optional[Direction]):
        if self.direction is new_direction:
            return
        if self.state not in self.STEERABLE_STATES:
            old = self.direction.value if self.direction else None
            new = new_direction.value if new_direction else None
            raise self._violation(f"Direction change {old} -> {new} while moving")
        self.direction = new_direction

    def _verify_handlers(self):
        missing = [s for s in CarState if s not in self._state_handlers]
        missing += [s for s in DockStage if s not in self._dock_handlers]
        if missing:
            raise InvariantViolation(f"Unhandled states: {[m.value for m in missing]}", car=self.name)

    def _check_invariants(self):
        if len(self.onboard) > self.max_riders:
            raise self._violation(f"{len(self.onboard)} riders aboard, capacity {self.max_riders}")
        if self.state in self.MOVING_STATES and self.direction is None:
            raise self._violation("Moving without a direction")
        if self.state is CarState.PICKUP_TRANSIT and self.onboard:
            raise self._violation("Pickup transit with riders aboard")
        if self.state is CarState.DOCKED and self.dock_stage is None:
            raise self._violation("Docked without a dock stage")

    def _violation(self, detail: str) -> InvariantViolation:
        return InvariantViolation(detail, car=self.name, state=self.state,
                                  stage=self.dock_stage, beat=self.beat)

    def _on_state_changed(self, old_state, new_state):
        super()._on_state_changed(old_state, new_state)
        self.broker.put(f"car/{self.name}/status", self.status())

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    def snapshot(self) -> dict:
        return {
            "state": self.state.value,
            "location": self.location,
            "floor": self.current_floor,
            "direction": self.direction.value if self.direction else None,
            "dock_stage": self.dock_stage.value if self.dock_stage else None,
            "door_open": self.door_open,
            "onboard_count": len(self.onboard),
            "trip_count": self.trip_count,
        }

    def status(self) -> Dict:
        """Status report used by the dispatcher and published on state changes."""
        status = self.snapshot()
        status.update({
            "timestamp": self.env.now,
            "car_id": self.car_id,
            "name": self.name,
            "max_riders": self.max_riders,
            "last_stop": self.last_stop,
            "pickup_floor": self.pickup_floor,
            "floors_since_maintenance": self.floors_since_maintenance,
        })
        return status

    def __repr__(self) -> str:
        return f"Carriage({self.car_id}, {self.state.value}, floor={self.current_floor}, onboard={len(self.onboard)})"
