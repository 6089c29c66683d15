"""
Dispatcher and allocation strategy tests
"""

import pytest

from controller.algorithms.nearest_car import NearestIdleCarStrategy
from controller.dispatcher import Dispatcher, build_strategy
from simulator.core.carriage import CarState
from simulator.core.rider import Direction
from simulator.errors import ConfigurationError, InvariantViolation


def _status(floor, state="IDLE"):
    return {"floor": floor, "state": state}


def test_nearest_idle_car_wins():
    strategy = NearestIdleCarStrategy()
    statuses = {1: _status(1), 2: _status(9), 3: _status(6)}
    assert strategy.select_car({"floor": 7, "direction": "UP"}, statuses) == 3


def test_tie_goes_to_lowest_car_id():
    strategy = NearestIdleCarStrategy()
    # Insertion order must not matter
    statuses = {3: _status(5), 2: _status(1), 1: _status(5)}
    for _ in range(5):
        assert strategy.select_car({"floor": 3, "direction": "DOWN"}, statuses) == 1


def test_busy_cars_are_never_selected():
    strategy = NearestIdleCarStrategy()
    statuses = {1: _status(3, "TRANSIT"), 2: _status(3, "MAINTENANCE"), 3: _status(10)}
    assert strategy.select_car({"floor": 3, "direction": "UP"}, statuses) == 3

    statuses[3] = _status(10, "DOCKED")
    assert strategy.select_car({"floor": 3, "direction": "UP"}, statuses) is None


def test_build_strategy_by_name():
    assert isinstance(build_strategy("NearestIdleCar"), NearestIdleCarStrategy)
    with pytest.raises(ConfigurationError):
        build_strategy("Clairvoyant")


def test_scan_assigns_lower_id_on_tie(make_bank):
    bank = make_bank(num_floors=5, floor_height=2, num_cars=2)
    bank.car(2).location = bank.building.floor(5).height_offset
    bank.building.on_rider_created(3, 1)

    assignments = bank.dispatcher.scan(0)

    assert assignments == [(1, 3, Direction.DOWN)]
    assert bank.car(1).state is CarState.PICKUP_TRANSIT
    assert bank.car(2).state is CarState.IDLE
    assert not bank.building.floor(3).call_down


def test_scan_order_is_bottom_up_then_up_before_down(make_bank):
    bank = make_bank(num_floors=5, floor_height=2, num_cars=3)
    bank.building.on_rider_created(4, 5)
    bank.building.on_rider_created(2, 1)
    bank.building.on_rider_created(2, 3)

    assignments = bank.dispatcher.scan(0)

    # All cars sit at floor 1: each scan step takes the lowest free id
    assert assignments == [
        (1, 2, Direction.UP),
        (2, 2, Direction.DOWN),
        (3, 4, Direction.UP),
    ]


def test_idle_car_assigned_at_most_once_per_scan(make_bank):
    bank = make_bank(num_floors=5, floor_height=2, num_cars=1)
    bank.building.on_rider_created(2, 4)
    bank.building.on_rider_created(4, 1)

    assignments = bank.dispatcher.scan(0)

    assert assignments == [(1, 2, Direction.UP)]
    assert bank.building.floor(4).call_down
    assert bank.dispatcher.pending_age(4, Direction.DOWN) == 0


def test_starved_call_is_reported_once(make_bank):
    bank = make_bank(num_floors=5, floor_height=2, num_cars=1, starved_call_beats=5)
    starved = bank.broker.get_pipe("dispatch/starved_call")
    bank.building.on_rider_created(2, 4)
    bank.dispatcher.scan(0)
    bank.building.on_rider_created(4, 1)

    for beat in range(1, 12):
        bank.dispatcher.scan(beat)

    assert len(starved.items) == 1
    notice = starved.items[0]
    assert notice["floor"] == 4
    assert notice["direction"] == "DOWN"
    assert notice["waiting_beats"] == 5
    assert notice["beat"] == 6


def test_assignment_clears_starvation_bookkeeping(make_bank):
    bank = make_bank(num_floors=5, floor_height=2, num_cars=1)
    bank.building.on_rider_created(2, 4)
    bank.dispatcher.scan(0)
    bank.building.on_rider_created(4, 1)
    bank.dispatcher.scan(1)
    assert bank.dispatcher.pending_age(4, Direction.DOWN) == 1

    bank.car().set_state(CarState.IDLE)
    bank.car().direction = None
    bank.dispatcher.scan(2)
    assert bank.dispatcher.pending_age(4, Direction.DOWN) is None


def test_strategy_selecting_busy_car_is_a_violation(make_bank):
    class AlwaysFirst(NearestIdleCarStrategy):
        def select_car(self, call_data, car_statuses):
            return 1

    bank = make_bank(num_floors=5, floor_height=2, num_cars=1)
    bank.dispatcher.strategy = AlwaysFirst()
    bank.building.on_rider_created(2, 4)
    bank.dispatcher.scan(0)
    bank.building.on_rider_created(4, 1)

    with pytest.raises(InvariantViolation):
        bank.dispatcher.scan(1)


def test_capacity_overflow_is_reassigned_later(make_bank):
    """5 riders going up, car has 2 slots: 2 board, call stays lit, re-dispatched"""
    arrivals = [(0, 1, 3)] * 5
    bank = make_bank(num_floors=3, floor_height=2, num_cars=1, max_riders=2, arrivals=arrivals)
    assignments = bank.broker.get_pipe("dispatch/assignment")

    # Beat 3 is the boarding stage
    bank.run(until=3.5)
    car = bank.car()
    floor = bank.building.floor(1)
    assert len(car.onboard) == 2
    assert floor.call_up
    assert floor.waiting_count(Direction.UP) == 3
    assert len(assignments.items) == 1

    result = bank.run()

    assert result["reason"] == "settled"
    assert bank.building.census() == {"created": 5, "waiting": 0, "onboard": 0, "delivered": 5}
    floor_one_up = [a for a in assignments.items if a["floor"] == 1 and a["direction"] == "UP"]
    assert len(floor_one_up) == 3
    assert all(s["cars"][1]["onboard_count"] <= 2 for s in bank.snapshots)


def test_call_served_without_assignment_is_forgotten(make_bank):
    bank = make_bank(num_floors=5, floor_height=2, num_cars=1, starved_call_beats=3)
    starved = bank.broker.get_pipe("dispatch/starved_call")
    bank.building.on_rider_created(2, 4)
    bank.dispatcher.scan(0)
    bank.building.on_rider_created(4, 1)
    bank.dispatcher.scan(1)
    assert bank.building.pending_calls() == [(4, Direction.DOWN)]

    # Picked up by a passing car: the flag drops with no assignment
    bank.building.floor(4).board(Direction.DOWN, 5)
    bank.dispatcher.scan(2)
    assert bank.dispatcher.pending_age(4, Direction.DOWN) is None

    # A new call on the same floor starts a fresh wait
    bank.building.on_rider_created(4, 2)
    for beat in range(3, 6):
        bank.dispatcher.scan(beat)
    assert bank.dispatcher.pending_age(4, Direction.DOWN) == 3
    assert starved.items == []
    bank.dispatcher.scan(6)
    assert starved.items[0]["waiting_beats"] == 3
