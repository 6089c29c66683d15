"""
Beat clock tests: stepping modes, termination and conservation
"""

import json

import pytest

from simulator.core.clock import BeatClock
from simulator.errors import ConfigurationError, InvariantViolation


ARRIVALS = [
    (0, 1, 5), (0, 3, 1), (2, 5, 2), (4, 2, 6), (4, 2, 6), (4, 2, 6),
    (9, 6, 1), (15, 4, 3), (15, 1, 6), (30, 6, 2), (31, 3, 4),
]


def _bank(make_bank, stepping, **kwargs):
    params = dict(num_floors=6, floor_height=3, num_cars=2, max_riders=2,
                  door_dwell_beats=2, arrivals=ARRIVALS, stepping=stepping)
    params.update(kwargs)
    return make_bank(**params)


def test_cooperative_and_parallel_stepping_agree(make_bank):
    cooperative = _bank(make_bank, "cooperative")
    parallel = _bank(make_bank, "parallel")

    result_cooperative = cooperative.run()
    result_parallel = parallel.run()

    assert result_cooperative == result_parallel
    assert cooperative.snapshots == parallel.snapshots
    assert all(car.process is not None for car in parallel.building.cars)
    assert all(car.process is None for car in cooperative.building.cars)


@pytest.mark.parametrize("stepping", ["cooperative", "parallel"])
def test_every_rider_is_delivered_exactly_once(make_bank, stepping):
    bank = _bank(make_bank, stepping)
    offloaded = bank.broker.get_pipe("rider/offloaded")
    boarded = bank.broker.get_pipe("rider/boarded")

    result = bank.run()

    assert result["reason"] == "settled"
    assert bank.building.census() == {
        "created": len(ARRIVALS), "waiting": 0, "onboard": 0, "delivered": len(ARRIVALS)}
    offloaded_ids = [message["rider_id"] for message in offloaded.items]
    boarded_ids = [message["rider_id"] for message in boarded.items]
    assert sorted(offloaded_ids) == list(range(1, len(ARRIVALS) + 1))
    assert sorted(boarded_ids) == sorted(offloaded_ids)


def test_riders_are_conserved_at_every_beat(make_bank):
    bank = _bank(make_bank, "cooperative")
    bank.run()

    for snapshot in bank.snapshots:
        waiting = sum(f["waiting_up_count"] + f["waiting_down_count"] for f in snapshot["floors"].values())
        onboard = sum(c["onboard_count"] for c in snapshot["cars"].values())
        created = sum(1 for beat, _, _ in ARRIVALS if beat <= snapshot["beat"])
        assert waiting + onboard <= created
        assert all(c["onboard_count"] <= 2 for c in snapshot["cars"].values())


def test_moving_cars_always_have_a_direction(make_bank):
    bank = _bank(make_bank, "cooperative")
    bank.run()

    for snapshot in bank.snapshots:
        for car in snapshot["cars"].values():
            if car["state"] in ("TRANSIT", "PICKUP_TRANSIT"):
                assert car["direction"] is not None
            if car["state"] == "PICKUP_TRANSIT":
                assert car["onboard_count"] == 0


def test_transit_direction_never_flips_with_riders_aboard(make_bank):
    bank = _bank(make_bank, "cooperative")
    bank.run()

    for car_id in (1, 2):
        previous = None
        for snapshot in bank.snapshots:
            car = snapshot["cars"][car_id]
            if previous and previous["state"] == "TRANSIT" and car["state"] == "TRANSIT" \
                    and previous["onboard_count"] > 0:
                assert car["direction"] == previous["direction"]
            previous = car


def test_beats_advance_env_by_beat_duration(make_bank):
    bank = make_bank(arrivals=[(0, 1, 3)])
    result = bank.run()

    assert [s["beat"] for s in bank.snapshots] == list(range(result["beats"]))
    assert [s["time"] for s in bank.snapshots] == [float(b) for b in range(result["beats"])]
    assert result["time"] == result["beats"] - 1


def test_max_beats_caps_the_run(make_bank):
    bank = make_bank(arrivals=[(0, 1, 3)], max_beats=4)
    result = bank.run()

    assert result == {"beats": 4, "time": 3.0, "reason": "max_beats"}
    assert bank.building.census()["delivered"] == 0


def test_empty_source_stops_after_first_beat(make_bank):
    bank = make_bank()
    result = bank.run()
    assert result["beats"] == 1
    assert result["reason"] == "settled"


def test_snapshot_is_json_serialisable(make_bank):
    bank = _bank(make_bank, "cooperative")
    bank.run(until=10.5)

    snapshot = bank.clock.last_snapshot
    decoded = json.loads(json.dumps(snapshot))
    assert decoded["beat"] == 10
    assert set(decoded["cars"]) == {"1", "2"}
    assert set(decoded["floors"]["1"]) == {"call_up", "call_down", "waiting_up_count", "waiting_down_count"}
    assert set(decoded["cars"]["1"]) == {
        "state", "location", "floor", "direction", "dock_stage", "door_open", "onboard_count", "trip_count"}


def test_invariant_violation_stops_the_run(make_bank):
    bank = make_bank(num_floors=3, floor_height=2, max_riders=1, arrivals=[(0, 1, 3)])
    bank.run(until=6.5)
    car = bank.car()
    car.onboard.append(car.onboard[0])

    with pytest.raises(InvariantViolation):
        bank.run()
    assert not bank.clock.finished.triggered


@pytest.mark.parametrize("kwargs", [
    {"stepping": "threads", "beat_duration": 1.0},
    {"stepping": "cooperative", "beat_duration": 0},
])
def test_clock_rejects_bad_settings(make_bank, kwargs):
    bank = make_bank()
    with pytest.raises(ConfigurationError):
        BeatClock(bank.env, bank.broker, bank.building, bank.dispatcher, bank.source, **kwargs)


def test_rider_with_invalid_floor_is_rejected(make_bank):
    bank = make_bank(num_floors=3)
    with pytest.raises(ValueError):
        bank.building.on_rider_created(0, 2)
    with pytest.raises(ValueError):
        bank.building.on_rider_created(2, 2)
    assert bank.building.riders_created == 0
