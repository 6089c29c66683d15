"""
End-to-end runs through the Simulation wiring
"""

from config import SimulationConfig
from simulator.implementations.random_source import RandomRiderSource
from simulator.implementations.scripted_source import ScriptedRiderSource
from simulator.infrastructure.realtime_env import RealtimeEnvironment
from simulator.simulation import Simulation


def _config(stepping="cooperative", seed=11, num_riders=25):
    return SimulationConfig.from_dict({'simulation': {
        'building': {'num_floors': 8, 'floor_height': 4},
        'elevator': {'num_cars': 3, 'travel_speed': 2, 'max_riders': 3, 'maintenance_trips': 1000},
        'door': {'open_time': 1},
        'traffic': {'num_riders': num_riders, 'min_interval': 1, 'max_interval': 5},
        'stepping': stepping,
        'random_seed': seed,
    }})


def test_random_run_delivers_every_rider():
    summary = Simulation(_config()).run()

    assert summary['reason'] == 'settled'
    assert summary['census'] == {'created': 25, 'waiting': 0, 'onboard': 0, 'delivered': 25}
    assert summary['statistics']['riders_delivered'] == 25
    assert summary['statistics']['wait_time']['count'] == 25
    assert sum(car['riders_delivered'] for car in summary['cars'].values()) == 25
    assert all(car['state'] == 'IDLE' for car in summary['cars'].values())


def test_same_seed_same_run_in_both_stepping_modes():
    cooperative = Simulation(_config("cooperative"))
    parallel = Simulation(_config("parallel"))

    summary_cooperative = cooperative.run()
    summary_parallel = parallel.run()

    assert cooperative.statistics.snapshots == parallel.statistics.snapshots
    assert summary_cooperative['beats'] == summary_parallel['beats']
    assert summary_cooperative['cars'] == summary_parallel['cars']
    assert summary_cooperative['statistics'] == summary_parallel['statistics']


def test_different_seeds_differ():
    first = Simulation(_config(seed=1)).run()
    second = Simulation(_config(seed=2)).run()
    assert first['beats'] != second['beats'] or first['statistics'] != second['statistics']


def test_injected_rider_source():
    source = ScriptedRiderSource([(0, 1, 8), (3, 8, 1)])
    simulation = Simulation(_config(), rider_source=source)

    summary = simulation.run()

    assert summary['census']['delivered'] == 2
    assert simulation.rider_source is source


def test_beat_duration_follows_travel_speed():
    simulation = Simulation(_config())
    summary = simulation.run()

    # travel_speed 2 ft/s: half a second per beat
    assert simulation.clock.beat_duration == 0.5
    assert summary['time'] == (summary['beats'] - 1) * 0.5


def test_zero_riders_settles_immediately():
    summary = Simulation(_config(num_riders=0)).run()
    assert summary['beats'] == 1
    assert summary['census']['created'] == 0


def test_realtime_factor_selects_paced_environment():
    config = _config()
    config.realtime_factor = 1000.0
    simulation = Simulation(config, rider_source=ScriptedRiderSource([(0, 1, 2)]))
    assert isinstance(simulation.env, RealtimeEnvironment)
    assert simulation.run()['census']['delivered'] == 1


def test_random_source_gaps_and_trips():
    source = RandomRiderSource(num_floors=4, num_riders=30, min_interval=2, max_interval=3,
                               beats_per_second=2, seed=5)
    arrivals = {}
    for beat in range(400):
        for trip in source.poll(beat):
            arrivals.setdefault(beat, []).append(trip)

    assert source.is_exhausted()
    assert sum(len(trips) for trips in arrivals.values()) == 30
    beats = sorted(arrivals)
    assert all(4 <= later - earlier <= 6 for earlier, later in zip(beats, beats[1:]))
    for trips in arrivals.values():
        for origin, destination in trips:
            assert 1 <= origin <= 4 and 1 <= destination <= 4
            assert origin != destination


def test_run_simulation_writes_outputs(tmp_path):
    from config import save_simulation_config
    from main import run_simulation

    config_path = tmp_path / "small.yaml"
    save_simulation_config(_config(num_riders=5), config_path)
    log_path = tmp_path / "log.jsonl"
    diagram_path = tmp_path / "diagram.png"

    summary = run_simulation(str(config_path), log_path=str(log_path), diagram_path=str(diagram_path))

    assert summary['census']['delivered'] == 5
    assert log_path.exists()
    assert diagram_path.exists()
