"""
Simulation - wires configuration, bank, dispatcher, clock and recorder

    sim = Simulation(load_simulation_config("scenarios/simulation/default.yaml"))
    summary = sim.run()
"""

import random
from typing import Optional

import simpy

from analyzer.statistics import Statistics
from config.simulation import SimulationConfig
from controller.dispatcher import Dispatcher, build_strategy
from controller.interfaces.allocation_strategy import IAllocationStrategy
from .core.building import Building
from .core.clock import BeatClock
from .implementations.random_source import RandomRiderSource
from .infrastructure.message_broker import MessageBroker
from .infrastructure.realtime_env import RealtimeEnvironment
from .interfaces.rider_source import IRiderSource


class Simulation:
    """
    One simulation run.

    The rider source and allocation strategy can be injected; by default
    they are built from the configuration (a seeded RandomRiderSource and
    the configured dispatch strategy).
    """

    def __init__(self, config: SimulationConfig,
                 rider_source: Optional[IRiderSource] = None,
                 strategy: Optional[IAllocationStrategy] = None,
                 verbose: bool = False):
        """
        Args:
            config: Validated simulation configuration
            rider_source: Rider source to use instead of the random one
            strategy: Allocation strategy to use instead of the configured one
            verbose: Echo every broker message to the console
        """
        config.validate()
        self.config = config

        if config.realtime_factor > 0:
            self.env = RealtimeEnvironment(speed_factor=config.realtime_factor)
        else:
            self.env = simpy.Environment()
        self.broker = MessageBroker(self.env, verbose=verbose)

        self.statistics = Statistics(self.env, self.broker.get_broadcast_pipe(),
                                     floor_height=config.building.floor_height)
        self.statistics.set_simulation_metadata({
            **config.to_dict()['simulation'],
            'beat_duration': config.beat_duration,
            'door_dwell_beats': config.door_dwell_beats,
        })

        self.building = Building(
            self.env, self.broker,
            num_floors=config.building.num_floors,
            floor_height=config.building.floor_height,
            num_cars=config.elevator.num_cars,
            max_riders=config.elevator.max_riders,
            door_dwell_beats=config.door_dwell_beats,
            maintenance_trips=config.elevator.maintenance_trips,
        )

        if strategy is None:
            strategy = build_strategy(config.dispatch.strategy, **config.dispatch.parameters)
        self.dispatcher = Dispatcher(self.broker, self.building, strategy,
                                     starved_call_beats=config.dispatch.starved_call_beats)

        if rider_source is None:
            if config.random_seed is not None:
                print(f"Random seed fixed to {config.random_seed} for reproducible results")
            rider_source = RandomRiderSource(
                num_floors=config.building.num_floors,
                num_riders=config.traffic.num_riders,
                min_interval=config.traffic.min_interval,
                max_interval=config.traffic.max_interval,
                beats_per_second=config.beats_per_second,
                rng=random.Random(config.random_seed),
            )
        self.rider_source = rider_source

        self.clock = BeatClock(
            self.env, self.broker, self.building, self.dispatcher, rider_source,
            beat_duration=config.beat_duration,
            stepping=config.stepping,
            max_beats=config.max_beats,
        )

    def run(self) -> dict:
        """
        Run until the bank settles (or max_beats is reached).

        Returns:
            Summary: clock result, rider census and recorder statistics
        """
        self.env.process(self.statistics.start_listening())
        self.clock.start()
        # Runs until the event queue is empty, so the recorder sees every message
        self.env.run()

        if not self.clock.finished.triggered:
            raise RuntimeError("Simulation ended before the clock finished")

        result = dict(self.clock.finished.value)
        result['census'] = self.building.census()
        result['cars'] = {
            car.car_id: {
                'state': car.state.value,
                'trip_count': car.trip_count,
                'floors_since_maintenance': car.floors_since_maintenance,
                'riders_delivered': car.riders_delivered,
            }
            for car in self.building.cars
        }
        result['statistics'] = self.statistics.summary()
        return result
