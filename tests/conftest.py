"""
Shared helpers for building small banks in tests.
"""

import sys
from pathlib import Path

# Add project root to path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import pytest
import simpy

from controller.dispatcher import Dispatcher
from controller.algorithms.nearest_car import NearestIdleCarStrategy
from simulator.core.building import Building
from simulator.core.clock import BeatClock
from simulator.implementations.scripted_source import ScriptedRiderSource
from simulator.infrastructure.message_broker import MessageBroker


class Bank:
    """Environment, broker, building, dispatcher and clock of one test run."""

    def __init__(self, num_floors=3, floor_height=2, num_cars=1, max_riders=2,
                 door_dwell_beats=1, maintenance_trips=100, arrivals=(),
                 stepping="cooperative", starved_call_beats=600, max_beats=None):
        self.env = simpy.Environment()
        self.broker = MessageBroker(self.env)
        self.building = Building(self.env, self.broker, num_floors, floor_height, num_cars,
                                 max_riders, door_dwell_beats, maintenance_trips)
        self.dispatcher = Dispatcher(self.broker, self.building, NearestIdleCarStrategy(),
                                     starved_call_beats=starved_call_beats)
        self.source = ScriptedRiderSource(arrivals)
        # One beat per simulated second keeps env.now equal to the beat number
        self.clock = BeatClock(self.env, self.broker, self.building, self.dispatcher, self.source,
                               beat_duration=1.0, stepping=stepping, max_beats=max_beats)
        self.snapshots = []
        self._snapshot_pipe = self.broker.get_pipe("bank/snapshot")
        self._started = False

    def _collect(self):
        while True:
            snapshot = yield self._snapshot_pipe.get()
            self.snapshots.append(snapshot)

    def run(self, until=None):
        """Start the clock on first use, then run the environment."""
        if not self._started:
            self._started = True
            self.clock.start()
            self.env.process(self._collect())
        self.env.run(until=until)
        return self.clock.finished.value if self.clock.finished.triggered else None

    def car(self, car_id=1):
        return self.building.car(car_id)


@pytest.fixture
def make_bank():
    return Bank
