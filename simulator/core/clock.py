"""
BeatClock - the discrete time-stepping protocol

One beat is the time a car needs to travel one foot. Every beat runs:

    1. rider arrivals (polled from the rider source)
    2. dispatch scan (idle cars answer pending calls)
    3. one step of every car, in car-id order
    4. snapshot publication and termination check

Two stepping modes produce identical results:
- cooperative: the clock calls Carriage.step() itself
- parallel: each car is a SimPy actor process waiting for the beat signal;
  the clock fires the signal and waits until every car reports completion
  before the beat is considered settled
"""

from typing import Dict, Optional

import simpy

from .building import Building
from ..errors import ConfigurationError, InvariantViolation
from ..infrastructure.message_broker import MessageBroker
from ..interfaces.rider_source import IRiderSource


class BeatClock:
    """
    Drives the bank beat by beat until the rider source is exhausted and
    every car has settled.
    """

    COOPERATIVE = "cooperative"
    PARALLEL = "parallel"
    STEPPING_MODES = (COOPERATIVE, PARALLEL)

    def __init__(self, env: simpy.Environment, broker: MessageBroker, building: Building,
                 dispatcher, rider_source: IRiderSource, beat_duration: float,
                 stepping: str = COOPERATIVE, max_beats: Optional[int] = None):
        """
        Args:
            env: SimPy environment
            broker: Message broker (snapshots are published on 'bank/snapshot')
            building: Building holding floors and cars
            dispatcher: Dispatcher whose scan() runs at the start of each beat
            rider_source: Source of new riders
            beat_duration: Simulated seconds per beat
            stepping: 'cooperative' or 'parallel'
            max_beats: Stop after this many beats even if the bank is busy
        """
        if stepping not in self.STEPPING_MODES:
            raise ConfigurationError(f"Unknown stepping mode: {stepping} (use one of {self.STEPPING_MODES})")
        if beat_duration <= 0:
            raise ConfigurationError("beat_duration must be positive")

        self.env = env
        self.broker = broker
        self.building = building
        self.dispatcher = dispatcher
        self.rider_source = rider_source
        self.beat_duration = beat_duration
        self.stepping = stepping
        self.max_beats = max_beats

        self.beat = 0
        self.last_snapshot: Optional[dict] = None
        self.finished = env.event()

        self._beat_event = env.event()
        self._step_done: Dict[int, simpy.Event] = {}

    # --- process control ---

    def start(self) -> simpy.Process:
        """Start the car actors (parallel mode) and the clock process."""
        if self.stepping == self.PARALLEL:
            for car in self.building.cars:
                car.bind(self)
                car.start()
        return self.env.process(self.run())

    def beat_signal(self) -> simpy.Event:
        """Event that fires with the beat number when cars may step."""
        return self._beat_event

    def step_complete(self, car):
        """Called by a car actor after finishing its step for the current beat."""
        self._step_done[car.car_id].succeed()

    def run(self):
        print(f"{self.env.now:.2f} [Clock] Operational: {len(self.building.cars)} car(s), "
              f"{self.building.num_floors} floors, {self.stepping} stepping, beat={self.beat_duration:.3f}s.")

        while True:
            self.building.current_beat = self.beat
            self._inject_riders()
            self.dispatcher.scan(self.beat)

            if self.stepping == self.PARALLEL:
                yield from self._step_parallel()
            else:
                self._step_cooperative()

            self.last_snapshot = self.building.snapshot()
            self.broker.put("bank/snapshot", self.last_snapshot)

            reason = self._stop_reason()
            if reason is not None:
                break

            self.beat += 1
            yield self.env.timeout(self.beat_duration)

        print(f"{self.env.now:.2f} [Clock] Stopped after {self.beat + 1} beats ({reason}).")
        self.finished.succeed({
            "beats": self.beat + 1,
            "time": self.env.now,
            "reason": reason,
        })

    # --- beat phases ---

    def _inject_riders(self):
        for origin, destination in self.rider_source.poll(self.beat):
            self.building.on_rider_created(origin, destination)

    def _step_cooperative(self):
        for car in self.building.cars:
            try:
                car.step(self.beat)
            except InvariantViolation as exc:
                report_violation(self.env, exc)
                raise

    def _step_parallel(self):
        self._step_done = {car.car_id: self.env.event() for car in self.building.cars}
        signal, self._beat_event = self._beat_event, self.env.event()
        signal.succeed(self.beat)
        yield self.env.all_of(list(self._step_done.values()))

    def _stop_reason(self) -> Optional[str]:
        if self.rider_source.is_exhausted() and self.building.is_settled():
            return "settled"
        if self.max_beats is not None and self.beat + 1 >= self.max_beats:
            return "max_beats"
        return None


def report_violation(env: simpy.Environment, exc: InvariantViolation):
    """Print the diagnostic context of an invariant violation."""
    print(f"{env.now:.2f} [Clock] FATAL: invariant violated: {exc}")
