"""
Simulation Configuration

Physical specifications of the bank, rider traffic and stepping control.
Every section validates itself on construction; an invalid value raises
ConfigurationError and the simulation never starts.

Units: feet for heights, feet per second for speed, seconds for times.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from simulator.errors import ConfigurationError


def _require_int(name: str, value, minimum: int):
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"{name} must be an integer, got {value!r}")
    if value < minimum:
        raise ConfigurationError(f"{name} must be at least {minimum}, got {value}")


def _require_positive(name: str, value):
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigurationError(f"{name} must be a number, got {value!r}")
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {value}")


@dataclass
class BuildingConfig:
    """Building specifications"""
    num_floors: int = 30
    floor_height: int = 8  # feet

    def __post_init__(self):
        _require_int("building.num_floors", self.num_floors, 2)
        _require_int("building.floor_height", self.floor_height, 1)


@dataclass
class ElevatorConfig:
    """Car specifications"""
    num_cars: int = 10
    travel_speed: float = 3.0  # feet per second
    max_riders: int = 13
    maintenance_trips: int = 100  # completed trips before a car retires

    def __post_init__(self):
        _require_int("elevator.num_cars", self.num_cars, 1)
        _require_positive("elevator.travel_speed", self.travel_speed)
        _require_int("elevator.max_riders", self.max_riders, 1)
        _require_int("elevator.maintenance_trips", self.maintenance_trips, 1)


@dataclass
class DoorConfig:
    """Door specifications"""
    open_time: float = 5.0  # seconds the doors stay open at every stop

    def __post_init__(self):
        _require_positive("door.open_time", self.open_time)


@dataclass
class TrafficConfig:
    """Rider generation"""
    num_riders: int = 100
    min_interval: int = 3  # seconds
    max_interval: int = 10  # seconds

    def __post_init__(self):
        _require_int("traffic.num_riders", self.num_riders, 0)
        _require_int("traffic.min_interval", self.min_interval, 1)
        _require_int("traffic.max_interval", self.max_interval, 1)
        if self.min_interval > self.max_interval:
            raise ConfigurationError(
                f"traffic.min_interval ({self.min_interval}) cannot exceed traffic.max_interval ({self.max_interval})")


@dataclass
class DispatchConfig:
    """Dispatcher settings"""
    strategy: str = "NearestIdleCar"
    parameters: Dict[str, Any] = field(default_factory=dict)
    starved_call_beats: int = 600

    def __post_init__(self):
        if not self.strategy:
            raise ConfigurationError("dispatch.strategy cannot be empty")
        _require_int("dispatch.starved_call_beats", self.starved_call_beats, 1)


@dataclass
class SimulationConfig:
    """
    Complete simulation configuration

    Combines building, elevator, door, traffic and dispatch settings.
    """
    building: BuildingConfig = field(default_factory=BuildingConfig)
    elevator: ElevatorConfig = field(default_factory=ElevatorConfig)
    door: DoorConfig = field(default_factory=DoorConfig)
    traffic: TrafficConfig = field(default_factory=TrafficConfig)
    dispatch: DispatchConfig = field(default_factory=DispatchConfig)

    # Simulation control
    stepping: str = "cooperative"  # cooperative | parallel
    random_seed: Optional[int] = None
    realtime_factor: float = 0.0  # 0.0 = as fast as possible, 1.0 = realtime
    max_beats: Optional[int] = None

    def __post_init__(self):
        if self.stepping not in ("cooperative", "parallel"):
            raise ConfigurationError(f"stepping must be 'cooperative' or 'parallel', got {self.stepping!r}")
        if self.realtime_factor < 0:
            raise ConfigurationError("realtime_factor cannot be negative")
        if self.max_beats is not None:
            _require_int("max_beats", self.max_beats, 1)

    # --- derived quantities ---

    @property
    def beats_per_second(self) -> float:
        """A beat is the time needed to travel one foot."""
        return float(self.elevator.travel_speed)

    @property
    def beat_duration(self) -> float:
        return 1.0 / self.elevator.travel_speed

    @property
    def door_dwell_beats(self) -> int:
        return max(1, round(self.door.open_time * self.beats_per_second))

    @property
    def max_location(self) -> int:
        return (self.building.num_floors - 1) * self.building.floor_height

    # --- serialization ---

    @classmethod
    def from_dict(cls, data: dict) -> 'SimulationConfig':
        """Create SimulationConfig from dictionary"""
        if data is None:
            data = {}
        sim_data = data.get('simulation', data)

        building_data = sim_data.get('building', {})
        building = BuildingConfig(
            num_floors=building_data.get('num_floors', 30),
            floor_height=building_data.get('floor_height', 8)
        )

        elevator_data = sim_data.get('elevator', {})
        elevator = ElevatorConfig(
            num_cars=elevator_data.get('num_cars', 10),
            travel_speed=elevator_data.get('travel_speed', 3.0),
            max_riders=elevator_data.get('max_riders', 13),
            maintenance_trips=elevator_data.get('maintenance_trips', 100)
        )

        door_data = sim_data.get('door', {})
        door = DoorConfig(
            open_time=door_data.get('open_time', 5.0)
        )

        traffic_data = sim_data.get('traffic', {})
        traffic = TrafficConfig(
            num_riders=traffic_data.get('num_riders', 100),
            min_interval=traffic_data.get('min_interval', 3),
            max_interval=traffic_data.get('max_interval', 10)
        )

        dispatch_data = sim_data.get('dispatch', {})
        dispatch = DispatchConfig(
            strategy=dispatch_data.get('strategy', 'NearestIdleCar'),
            parameters=dispatch_data.get('parameters', {}),
            starved_call_beats=dispatch_data.get('starved_call_beats', 600)
        )

        return cls(
            building=building,
            elevator=elevator,
            door=door,
            traffic=traffic,
            dispatch=dispatch,
            stepping=sim_data.get('stepping', 'cooperative'),
            random_seed=sim_data.get('random_seed'),
            realtime_factor=sim_data.get('realtime_factor', 0.0),
            max_beats=sim_data.get('max_beats')
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization"""
        result = {
            'simulation': {
                'building': {
                    'num_floors': self.building.num_floors,
                    'floor_height': self.building.floor_height
                },
                'elevator': {
                    'num_cars': self.elevator.num_cars,
                    'travel_speed': self.elevator.travel_speed,
                    'max_riders': self.elevator.max_riders,
                    'maintenance_trips': self.elevator.maintenance_trips
                },
                'door': {
                    'open_time': self.door.open_time
                },
                'traffic': {
                    'num_riders': self.traffic.num_riders,
                    'min_interval': self.traffic.min_interval,
                    'max_interval': self.traffic.max_interval
                },
                'dispatch': {
                    'strategy': self.dispatch.strategy,
                    'parameters': self.dispatch.parameters,
                    'starved_call_beats': self.dispatch.starved_call_beats
                },
                'stepping': self.stepping,
                'realtime_factor': self.realtime_factor
            }
        }

        if self.random_seed is not None:
            result['simulation']['random_seed'] = self.random_seed
        if self.max_beats is not None:
            result['simulation']['max_beats'] = self.max_beats

        return result

    def validate(self):
        """Validate settings that depend on other packages"""
        from controller.dispatcher import STRATEGIES

        if self.dispatch.strategy not in STRATEGIES:
            raise ConfigurationError(
                f"Unknown dispatch.strategy: {self.dispatch.strategy} (known: {sorted(STRATEGIES)})")
