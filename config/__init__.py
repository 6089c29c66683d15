"""
Configuration management package

Provides the simulation configuration classes and their YAML loader.
"""

from .simulation import (
    SimulationConfig,
    BuildingConfig,
    ElevatorConfig,
    DoorConfig,
    TrafficConfig,
    DispatchConfig
)

from .config_loader import (
    ConfigLoader,
    load_simulation_config,
    save_simulation_config
)

__all__ = [
    'SimulationConfig',
    'BuildingConfig',
    'ElevatorConfig',
    'DoorConfig',
    'TrafficConfig',
    'DispatchConfig',

    'ConfigLoader',
    'load_simulation_config',
    'save_simulation_config',
]
