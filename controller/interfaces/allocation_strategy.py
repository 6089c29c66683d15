"""
Allocation Strategy Interface

Defines how a car is selected for a pending hall call.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional


class IAllocationStrategy(ABC):
    """
    Interface for car allocation strategies

    The dispatcher calls select_car() once for every pending call flag it
    finds during a scan. Strategies only see status dictionaries, never the
    car objects, so they cannot mutate car state.
    """

    @abstractmethod
    def select_car(
        self,
        call_data: Dict[str, Any],
        car_statuses: Dict[int, Dict[str, Any]]
    ) -> Optional[int]:
        """
        Select a car for a hall call

        Args:
            call_data: Hall call information
                {
                    'floor': int,        # Calling floor
                    'direction': str,    # 'UP' or 'DOWN'
                    'beat': int          # Beat of the scan
                }

            car_statuses: Status of every car, keyed by car id (see Carriage.status())
                {
                    1: {
                        'state': str,          # 'IDLE', 'TRANSIT', ...
                        'floor': int,          # Current floor
                        'location': int,       # Feet from the bottom of the shaft
                        'onboard_count': int,
                        'max_riders': int,
                        ...
                    },
                    ...
                }

        Returns:
            Id of the selected car, or None to leave the call pending
        """

    @abstractmethod
    def get_strategy_name(self) -> str:
        """
        Get the name of this strategy (for logging)
        """
