"""
Nearest Idle Car Strategy

Distance-based allocation restricted to idle cars.
"""

from typing import Any, Dict, Optional

from ..interfaces.allocation_strategy import IAllocationStrategy


class NearestIdleCarStrategy(IAllocationStrategy):
    """
    Nearest idle car allocation strategy

    Selection Logic:
    - Only cars in the IDLE state are candidates
    - Score is the absolute floor distance to the calling floor
    - Ties go to the lowest car id, so runs with the same seed are reproducible
    - No idle car: the call stays pending for the next scan

    Usage:
        strategy = NearestIdleCarStrategy()
        car_id = strategy.select_car(call_data, car_statuses)
    """

    def __init__(self, verbose: bool = False):
        """
        Args:
            verbose: Print the score of every candidate car
        """
        self.verbose = verbose

    def select_car(
        self,
        call_data: Dict[str, Any],
        car_statuses: Dict[int, Dict[str, Any]]
    ) -> Optional[int]:
        call_floor = call_data['floor']

        best_car = None
        best_score = None

        for car_id in sorted(car_statuses):
            status = car_statuses[car_id]
            if status.get('state') != 'IDLE':
                continue

            distance = abs(status['floor'] - call_floor)
            if self.verbose:
                print(f"[Dispatch] Car_{car_id}: Floor={status['floor']}, Distance={distance}")

            # Strictly smaller only: the first (lowest id) car wins a tie
            if best_score is None or distance < best_score:
                best_score = distance
                best_car = car_id

        return best_car

    def get_strategy_name(self) -> str:
        return "Nearest Idle Car (Floor Distance, Lowest Id Tie-break)"
