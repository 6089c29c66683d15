"""
Simulator error types

ConfigurationError is raised before the simulation starts.
InvariantViolation signals a defect in the car/floor logic and always
aborts the run.
"""

from typing import Optional


class ConfigurationError(ValueError):
    """Invalid physical or capacity parameter."""


class InvariantViolation(RuntimeError):
    """
    A car or floor reached a state the scheduler must never produce.

    Attributes:
        car: Name of the offending car (None for floor-level violations)
        state: Car state at the time of the violation
        stage: Dock stage at the time of the violation
        beat: Beat in which the violation was detected
        detail: Human-readable description
    """

    def __init__(self, detail: str, car: Optional[str] = None, state=None,
                 stage=None, beat: Optional[int] = None):
        self.detail = detail
        self.car = car
        self.state = state
        self.stage = stage
        self.beat = beat
        super().__init__(self._format())

    def _format(self) -> str:
        context = []
        if self.car is not None:
            context.append(f"car={self.car}")
        if self.state is not None:
            context.append(f"state={getattr(self.state, 'value', self.state)}")
        if self.stage is not None:
            context.append(f"stage={getattr(self.stage, 'value', self.stage)}")
        if self.beat is not None:
            context.append(f"beat={self.beat}")
        if not context:
            return self.detail
        return f"{self.detail} ({', '.join(context)})"
