import simpy
from abc import ABC, abstractmethod
from typing import Optional


class Entity(ABC):
    """
    Abstract base class for stateful actors in the SimPy simulation.

    Unlike a free-running process, an entity is driven by the beat clock:
    the clock either calls step() directly (cooperative stepping) or the
    entity runs its own actor process via start() and waits for the
    clock's beat signal (parallel stepping).
    """

    def __init__(self, env: simpy.Environment, name: str):
        """
        Initialize the entity.

        Args:
            env: The SimPy simulation environment this entity belongs to.
            name: Entity name used in log lines.
        """
        self.env = env
        self.name: str = name

        # Concrete classes assign their own enum members here
        self.state = None
        self._process: Optional[simpy.Process] = None

    @abstractmethod
    def run(self):
        """
        Generator body of the entity's actor process (parallel stepping only).

        Example:
            while True:
                beat = yield clock.beat_signal()
                self.step(beat)
                clock.step_complete(self)
        """

    @abstractmethod
    def step(self, beat: int):
        """Advance the entity by exactly one beat."""

    def start(self) -> simpy.Process:
        """Start the actor process for this entity."""
        if self._process is None:
            self._process = self.env.process(self.run())
        return self._process

    def set_state(self, new_state):
        """
        Transition the entity's state.

        Args:
            new_state: Target state (a member of the concrete class's state enum)
        """
        if self.state != new_state:
            old_state = self.state
            self.state = new_state
            self._on_state_changed(old_state, new_state)

    def _on_state_changed(self, old_state, new_state):
        """Hook called after every state change; logs the transition."""
        old_label = getattr(old_state, "value", old_state)
        new_label = getattr(new_state, "value", new_state)
        print(f"{self.env.now:.2f} [{self.name}] State: {old_label} -> {new_label}")

    @property
    def process(self) -> Optional[simpy.Process]:
        """The actor process, if start() has been called."""
        return self._process
