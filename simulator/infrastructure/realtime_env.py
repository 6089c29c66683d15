"""
A SimPy environment that paces simulated beats against the wall clock.

Beats are processed as fast as possible unless a positive speed factor is
given; then each simulated second takes 1 / speed_factor real seconds,
which is handy when following the console output of a run by eye.
"""

import simpy
import time


class RealtimeEnvironment(simpy.Environment):
    """
    SimPy environment with optional real-time synchronization.

    Args:
        speed_factor (float): Speed multiplier
            - 1.0 = real-time (1 sim second = 1 real second)
            - 2.0 = double speed
            - 0.0 = no delay (plain SimPy behavior)
    """

    def __init__(self, speed_factor=1.0, initial_time=0):
        super().__init__(initial_time=initial_time)
        if speed_factor < 0:
            raise ValueError("speed_factor cannot be negative")
        self.speed_factor = speed_factor
        self.real_start_time = time.monotonic()
        self.sim_start_time = self.now

    def step(self):
        """
        Process the next event, then sleep until the wall clock catches up
        with the simulated clock.
        """
        result = super().step()

        if self.speed_factor > 0:
            sim_elapsed = self.now - self.sim_start_time
            target_real_time = self.real_start_time + (sim_elapsed / self.speed_factor)
            sleep_time = target_real_time - time.monotonic()
            if sleep_time > 0:
                time.sleep(sleep_time)

        return result

    def set_speed(self, speed_factor):
        """Change the speed factor mid-run (timing references restart)."""
        if speed_factor < 0:
            raise ValueError("speed_factor cannot be negative")
        self.speed_factor = speed_factor
        self.real_start_time = time.monotonic()
        self.sim_start_time = self.now

    def get_speed(self):
        return self.speed_factor
