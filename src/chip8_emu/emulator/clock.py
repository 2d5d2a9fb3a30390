"""
Clock/Scheduler
===============

Converts irregular host frame times into whole interpreter steps and
whole 60 Hz timer events.

A render loop rarely calls back at exactly the same interval, so the
clock keeps two fractional remainders:

- steps: elapsed_ms * frequency / 1000 accumulated, one step emitted per
  whole unit
- timer: elapsed_ms accumulated, one timer event emitted per full
  1000/60 ms period

Fractions carry into the next call, so the long-run rates match the
configured instruction frequency and a constant 60 Hz regardless of how
time is sliced.

Example:
    >>> clock = Clock(frequency=600)
    >>> clock.advance(16.667)
    ClockTicks(steps=10, timer_events=1)

Copyright (c) 2025 Hugo José Pinto & Contributors
"""

from dataclasses import dataclass

DEFAULT_FREQUENCY = 600
TIMER_FREQUENCY = 60
TIMER_PERIOD_MS = 1000.0 / TIMER_FREQUENCY


@dataclass(frozen=True)
class ClockTicks:
    """Work owed for one advance() call."""
    steps: int
    timer_events: int


class Clock:
    """
    Fractional-rate scheduler.

    Attributes:
        frequency: Instruction rate in steps per second
    """

    def __init__(self, frequency: float = DEFAULT_FREQUENCY):
        self.frequency = frequency
        self._step_remainder = 0.0
        self._timer_remainder = 0.0

    @property
    def frequency(self) -> float:
        return self._frequency

    @frequency.setter
    def frequency(self, value: float) -> None:
        if value <= 0:
            raise ValueError(f"Frequency must be positive, got {value}")
        self._frequency = value

    @property
    def step_remainder(self) -> float:
        """Fraction of a step carried into the next advance()."""
        return self._step_remainder

    @property
    def timer_remainder(self) -> float:
        """Milliseconds carried toward the next timer event."""
        return self._timer_remainder

    def reset(self) -> None:
        """Drop both carried remainders."""
        self._step_remainder = 0.0
        self._timer_remainder = 0.0

    def advance(self, elapsed_ms: float) -> ClockTicks:
        """
        Account for elapsed host time.

        Args:
            elapsed_ms: Milliseconds since the previous call

        Returns:
            Number of steps and timer events to run now

        Raises:
            ValueError: If elapsed_ms is negative
        """
        if elapsed_ms < 0:
            raise ValueError(f"Elapsed time cannot be negative, got {elapsed_ms}")

        self._step_remainder += elapsed_ms * self._frequency / 1000.0
        steps = 0
        while self._step_remainder >= 1.0:
            steps += 1
            self._step_remainder -= 1.0

        self._timer_remainder += elapsed_ms
        timer_events = 0
        while self._timer_remainder >= TIMER_PERIOD_MS:
            timer_events += 1
            self._timer_remainder -= TIMER_PERIOD_MS

        return ClockTicks(steps, timer_events)

    def __repr__(self) -> str:
        return f"Clock(frequency={self._frequency})"
