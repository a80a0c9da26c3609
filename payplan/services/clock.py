"""
Clock collaborator.

The engine never reads the wall clock. The planner asks a Clock for
"today" once per operation and passes it down.
"""

from abc import ABC, abstractmethod
from datetime import date


class Clock(ABC):
    """Source of the reference date."""

    @abstractmethod
    def today(self) -> date:
        pass


class SystemClock(Clock):
    """The local calendar date."""

    def today(self) -> date:
        return date.today()


class FixedClock(Clock):
    """Always returns the same date. Use in tests."""

    def __init__(self, fixed: date):
        self._fixed = fixed

    def today(self) -> date:
        return self._fixed

    def set(self, fixed: date) -> None:
        self._fixed = fixed
