"""Clock sources for key generation and rate-limit windows."""

from abc import ABC, abstractmethod
from datetime import datetime, tzinfo


class Clock(ABC):
    """Abstract source of the current time in a fixed reference zone."""

    @abstractmethod
    def now(self) -> datetime:
        """Return the current timezone-aware timestamp."""
        pass

    def today(self) -> str:
        """Return the current calendar day as ``YYYY-MM-DD``."""
        return self.now().date().isoformat()


class SystemClock(Clock):
    """Wall clock pinned to a reference timezone."""

    def __init__(self, tz: tzinfo):
        self.tz = tz

    def now(self) -> datetime:
        return datetime.now(self.tz)
