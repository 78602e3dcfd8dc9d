"""
Core Module - Clock.

============================================================
RESPONSIBILITY
============================================================
Provides the time source used by caches, generators and the
refresh loop.

- Cache freshness is always measured against an injected clock
- Tests swap in MockClock to step through TTL windows
- UTC only

============================================================
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Optional
import threading
import time


# ============================================================
# CLOCK PROTOCOL
# ============================================================

class ClockProtocol(ABC):
    """Abstract interface for the system clock."""

    @abstractmethod
    def now(self) -> datetime:
        """Get current UTC datetime."""
        pass

    @abstractmethod
    def timestamp(self) -> float:
        """Get current Unix timestamp in seconds."""
        pass

    def timestamp_ms(self) -> int:
        """Get current Unix timestamp in milliseconds."""
        return int(self.timestamp() * 1000)


# ============================================================
# SYSTEM CLOCK (PRODUCTION)
# ============================================================

class SystemClock(ClockProtocol):
    """Production clock using actual system time."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def timestamp(self) -> float:
        return time.time()


# ============================================================
# MOCK CLOCK (TESTING)
# ============================================================

class MockClock(ClockProtocol):
    """
    Mock clock for testing.

    Time only moves when advance() or set_time() is called.
    """

    def __init__(self, initial_time: Optional[datetime] = None):
        self._time = initial_time if initial_time is not None else datetime(2024, 1, 1, tzinfo=timezone.utc)
        if self._time.tzinfo is None:
            self._time = self._time.replace(tzinfo=timezone.utc)
        self._lock = threading.Lock()

    def now(self) -> datetime:
        with self._lock:
            return self._time

    def timestamp(self) -> float:
        with self._lock:
            return self._time.timestamp()

    def set_time(self, new_time: datetime) -> None:
        """Set the current time."""
        with self._lock:
            if new_time.tzinfo is None:
                new_time = new_time.replace(tzinfo=timezone.utc)
            self._time = new_time

    def advance(self, seconds: float = 0, **kwargs) -> None:
        """
        Advance time by the specified amount.

        Args:
            seconds: Number of seconds to advance
            **kwargs: Passed to timedelta (minutes, hours, ...)
        """
        with self._lock:
            self._time = self._time + timedelta(seconds=seconds, **kwargs)


# ============================================================
# DEFAULT CLOCK
# ============================================================

_default_clock: Optional[ClockProtocol] = None


def get_clock() -> ClockProtocol:
    """Get the process-wide clock (SystemClock unless overridden)."""
    global _default_clock
    if _default_clock is None:
        _default_clock = SystemClock()
    return _default_clock


def set_clock(clock: ClockProtocol) -> None:
    """Override the process-wide clock."""
    global _default_clock
    _default_clock = clock
