# SPDX-License-Identifier: Apache-2.0

"""
Clock abstraction so lifecycle operations never read the system time directly.
"""

from datetime import date, datetime, timedelta, timezone
from typing import Protocol, runtime_checkable


@runtime_checkable
class Clock(Protocol):
    """Source of the current time."""
    
    def now(self) -> datetime: ...
    
    def today(self) -> date: ...


class SystemClock:
    """Clock backed by the system time in UTC."""
    
    def now(self) -> datetime:
        return datetime.now(timezone.utc)
    
    def today(self) -> date:
        return self.now().date()


class FixedClock:
    """Clock frozen at a given instant, advanced manually."""
    
    def __init__(self, instant: datetime):
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=timezone.utc)
        self._instant = instant
    
    @classmethod
    def on(cls, day: date, hour: int = 9) -> "FixedClock":
        """Clock fixed at the given hour of a day."""
        return cls(datetime(day.year, day.month, day.day, hour, tzinfo=timezone.utc))
    
    def now(self) -> datetime:
        return self._instant
    
    def today(self) -> date:
        return self._instant.date()
    
    def advance(self, days: int = 0, **kwargs) -> None:
        """Move the clock forward."""
        self._instant = self._instant + timedelta(days=days, **kwargs)
