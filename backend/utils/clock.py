"""
Injectable clock.

Services take a Clock in their constructor instead of calling
``datetime.now()`` or ``date.today()`` so that expiry checks, age checks and
record timestamps can be pinned in tests.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta

import pytz

import config


class Clock(ABC):
    """Source of the current business time."""

    @abstractmethod
    def now(self) -> datetime:
        """Current timezone-aware datetime."""
        ...

    def today(self) -> date:
        """Current business date."""
        return self.now().date()


class SystemClock(Clock):
    """Wall-clock time in the configured business timezone."""

    def __init__(self, tz_name: str = None):
        self.tz = pytz.timezone(tz_name or config.APP_TIMEZONE)

    def now(self) -> datetime:
        return datetime.now(self.tz)


class FixedClock(Clock):
    """Clock frozen at a given moment until moved explicitly."""

    def __init__(self, moment: datetime, tz_name: str = None):
        self.tz = pytz.timezone(tz_name or config.APP_TIMEZONE)
        self._moment = self._localize(moment)

    def _localize(self, moment: datetime) -> datetime:
        if moment.tzinfo is None:
            return self.tz.localize(moment)
        return moment

    def now(self) -> datetime:
        return self._moment

    def set_time(self, moment: datetime) -> None:
        self._moment = self._localize(moment)

    def advance(self, days: int = 0, seconds: int = 0) -> None:
        self._moment = self._moment + timedelta(days=days, seconds=seconds)
