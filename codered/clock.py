"""
Clock used by the services for every timestamp they stamp.

Services take any zero-argument callable returning an aware datetime,
so tests can pass a FrozenClock and advance it explicitly.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class FrozenClock:
    """Clock that only moves when told to"""

    def __init__(self, start: datetime = None):
        self.current = start or datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> datetime:
        self.current = self.current + timedelta(**kwargs)
        return self.current
