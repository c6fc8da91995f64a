from __future__ import annotations

import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

_TICK = timedelta(microseconds=1)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MonotonicClock:
    """UTC wall clock whose readings strictly increase within the process.

    If the source does not advance (coarse timer, clock step backwards),
    the previous reading plus one microsecond is returned instead.
    """

    def __init__(self, source: Optional[Callable[[], datetime]] = None):
        self._source = source or _utcnow
        self._last: Optional[datetime] = None
        self._lock = threading.Lock()

    def now(self) -> datetime:
        with self._lock:
            current = self._source()
            if current.tzinfo is None:
                current = current.replace(tzinfo=timezone.utc)
            if self._last is not None and current <= self._last:
                current = self._last + _TICK
            self._last = current
            return current
