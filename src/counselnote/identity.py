"""Identifier and timestamp helpers."""

from __future__ import annotations

import threading
import time
from datetime import datetime
from typing import Callable, Optional


class IdentityGenerator:
    """Issues unique, strictly increasing ids for students and sessions.

    Ids are millisecond clock readings. When the clock has not advanced since
    the last issue (or went backwards) the previous value is bumped by one, so
    ordering by id always matches issuance order within the process.
    """

    def __init__(self, clock: Optional[Callable[[], float]] = None) -> None:
        self._clock = clock or time.time
        self._last = 0
        self._lock = threading.Lock()

    def next(self) -> str:
        with self._lock:
            now = int(self._clock() * 1000)
            self._last = max(now, self._last + 1)
            return str(self._last)


def capture_timestamp(dt: datetime | None = None) -> str:
    now = dt or datetime.now()
    return now.strftime("%Y-%m-%d %H:%M:%S")
