"""Consensus timer bound to a block height and view."""

from __future__ import annotations

import time
from datetime import datetime, timedelta, timezone
from typing import Optional, Union

Delay = Union[float, int, timedelta]


def _seconds(delay: Delay) -> float:
    if isinstance(delay, timedelta):
        return delay.total_seconds()
    return float(delay)


class Timer:
    """A one-shot timer that is checked with ``poll`` or ``wait``.

    A reset with zero delay makes a value available at once.
    """

    def __init__(self) -> None:
        self._height = 0
        self._view = 0
        self._start = time.monotonic()
        self._duration = 0.0
        self._deadline: Optional[float] = None
        self._delivered = False
        self._pending: Optional[datetime] = None

    @property
    def height(self) -> int:
        """Height the timer was last reset to."""
        return self._height

    @property
    def view(self) -> int:
        """View the timer was last reset to."""
        return self._view

    def _arm(self, remaining: float) -> None:
        self._deadline = time.monotonic() + remaining
        self._delivered = False

    def reset(self, height: int, view: int, delay: Delay) -> None:
        """Restart the timer for ``height`` and ``view`` to fire after ``delay``."""
        self.stop()
        fired_at = self.now()
        self._start = time.monotonic()
        self._duration = _seconds(delay)
        self._height = height
        self._view = view

        if self._duration:
            self._arm(self._duration)
        else:
            self._pending = fired_at

    def stop(self) -> None:
        """Cancel the running timer."""
        self._deadline = None

    def sleep(self, delay: Delay) -> None:
        """Block for ``delay``."""
        time.sleep(_seconds(delay))

    def extend(self, delay: Delay) -> None:
        """Lengthen the current period by ``delay``."""
        self._duration += _seconds(delay)
        elapsed = time.monotonic() - self._start
        if self._duration > elapsed:
            self.stop()
            self._arm(self._duration - elapsed)

    def now(self) -> datetime:
        """Return the current time."""
        return datetime.now(timezone.utc)

    def poll(self) -> Optional[datetime]:
        """Return the firing time once if the timer has fired, else None."""
        if self._deadline is None:
            fired, self._pending = self._pending, None
            return fired
        if not self._delivered and time.monotonic() >= self._deadline:
            self._delivered = True
            return self.now()
        return None

    def wait(self, timeout: Optional[Delay] = None) -> Optional[datetime]:
        """Block until the timer fires or ``timeout`` passes.

        Returns None at once when nothing is scheduled to fire.
        """
        limit = None if timeout is None else time.monotonic() + _seconds(timeout)
        while True:
            fired = self.poll()
            if fired is not None:
                return fired
            if self._deadline is None or self._delivered:
                return None
            now = time.monotonic()
            if limit is not None and now >= limit:
                return None
            target = self._deadline if limit is None else min(self._deadline, limit)
            time.sleep(max(0.0, target - now))