"""Deadline-based countdown for a test session."""

from __future__ import annotations

import logging
import math
from datetime import datetime, timezone
from threading import Lock
from typing import Callable

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_duration(seconds: float) -> str:
    """Format seconds as ``H:MM:SS`` (or ``M:SS`` under an hour)."""
    total = max(0, int(math.ceil(seconds)))
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


class CountdownTimer:
    """Counts down to a fixed deadline.

    Remaining time is always recomputed from ``expires_at`` and the clock, so
    slow ticks, a suspended machine or a restart never accumulate error. The
    owner drives ``tick()`` (the Qt panel does so once per second); the first
    tick at or past the deadline fires ``on_expire`` and stops the timer.
    """

    def __init__(
        self,
        expires_at: datetime,
        on_expire: Callable[[], None] | None = None,
        *,
        total_seconds: float | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._expires_at = expires_at
        self._on_expire = on_expire
        self._total_seconds = total_seconds
        self._clock = clock
        self._lock = Lock()
        self._running = False
        self._expired = False

    @property
    def expires_at(self) -> datetime:
        return self._expires_at

    def remaining_seconds(self) -> float:
        return max(0.0, (self._expires_at - self._clock()).total_seconds())

    def fraction_remaining(self) -> float:
        if not self._total_seconds or self._total_seconds <= 0:
            return 0.0
        return max(0.0, min(1.0, self.remaining_seconds() / self._total_seconds))

    def start(self) -> None:
        with self._lock:
            if self._expired:
                return
            self._running = True

    def stop(self) -> None:
        """Stop visible ticking. The deadline itself is unaffected."""
        with self._lock:
            self._running = False

    def is_running(self) -> bool:
        return self._running

    def has_expired(self) -> bool:
        return self._expired

    def tick(self) -> float:
        """Recompute remaining time and fire expiry once when it reaches zero."""
        remaining = self.remaining_seconds()
        if remaining > 0:
            return remaining
        with self._lock:
            if self._expired or not self._running:
                return 0.0
            self._expired = True
            self._running = False
        logger.info("Deadline %s reached", self._expires_at.isoformat())
        if self._on_expire is not None:
            self._on_expire()
        return 0.0
