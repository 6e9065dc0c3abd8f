"""Mini README: Inactivity timer used by the session guard.

Structure:
    * InactivityTimer - deadline tracker with an optional asyncio timer handle.

The deadline is evaluated against an injectable clock so request handlers
can check expiry lazily, while ``arm`` schedules a callback on the running
event loop for proactive sign-out. Both views agree because the callback
re-checks the clock before firing.
"""

from __future__ import annotations

import asyncio
import time
from typing import Callable, Optional

from ..logging_utils import get_logger

LOGGER = get_logger(__name__)


class InactivityTimer:
    """Track the time left before an idle session expires."""

    def __init__(
        self,
        timeout_seconds: float,
        *,
        warning_seconds: float = 0.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if timeout_seconds <= 0:
            raise ValueError("Inactivity timeout must be positive.")
        self.timeout_seconds = float(timeout_seconds)
        self.warning_seconds = min(float(warning_seconds), self.timeout_seconds)
        self._clock = clock
        self._deadline = clock() + self.timeout_seconds
        self._handle: Optional[asyncio.TimerHandle] = None
        self._on_expiry: Optional[Callable[[], None]] = None

    def touch(self) -> None:
        """Reset the deadline to the full timeout."""

        self._deadline = self._clock() + self.timeout_seconds
        if self._on_expiry is not None:
            self._schedule()

    def remaining(self) -> float:
        return max(0.0, self._deadline - self._clock())

    def expired(self) -> bool:
        return self.remaining() <= 0.0

    def warning_due(self) -> bool:
        """Return True inside the warning window that precedes expiry."""

        return not self.expired() and self.remaining() <= self.warning_seconds

    def arm(self, on_expiry: Callable[[], None]) -> None:
        """Call ``on_expiry`` once the deadline passes without activity."""

        self._on_expiry = on_expiry
        self._schedule()

    def _schedule(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self.remaining(), self._fire)

    def _fire(self) -> None:
        self._handle = None
        if self._on_expiry is None:
            return
        if not self.expired():
            self._schedule()
            return
        callback, self._on_expiry = self._on_expiry, None
        LOGGER.debug("Inactivity deadline reached")
        callback()

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._on_expiry = None
