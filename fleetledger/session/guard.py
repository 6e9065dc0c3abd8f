"""Mini README: Session guard enforcing authentication and idle sign-out.

Structure:
    * ACTIVITY_EVENTS - browser events that count as user activity.
    * SessionGuard - watches auth state, exposes the principal and signs the
      session out once the inactivity timer expires.

Any route that renders data goes through ``enforce``: it raises
``SessionRedirect`` pointing at the login route when nobody is signed in or
the session idled out. A failed sign-out is logged and otherwise ignored.
"""

from __future__ import annotations

import asyncio
import time
from typing import Awaitable, Callable, Optional

from ..auth import AuthProvider, Principal
from ..errors import SessionRedirect
from ..logging_utils import get_logger
from .timer import InactivityTimer

LOGGER = get_logger(__name__)

ACTIVITY_EVENTS = frozenset({"pointermove", "mousemove", "keypress", "keydown"})


class SessionGuard:
    """Gate access on an authenticated, recently active principal."""

    def __init__(
        self,
        auth: AuthProvider,
        *,
        timeout_seconds: float,
        warning_seconds: float = 0.0,
        login_route: str = "/login",
        clock: Callable[[], float] = time.monotonic,
        on_expired: Optional[Callable[[], Awaitable[None]]] = None,
    ) -> None:
        self.auth = auth
        self.on_expired = on_expired
        self.login_route = login_route
        self.timer = InactivityTimer(
            timeout_seconds, warning_seconds=warning_seconds, clock=clock
        )
        self._principal: Optional[Principal] = None
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._expiry_task: Optional[asyncio.Task] = None
        self.expired = False

    @property
    def principal(self) -> Optional[Principal]:
        return self._principal

    def start(self) -> None:
        """Subscribe to authentication state changes."""

        if self._unsubscribe is None:
            self._unsubscribe = self.auth.on_auth_state_changed(self._handle_auth_state)

    def _handle_auth_state(self, principal: Optional[Principal]) -> None:
        self._principal = principal
        if principal is None:
            LOGGER.debug("No authenticated principal; redirect target %s", self.login_route)
        else:
            LOGGER.debug("Principal %s is signed in", principal.uid)

    def require_principal(self) -> Principal:
        """Return the signed-in principal or raise a redirect to login."""

        if self._principal is None:
            raise SessionRedirect(self.login_route)
        return self._principal

    def record_activity(self, event: str) -> bool:
        """Reset the idle timer for qualifying events; return whether it was reset."""

        if event.lower() not in ACTIVITY_EVENTS:
            return False
        if self.expired:
            return False
        self.timer.touch()
        return True

    def arm(self) -> None:
        """Schedule proactive sign-out on the running event loop."""

        self.timer.arm(self._on_timer_expired)

    def _on_timer_expired(self) -> None:
        self._expiry_task = asyncio.ensure_future(self._expire_from_timer())

    async def _expire_from_timer(self) -> None:
        await self.expire()
        if self.on_expired is not None:
            await self.on_expired()

    async def expire(self) -> None:
        """Sign the principal out because the session idled out."""

        if self.expired:
            return
        self.expired = True
        self.timer.cancel()
        LOGGER.info("Session idle for %.0f seconds; signing out", self.timer.timeout_seconds)
        try:
            await self.auth.sign_out()
        except Exception as error:
            LOGGER.error("Error during sign out: %s", error)

    async def enforce(self) -> Principal:
        """Expire idle sessions, then require an authenticated principal."""

        if self.expired or self.timer.expired():
            await self.expire()
            raise SessionRedirect(self.login_route, "Session expired due to inactivity.")
        return self.require_principal()

    async def stop(self) -> None:
        """Unsubscribe from auth state, tear down timers and finish a pending expiry."""

        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self.timer.cancel()
        task, self._expiry_task = self._expiry_task, None
        if task is not None and task is not asyncio.current_task():
            await task
