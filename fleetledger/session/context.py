"""Mini README: Centralised per-browser session state.

Structure:
    * SessionContext - auth client, guard, principal and work ID for one
      browser session, with explicit ``open``/``close``.
    * SessionManager - issues session tokens on sign-in and resolves them on
      every request.

Routes receive a ``SessionContext`` through a FastAPI dependency instead of
re-subscribing to auth state themselves. The manager drops a context as soon
as its guard reports a redirect or its idle timer fires, so an expired
token never comes back and idle clients that never return leave nothing
behind.
"""

from __future__ import annotations

import functools
import secrets
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional

from ..auth import AuthProvider, Principal
from ..errors import SessionRedirect
from ..logging_utils import get_logger
from ..store import RecordStore
from ..store.paths import user_path
from .guard import SessionGuard

LOGGER = get_logger(__name__)


@dataclass
class SessionContext:
    """State shared by every request made with one session token."""

    token: str
    auth: AuthProvider
    guard: SessionGuard
    work_id: Optional[str] = None
    opened_at: float = field(default_factory=time.time)

    @property
    def principal(self) -> Optional[Principal]:
        return self.guard.principal

    async def open(self, store: RecordStore) -> None:
        """Start the guard, arm the idle timer and load the stored work ID."""

        self.guard.start()
        principal = self.guard.require_principal()
        self.guard.arm()
        user_record = await store.read(user_path(principal.uid))
        if isinstance(user_record, dict):
            self.work_id = user_record.get("workId")
        LOGGER.info("Session opened for %s", principal.uid)

    async def close(self) -> None:
        await self.guard.stop()
        LOGGER.debug("Session %s... closed", self.token[:6])

    def describe(self) -> Dict[str, object]:
        principal = self.guard.require_principal()
        return {
            "principal": principal.as_dict(),
            "work_id": self.work_id,
            "seconds_remaining": round(self.guard.timer.remaining(), 1),
            "idle_warning": self.guard.timer.warning_due(),
        }


class SessionManager:
    """Create, resolve and close session contexts."""

    def __init__(
        self,
        store: RecordStore,
        auth_factory: Callable[[], AuthProvider],
        *,
        timeout_seconds: float,
        warning_seconds: float = 0.0,
        login_route: str = "/login",
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.store = store
        self.auth_factory = auth_factory
        self.timeout_seconds = timeout_seconds
        self.warning_seconds = warning_seconds
        self.login_route = login_route
        self._clock = clock
        self._sessions: Dict[str, SessionContext] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def new_auth(self) -> AuthProvider:
        return self.auth_factory()

    async def adopt(self, auth: AuthProvider) -> SessionContext:
        """Open a session around an auth client that already has a current user."""

        token = secrets.token_urlsafe(32)
        guard = SessionGuard(
            auth,
            timeout_seconds=self.timeout_seconds,
            warning_seconds=self.warning_seconds,
            login_route=self.login_route,
            clock=self._clock,
            on_expired=functools.partial(self.close, token),
        )
        context = SessionContext(token=token, auth=auth, guard=guard)
        # Registered before opening so an expiry firing mid-open still finds it.
        self._sessions[token] = context
        try:
            await context.open(self.store)
        except Exception:
            await self.close(token)
            raise
        return context

    async def sign_in(self, email: str, password: str) -> SessionContext:
        auth = self.new_auth()
        await auth.sign_in(email, password)
        return await self.adopt(auth)

    def get(self, token: Optional[str]) -> Optional[SessionContext]:
        if not token:
            return None
        return self._sessions.get(token)

    async def require(self, token: Optional[str]) -> SessionContext:
        """Resolve a token to a live session or raise ``SessionRedirect``."""

        context = self.get(token)
        if context is None:
            raise SessionRedirect(self.login_route)
        try:
            await context.guard.enforce()
        except SessionRedirect:
            await self.close(context.token)
            raise
        return context

    async def sign_out(self, token: Optional[str]) -> None:
        context = self.get(token)
        if context is None:
            return
        try:
            await context.auth.sign_out()
        finally:
            await self.close(context.token)

    async def close(self, token: str) -> None:
        context = self._sessions.pop(token, None)
        if context is not None:
            await context.close()

    async def close_all(self) -> None:
        for token in list(self._sessions):
            await self.close(token)
