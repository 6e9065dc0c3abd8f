"""Mini README: In-memory authentication service.

Structure:
    * UserDirectory - shared account table with werkzeug password hashes and an
      outbox of password reset requests.
    * InMemoryAuthProvider - per-browser ``AuthProvider`` backed by a directory.

The directory stands in for the hosted service; every session gets its own
provider so one user signing out never affects another session.
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass, replace
from typing import Callable, Dict, List, Optional

from werkzeug.security import check_password_hash, generate_password_hash

from ..errors import AuthenticationError, RemoteOperationError
from ..logging_utils import get_logger
from .base import AuthProvider, AuthStateCallback, Principal

LOGGER = get_logger(__name__)


@dataclass(slots=True)
class _Account:
    principal: Principal
    password_hash: str


class UserDirectory:
    """Account table shared by every provider instance."""

    def __init__(self) -> None:
        self._accounts: Dict[str, _Account] = {}
        self.password_resets: List[str] = []

    @staticmethod
    def _normalise(email: str) -> str:
        return email.strip().lower()

    def register(self, email: str, password: str) -> Principal:
        key = self._normalise(email)
        if not key or "@" not in key:
            raise AuthenticationError("The email address is badly formatted.")
        if len(password) < 6:
            raise AuthenticationError("Password should be at least 6 characters.")
        if key in self._accounts:
            raise AuthenticationError("The email address is already in use by another account.")
        principal = Principal(uid=secrets.token_hex(14), email=email.strip())
        self._accounts[key] = _Account(principal, generate_password_hash(password))
        LOGGER.info("Registered account %s", principal.uid)
        return principal

    def verify(self, email: str, password: str) -> Principal:
        account = self._accounts.get(self._normalise(email))
        if account is None or not check_password_hash(account.password_hash, password):
            raise AuthenticationError("Failed to sign in. Please check your email and password.")
        return account.principal

    def update(self, uid: str, **fields: Optional[str]) -> Principal:
        for account in self._accounts.values():
            if account.principal.uid == uid:
                changes = {key: value for key, value in fields.items() if value is not None}
                account.principal = replace(account.principal, **changes)
                return account.principal
        raise RemoteOperationError(f"No account with uid {uid}")

    def request_reset(self, email: str) -> None:
        if self._normalise(email) not in self._accounts:
            raise AuthenticationError("There is no user record corresponding to this identifier.")
        self.password_resets.append(email.strip())
        LOGGER.info("Password reset requested for %s", email)


class InMemoryAuthProvider(AuthProvider):
    """Auth client with a single current user and change listeners."""

    def __init__(self, directory: UserDirectory) -> None:
        self._directory = directory
        self._current: Optional[Principal] = None
        self._listeners: Dict[int, AuthStateCallback] = {}
        self._listener_sequence = 0

    @property
    def current_user(self) -> Optional[Principal]:
        return self._current

    def _set_current(self, principal: Optional[Principal]) -> None:
        self._current = principal
        for callback in list(self._listeners.values()):
            callback(principal)

    async def sign_in(self, email: str, password: str) -> Principal:
        principal = self._directory.verify(email, password)
        self._set_current(principal)
        return principal

    async def sign_out(self) -> None:
        self._set_current(None)

    def on_auth_state_changed(self, callback: AuthStateCallback) -> Callable[[], None]:
        self._listener_sequence += 1
        listener_id = self._listener_sequence
        self._listeners[listener_id] = callback
        callback(self._current)

        def unsubscribe() -> None:
            self._listeners.pop(listener_id, None)

        return unsubscribe

    async def send_password_reset_email(self, email: str) -> None:
        self._directory.request_reset(email)

    async def create_user(self, email: str, password: str) -> Principal:
        principal = self._directory.register(email, password)
        self._set_current(principal)
        return principal

    async def update_profile(
        self, *, display_name: Optional[str] = None, photo_url: Optional[str] = None
    ) -> Principal:
        if self._current is None:
            raise AuthenticationError("No user is signed in.")
        principal = self._directory.update(
            self._current.uid, display_name=display_name, photo_url=photo_url
        )
        self._set_current(principal)
        return principal
