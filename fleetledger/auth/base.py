"""Mini README: Authentication collaborator contract.

Structure:
    * Principal - the signed-in user as exposed to views.
    * AuthProvider - abstract client of the hosted authentication service.

One provider instance represents one browser's view of the auth service: it
has at most one current user and notifies listeners whenever that changes.
The session guard depends only on ``on_auth_state_changed`` and ``sign_out``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Dict, Optional

AuthStateCallback = Callable[[Optional["Principal"]], None]


@dataclass(slots=True, frozen=True)
class Principal:
    """Authenticated user identity."""

    uid: str
    email: str
    display_name: Optional[str] = None
    photo_url: Optional[str] = None

    def as_dict(self) -> Dict[str, Optional[str]]:
        return {
            "uid": self.uid,
            "email": self.email,
            "display_name": self.display_name,
            "photo_url": self.photo_url,
        }


class AuthProvider(ABC):
    """Client interface to the authentication service."""

    @property
    @abstractmethod
    def current_user(self) -> Optional[Principal]:
        """Return the signed-in principal, if any."""

    @abstractmethod
    async def sign_in(self, email: str, password: str) -> Principal:
        """Authenticate with email and password."""

    @abstractmethod
    async def sign_out(self) -> None:
        """Clear the current user."""

    @abstractmethod
    def on_auth_state_changed(self, callback: AuthStateCallback) -> Callable[[], None]:
        """Register a listener, call it with the current user, return an unsubscribe."""

    @abstractmethod
    async def send_password_reset_email(self, email: str) -> None:
        """Ask the service to email a password reset link."""

    @abstractmethod
    async def create_user(self, email: str, password: str) -> Principal:
        """Register a new account and sign it in."""

    @abstractmethod
    async def update_profile(
        self, *, display_name: Optional[str] = None, photo_url: Optional[str] = None
    ) -> Principal:
        """Change profile fields of the current user."""
