"""Mini README: Session lifecycle package.

``timer`` tracks inactivity, ``guard`` enforces authentication and idle
sign-out, and ``context`` centralises per-browser state behind a manager.
"""

from .context import SessionContext, SessionManager
from .guard import ACTIVITY_EVENTS, SessionGuard
from .timer import InactivityTimer

__all__ = [
    "ACTIVITY_EVENTS",
    "InactivityTimer",
    "SessionContext",
    "SessionGuard",
    "SessionManager",
]
