"""Mini README: Authentication collaborator package.

Re-exports the ``AuthProvider`` contract, the ``Principal`` identity and the
in-memory implementation used by the web application and tests.
"""

from .base import AuthProvider, Principal
from .memory import InMemoryAuthProvider, UserDirectory

__all__ = ["AuthProvider", "InMemoryAuthProvider", "Principal", "UserDirectory"]
