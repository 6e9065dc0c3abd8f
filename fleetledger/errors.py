"""Mini README: Error taxonomy shared by services and the web interface.

Structure:
    * FleetLedgerError - base class carrying a user-facing message.
    * ValidationError / DuplicateError / AuthorizationError / NotFoundError -
      recoverable client-side failures that block a submission.
    * RemoteOperationError / WriteConflictError - failures of the record store
      or other collaborators. Nothing is retried.
    * SessionRedirect - raised when a request must be sent back to login.

The web layer maps each class to an HTTP status code; services only raise.
"""

from __future__ import annotations


class FleetLedgerError(Exception):
    """Base class for all domain errors."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(FleetLedgerError):
    """A required field is missing or fails its format check."""

    status_code = 400


class DuplicateError(FleetLedgerError):
    """A value that must be unique already exists."""

    status_code = 409


class AuthorizationError(FleetLedgerError):
    """The supplied work ID does not match the signed-in user."""

    status_code = 403


class NotFoundError(FleetLedgerError):
    status_code = 404


class RemoteOperationError(FleetLedgerError):
    """A collaborator (store, auth, blob storage) rejected an operation."""

    status_code = 502


class WriteConflictError(RemoteOperationError):
    """An atomic store write lost against a concurrent writer."""

    status_code = 409


class SessionRedirect(FleetLedgerError):
    """The session is missing or expired and must re-authenticate."""

    status_code = 303

    def __init__(self, location: str, message: str = "Authentication required.") -> None:
        super().__init__(message)
        self.location = location


class AuthenticationError(FleetLedgerError):
    """Sign-in failed or the account could not be created."""

    status_code = 401
