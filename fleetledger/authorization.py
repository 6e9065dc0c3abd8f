"""Mini README: Work-ID gate guarding edits and deletions.

Structure:
    * Action - the mutating operations a policy can be asked about.
    * GATED_COLLECTIONS - collections whose updates and deletions are gated.
    * AuthorizationPolicy - interface consulted before every gated mutation.
    * WorkIdPolicy - compares a re-entered work ID with the stored one.

The work ID check is a shared-secret re-entry, not a cryptographic proof: the
value typed by the user must equal ``users/{uid}.workId`` exactly, case
included and without trimming. The stored value is fetched on every check so
a changed work ID takes effect immediately.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional

from .auth import Principal
from .errors import AuthorizationError
from .logging_utils import get_logger
from .store import RecordStore
from .store.paths import CREDITORS, TRACKER_EXPENSES, TRUCKS, user_path

LOGGER = get_logger(__name__)


class Action(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


GATED_COLLECTIONS = frozenset({TRUCKS, CREDITORS, TRACKER_EXPENSES})
GATED_ACTIONS = frozenset({Action.UPDATE, Action.DELETE})


class AuthorizationPolicy(ABC):
    """Decide whether a principal may perform a mutation."""

    def requires_work_id(self, action: Action, collection: str) -> bool:
        return action in GATED_ACTIONS and collection in GATED_COLLECTIONS

    @abstractmethod
    async def authorize(
        self,
        principal: Principal,
        action: Action,
        collection: str,
        supplied_work_id: Optional[str],
    ) -> None:
        """Raise ``AuthorizationError`` when the mutation must not proceed."""


class WorkIdPolicy(AuthorizationPolicy):
    """Gate updates and deletions on re-entry of the user's work ID."""

    def __init__(self, store: RecordStore) -> None:
        self.store = store

    async def stored_work_id(self, principal: Principal) -> Optional[str]:
        record = await self.store.read(user_path(principal.uid))
        if isinstance(record, dict):
            return record.get("workId")
        return None

    async def authorize(
        self,
        principal: Principal,
        action: Action,
        collection: str,
        supplied_work_id: Optional[str],
    ) -> None:
        if not self.requires_work_id(action, collection):
            return
        if not supplied_work_id:
            raise AuthorizationError("Please enter your work ID.")
        stored = await self.stored_work_id(principal)
        if stored is None or supplied_work_id != stored:
            LOGGER.warning(
                "Work ID mismatch for %s on %s %s", principal.uid, action.value, collection
            )
            raise AuthorizationError("Invalid work ID. Please enter a valid work ID.")
        LOGGER.debug("Work ID accepted for %s on %s %s", principal.uid, action.value, collection)
