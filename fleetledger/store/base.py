"""Mini README: Abstract record store describing the remote database contract.

Structure:
    * ChangeCallback - signature of subscription callbacks.
    * RecordStore - abstract, path-addressed, asynchronous key-value store.
    * split_path / join_path - helpers for slash separated store paths.

Every operation is asynchronous and non-transactional across calls. The
atomic primitives (``create_at``, ``update_many``, ``compare_and_set``) are
the only places where a backend must guarantee all-or-nothing behaviour.
Failures are raised as ``RemoteOperationError`` and never retried.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from ..logging_utils import get_logger

LOGGER = get_logger(__name__)

ChangeCallback = Callable[[Any], None]
Unsubscribe = Callable[[], None]


def split_path(path: str) -> Tuple[str, ...]:
    """Return the non-empty segments of a slash separated path."""

    return tuple(segment for segment in str(path).split("/") if segment)


def join_path(*segments: str) -> str:
    return "/".join(part for segment in segments for part in split_path(segment))


class RecordStore(ABC):
    """Base interface for hierarchical record stores."""

    backend_name: str = "generic"

    @classmethod
    def from_settings(cls, settings: Any) -> "RecordStore":
        """Build the backend from service settings."""

        return cls()

    @abstractmethod
    async def create(self, collection_path: str, record: Mapping[str, Any]) -> str:
        """Store ``record`` under a new push identifier and return that identifier."""

    @abstractmethod
    def new_key(self) -> str:
        """Reserve a fresh push identifier without writing anything."""

    @abstractmethod
    async def read(self, path: str) -> Optional[Any]:
        """Return the value stored at ``path`` or ``None`` when absent."""

    @abstractmethod
    async def set(self, path: str, value: Any) -> None:
        """Replace the value at ``path``; ``None`` removes it."""

    @abstractmethod
    async def update(self, path: str, partial: Mapping[str, Any]) -> None:
        """Merge ``partial`` into the record at ``path``."""

    @abstractmethod
    async def delete(self, path: str) -> None:
        """Remove the value at ``path`` and everything beneath it."""

    @abstractmethod
    async def query_by_field(
        self, collection_path: str, field: str, value: Any
    ) -> List[Dict[str, Any]]:
        """Return children of a collection whose ``field`` equals ``value``."""

    @abstractmethod
    async def subscribe(self, path: str, on_change: ChangeCallback) -> Unsubscribe:
        """Deliver the current value at ``path`` now and after every change."""

    @abstractmethod
    async def create_at(self, path: str, record: Mapping[str, Any]) -> None:
        """Write ``record`` at ``path`` only if nothing exists there yet."""

    @abstractmethod
    async def update_many(
        self, updates: Mapping[str, Any], *, require_absent: Iterable[str] = ()
    ) -> None:
        """Apply several path writes atomically.

        When any path in ``require_absent`` already holds a value nothing is
        written and ``WriteConflictError`` is raised.
        """

    @abstractmethod
    async def compare_and_set(self, path: str, expected: Any, value: Any) -> bool:
        """Write ``value`` only if the current value equals ``expected``."""

    async def list_children(self, collection_path: str) -> List[Dict[str, Any]]:
        """Return every child record of a collection with its ``id`` attached."""

        collection = await self.read(collection_path)
        if not isinstance(collection, dict):
            return []
        return [with_id(key, value) for key, value in sorted(collection.items())]

    async def close(self) -> None:
        LOGGER.debug("Closing %s record store", self.backend_name)


def with_id(key: str, value: Any) -> Dict[str, Any]:
    """Attach the store key to a record as ``id``."""

    if isinstance(value, dict):
        return {"id": key, **value}
    return {"id": key, "value": value}
