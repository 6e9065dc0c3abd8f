"""Mini README: In-memory record store backed by a nested dictionary tree.

Structure:
    * InMemoryRecordStore - ``RecordStore`` implementation used by default and
      in tests. Subclasses hook ``_checkpoint`` and ``_after_write`` to
      persist the tree and undo a mutation whose save failed.

Each operation holds an ``asyncio.Lock`` for its own duration only, which is
what makes ``create_at``, ``update_many`` and ``compare_and_set`` atomic. No
lock spans several calls, so read-then-write sequences in services can still
interleave with other writers.
"""

from __future__ import annotations

import asyncio
import copy
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from ..errors import RemoteOperationError, WriteConflictError
from ..logging_utils import get_logger
from .base import ChangeCallback, RecordStore, Unsubscribe, split_path, with_id
from .push_ids import PushIdGenerator

LOGGER = get_logger(__name__)


def _related(first: Tuple[str, ...], second: Tuple[str, ...]) -> bool:
    """Return True when one path is an ancestor of (or equal to) the other."""

    shortest = min(len(first), len(second))
    return first[:shortest] == second[:shortest]


class InMemoryRecordStore(RecordStore):
    """Hierarchical store keeping every record in process memory."""

    backend_name = "memory"

    def __init__(
        self,
        initial: Optional[Dict[str, Any]] = None,
        *,
        push_ids: Optional[PushIdGenerator] = None,
    ) -> None:
        self._root: Dict[str, Any] = copy.deepcopy(initial) if initial else {}
        self._lock = asyncio.Lock()
        self._push_id = push_ids or PushIdGenerator()
        self._subscribers: Dict[int, Tuple[Tuple[str, ...], ChangeCallback]] = {}
        self._subscription_sequence = 0
        LOGGER.debug("In-memory record store initialised with %s root keys", len(self._root))

    # ------------------------------------------------------------------
    # Tree helpers (callers hold the lock)
    # ------------------------------------------------------------------
    def _get(self, segments: Tuple[str, ...]) -> Any:
        node: Any = self._root
        for segment in segments:
            if not isinstance(node, dict) or segment not in node:
                return None
            node = node[segment]
        return node

    def _put(self, segments: Tuple[str, ...], value: Any) -> None:
        if not segments:
            if value is not None and not isinstance(value, dict):
                raise RemoteOperationError("The store root only accepts a mapping.")
            self._root = copy.deepcopy(value) if value else {}
            return
        if value is None:
            self._remove(segments)
            return
        node = self._root
        for segment in segments[:-1]:
            child = node.get(segment)
            if child is None:
                child = {}
                node[segment] = child
            elif not isinstance(child, dict):
                raise RemoteOperationError(
                    f"Cannot write beneath scalar value at '{segment}'."
                )
            node = child
        node[segments[-1]] = _prune(copy.deepcopy(value))

    def _remove(self, segments: Tuple[str, ...]) -> None:
        trail: List[Tuple[Dict[str, Any], str]] = []
        node: Any = self._root
        for segment in segments:
            if not isinstance(node, dict) or segment not in node:
                return
            trail.append((node, segment))
            node = node[segment]
        parent, key = trail.pop()
        del parent[key]
        # Empty parents disappear, matching how the remote database stores trees.
        while trail and not parent:
            parent, key = trail.pop()
            del parent[key]

    def _notify(self, written: Iterable[Tuple[str, ...]]) -> None:
        written = list(written)
        for subscription_id, (segments, callback) in list(self._subscribers.items()):
            if not any(_related(segments, path) for path in written):
                continue
            try:
                callback(copy.deepcopy(self._get(segments)))
            except Exception:  # pragma: no cover - subscriber bugs must not break writes
                LOGGER.exception("Subscriber %s failed while handling a change", subscription_id)

    def _checkpoint(self) -> Optional[Dict[str, Any]]:
        """Return what ``_commit`` needs to undo the mutation about to happen.

        The in-memory tree is the only copy, so there is nothing to undo.
        """

        return None

    async def _after_write(self) -> None:
        """Hook for subclasses that persist the tree after each mutation."""

    async def _commit(
        self, written: Iterable[Tuple[str, ...]], checkpoint: Optional[Dict[str, Any]]
    ) -> None:
        try:
            await self._after_write()
        except RemoteOperationError:
            if checkpoint is not None:
                self._root = checkpoint
            raise
        self._notify(written)

    # ------------------------------------------------------------------
    # RecordStore API
    # ------------------------------------------------------------------
    async def create(self, collection_path: str, record: Mapping[str, Any]) -> str:
        async with self._lock:
            key = self._push_id()
            segments = split_path(collection_path) + (key,)
            checkpoint = self._checkpoint()
            self._put(segments, dict(record))
            await self._commit([segments], checkpoint)
        LOGGER.debug("Created record %s under '%s'", key, collection_path)
        return key

    def new_key(self) -> str:
        return self._push_id()

    async def read(self, path: str) -> Optional[Any]:
        async with self._lock:
            return copy.deepcopy(self._get(split_path(path)))

    async def set(self, path: str, value: Any) -> None:
        async with self._lock:
            segments = split_path(path)
            checkpoint = self._checkpoint()
            self._put(segments, value)
            await self._commit([segments], checkpoint)

    async def update(self, path: str, partial: Mapping[str, Any]) -> None:
        async with self._lock:
            base = split_path(path)
            checkpoint = self._checkpoint()
            written = []
            for key, value in partial.items():
                segments = base + split_path(key)
                self._put(segments, value)
                written.append(segments)
            await self._commit(written, checkpoint)

    async def delete(self, path: str) -> None:
        async with self._lock:
            segments = split_path(path)
            if not segments:
                raise RemoteOperationError("Refusing to delete the store root.")
            checkpoint = self._checkpoint()
            self._remove(segments)
            await self._commit([segments], checkpoint)
        LOGGER.debug("Deleted '%s'", path)

    async def query_by_field(
        self, collection_path: str, field: str, value: Any
    ) -> List[Dict[str, Any]]:
        async with self._lock:
            collection = self._get(split_path(collection_path))
            if not isinstance(collection, dict):
                return []
            return [
                with_id(key, copy.deepcopy(child))
                for key, child in sorted(collection.items())
                if isinstance(child, dict) and child.get(field) == value
            ]

    async def subscribe(self, path: str, on_change: ChangeCallback) -> Unsubscribe:
        async with self._lock:
            self._subscription_sequence += 1
            subscription_id = self._subscription_sequence
            segments = split_path(path)
            self._subscribers[subscription_id] = (segments, on_change)
            current = copy.deepcopy(self._get(segments))
        on_change(current)

        def unsubscribe() -> None:
            self._subscribers.pop(subscription_id, None)

        return unsubscribe

    async def create_at(self, path: str, record: Mapping[str, Any]) -> None:
        async with self._lock:
            segments = split_path(path)
            if self._get(segments) is not None:
                raise WriteConflictError(f"A record already exists at '{path}'.")
            checkpoint = self._checkpoint()
            self._put(segments, dict(record))
            await self._commit([segments], checkpoint)

    async def update_many(
        self, updates: Mapping[str, Any], *, require_absent: Iterable[str] = ()
    ) -> None:
        async with self._lock:
            for path in require_absent:
                if self._get(split_path(path)) is not None:
                    raise WriteConflictError(f"A record already exists at '{path}'.")
            snapshot = copy.deepcopy(self._root)
            written = []
            try:
                for path, value in updates.items():
                    segments = split_path(path)
                    self._put(segments, value)
                    written.append(segments)
            except RemoteOperationError:
                self._root = snapshot
                raise
            await self._commit(written, snapshot)

    async def compare_and_set(self, path: str, expected: Any, value: Any) -> bool:
        async with self._lock:
            segments = split_path(path)
            if self._get(segments) != expected:
                return False
            checkpoint = self._checkpoint()
            self._put(segments, value)
            await self._commit([segments], checkpoint)
            return True

    def snapshot(self) -> Dict[str, Any]:
        """Return a deep copy of the whole tree (synchronous, for exports and tests)."""

        return copy.deepcopy(self._root)


def _prune(value: Any) -> Any:
    """Drop ``None`` members from mappings before they are stored."""

    if isinstance(value, dict):
        return {key: _prune(child) for key, child in value.items() if child is not None}
    return value
