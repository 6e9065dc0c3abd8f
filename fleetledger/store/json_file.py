"""Mini README: Record store that mirrors the in-memory tree to a JSON file.

Structure:
    * JsonFileRecordStore - loads ``<data_directory>/<snapshot>`` on start and
      rewrites it after every successful mutation.

The tree is serialised on the event loop while the store lock is held, then
written to a temporary sibling file in a worker thread and swapped in with
``os.replace``. A crash mid-write leaves the previous snapshot intact. When
the save fails the mutation is undone in memory too, so readers never see a
write that was reported as failed.
"""

from __future__ import annotations

import asyncio
import copy
import json
import os
from pathlib import Path
from typing import Any, Dict, Optional

from ..errors import RemoteOperationError
from ..logging_utils import get_logger
from .memory import InMemoryRecordStore

LOGGER = get_logger(__name__)


class JsonFileRecordStore(InMemoryRecordStore):
    """Persist the record tree as a single JSON document."""

    backend_name = "json"

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        initial = self._load(self.path)
        super().__init__(initial)
        LOGGER.info("JSON record store using %s", self.path)

    @classmethod
    def from_settings(cls, settings: Any) -> "JsonFileRecordStore":
        snapshot_name: Optional[str] = settings.store_snapshot_name or "ledger.json"
        return cls(Path(settings.data_directory) / snapshot_name)

    @staticmethod
    def _load(path: Path) -> dict:
        if not path.exists():
            return {}
        try:
            with path.open("r", encoding="utf-8") as handle:
                data = json.load(handle)
        except (OSError, json.JSONDecodeError) as error:
            raise RemoteOperationError(f"Could not load record store from {path}") from error
        if not isinstance(data, dict):
            raise RemoteOperationError(f"Record store snapshot {path} is not a JSON object")
        return data

    def _checkpoint(self) -> Optional[Dict[str, Any]]:
        return copy.deepcopy(self._root)

    def _write_snapshot(self, payload: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        temporary = self.path.with_suffix(self.path.suffix + ".tmp")
        with temporary.open("w", encoding="utf-8") as handle:
            handle.write(payload)
        os.replace(temporary, self.path)

    async def _after_write(self) -> None:
        payload = json.dumps(self._root, indent=2, sort_keys=True)
        try:
            await asyncio.to_thread(self._write_snapshot, payload)
        except OSError as error:
            LOGGER.error("Failed to persist record store to %s: %s", self.path, error)
            raise RemoteOperationError("The record store could not be saved.") from error
