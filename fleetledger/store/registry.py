"""Mini README: Backend registry for record stores.

Structure:
    * RecordStoreRegistry - maps backend names to ``RecordStore`` classes.
    * STORE_REGISTRY - process-wide registry pre-loaded with the built-ins.

The web application asks the registry for the backend named in
``FleetLedgerSettings.store_backend``; alternative backends register
themselves here on import.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Type

from ..logging_utils import get_logger
from .base import RecordStore
from .json_file import JsonFileRecordStore
from .memory import InMemoryRecordStore

LOGGER = get_logger(__name__)


class RecordStoreRegistry:
    """Simple registry for mapping backend identifiers to store classes."""

    def __init__(self) -> None:
        self._backends: Dict[str, Type[RecordStore]] = {}

    def register(self, backend: Type[RecordStore]) -> None:
        """Register a store class under its ``backend_name``."""

        identifier = backend.backend_name.lower()
        LOGGER.debug("Registering record store backend '%s'", identifier)
        self._backends[identifier] = backend

    def available_backends(self) -> Iterable[str]:
        return sorted(self._backends.keys())

    def create(self, identifier: str, settings: Any) -> RecordStore:
        """Instantiate the backend matching the identifier."""

        backend_cls = self._backends.get(identifier.lower())
        if not backend_cls:
            raise KeyError(f"Unknown record store backend '{identifier}'")
        LOGGER.info("Creating record store backend '%s'", identifier)
        return backend_cls.from_settings(settings)


STORE_REGISTRY = RecordStoreRegistry()
STORE_REGISTRY.register(InMemoryRecordStore)
STORE_REGISTRY.register(JsonFileRecordStore)
