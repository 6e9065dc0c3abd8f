"""Mini README: Blob storage collaborator for statements and profile pictures.

Structure:
    * BlobStorage - abstract upload/delete/download-url contract.
    * InMemoryBlobStorage - dictionary backed implementation.

Blobs are addressed by slash separated paths such as
``statements/march.pdf``. ``delete`` also accepts a URL previously returned by
``upload`` because tracker records only keep the URL.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict

from .errors import NotFoundError
from .logging_utils import get_logger

LOGGER = get_logger(__name__)


class BlobStorage(ABC):
    """Base interface for binary object storage."""

    @abstractmethod
    async def upload(self, path: str, data: bytes) -> str:
        """Store ``data`` at ``path`` and return its download URL."""

    @abstractmethod
    async def delete(self, path_or_url: str) -> None:
        """Remove a stored object."""

    @abstractmethod
    async def get_download_url(self, path: str) -> str:
        """Return the URL of an existing object."""


class InMemoryBlobStorage(BlobStorage):
    url_scheme = "memory://"

    def __init__(self) -> None:
        self.objects: Dict[str, bytes] = {}

    def _to_path(self, path_or_url: str) -> str:
        if path_or_url.startswith(self.url_scheme):
            return path_or_url[len(self.url_scheme):]
        return path_or_url.strip("/")

    async def upload(self, path: str, data: bytes) -> str:
        key = self._to_path(path)
        self.objects[key] = bytes(data)
        LOGGER.debug("Uploaded blob %s (%s bytes)", key, len(data))
        return self.url_scheme + key

    async def delete(self, path_or_url: str) -> None:
        key = self._to_path(path_or_url)
        if self.objects.pop(key, None) is None:
            raise NotFoundError(f"Blob {key} does not exist.")

    async def get_download_url(self, path: str) -> str:
        key = self._to_path(path)
        if key not in self.objects:
            raise NotFoundError(f"Blob {key} does not exist.")
        return self.url_scheme + key
