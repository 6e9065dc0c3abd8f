"""Mini README: Record store adapter package.

``base`` defines the asynchronous store contract, ``memory`` and ``json_file``
provide concrete backends, ``registry`` selects one from settings and
``paths`` names the collections used by the domain services.
"""

from .base import RecordStore, join_path, split_path, with_id
from .json_file import JsonFileRecordStore
from .memory import InMemoryRecordStore
from .push_ids import PushIdGenerator
from .registry import STORE_REGISTRY, RecordStoreRegistry

__all__ = [
    "InMemoryRecordStore",
    "JsonFileRecordStore",
    "PushIdGenerator",
    "RecordStore",
    "RecordStoreRegistry",
    "STORE_REGISTRY",
    "join_path",
    "split_path",
    "with_id",
]
