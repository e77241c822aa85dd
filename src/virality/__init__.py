"""Virality - personal location log on a local table store."""

from .components.file_kv import JsonFileKeyValueStore
from .components.memory_kv import MemoryKeyValueStore
from .components.table_store import TableStore
from .core.config import AppConfig, StoreConfig, load_config
from .core.errors import (
    StorageError,
    NotFoundError,
    TableNotFoundError,
    IndexNotFoundError,
    InvalidContinuationError,
    SelfTestError,
)
from .core.types import IndexDef, IndexEntry, Item, StorageResults, TableDef

__all__ = [
    "AppConfig",
    "StoreConfig",
    "load_config",
    "StorageError",
    "NotFoundError",
    "TableNotFoundError",
    "IndexNotFoundError",
    "InvalidContinuationError",
    "SelfTestError",
    "JsonFileKeyValueStore",
    "MemoryKeyValueStore",
    "TableStore",
    "IndexDef",
    "IndexEntry",
    "Item",
    "StorageResults",
    "TableDef",
]
