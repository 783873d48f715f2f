"""Scan history persistence."""

from .kv import FileKeyValueStore, KeyValueStore, MemoryKeyValueStore
from .records import History, PersistenceFailure, RecordStore, ScanRecord

__all__ = [
    "FileKeyValueStore",
    "KeyValueStore",
    "MemoryKeyValueStore",
    "History",
    "PersistenceFailure",
    "RecordStore",
    "ScanRecord",
]
