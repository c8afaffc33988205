"""Task list state container and the key-value storage it persists through."""

from taskpad.storage.adapter import JsonFileAdapter, MemoryAdapter, PersistenceAdapter
from taskpad.storage.task_store import DecodePolicy, TaskStore

__all__ = [
    "DecodePolicy",
    "JsonFileAdapter",
    "MemoryAdapter",
    "PersistenceAdapter",
    "TaskStore",
]
