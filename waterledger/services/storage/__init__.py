"""
Storage Services Package

Provides the abstract key/value interface and concrete backends.
Ships an in-memory store and a file-backed store; both are swappable.
"""

from waterledger.services.storage.interface import (
    KeyValueStorageInterface,
    StorageError,
    StorageQuotaExceededError,
    StorageReadError,
    StorageWriteError,
)
from waterledger.services.storage.memory import InMemoryKeyValueStorage
from waterledger.services.storage.filesystem import FileKeyValueStorage

__all__ = [
    # Interface
    "KeyValueStorageInterface",
    # Exceptions
    "StorageError",
    "StorageQuotaExceededError",
    "StorageReadError",
    "StorageWriteError",
    # Backends
    "FileKeyValueStorage",
    "InMemoryKeyValueStorage",
]
