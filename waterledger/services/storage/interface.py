"""
Abstract Key/Value Storage Interface

DESIGN DECISION: The storage medium is a plain string key/value store.
This allows us to:
1. Keep whole-blob JSON persistence, as in a browser's local storage
2. Use in-memory storage for testing
3. Swap in a file-backed or remote store without touching the ledger

The interface is intentionally tiny: get, set, remove. No transactions,
no partial updates.
"""

from abc import ABC, abstractmethod
from typing import Optional


class KeyValueStorageInterface(ABC):
    """
    Abstract interface for the storage medium.

    Any backend must implement these methods. Values are opaque strings.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """
        Read a value.

        Args:
            key: The entry key

        Returns:
            The stored string, or None if the key is absent

        Raises:
            StorageReadError: If the backend cannot be read
        """
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """
        Replace the value stored under a key.

        Raises:
            StorageQuotaExceededError: If the value does not fit
            StorageWriteError: If the write fails for any other reason
        """
        pass

    @abstractmethod
    def remove(self, key: str) -> None:
        """Remove a key. Removing a missing key is not an error."""
        pass

    @abstractmethod
    def keys(self) -> list[str]:
        """List stored keys."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class StorageReadError(StorageError):
    """A stored value could not be read."""
    pass


class StorageWriteError(StorageError):
    """A value could not be written."""
    pass


class StorageQuotaExceededError(StorageWriteError):
    """The value exceeds the space available to the store."""
    pass
