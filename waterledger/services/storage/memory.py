"""
In-Memory Storage

A dict-backed store for tests and throwaway sessions. An optional quota
makes oversized writes fail the way a full browser store does.
"""

from typing import Optional

from waterledger.services.storage.interface import (
    KeyValueStorageInterface,
    StorageQuotaExceededError,
)


class InMemoryKeyValueStorage(KeyValueStorageInterface):
    """Key/value store held in a dict."""

    def __init__(
        self,
        initial: Optional[dict[str, str]] = None,
        quota_bytes: Optional[int] = None,
    ):
        """
        Args:
            initial: Entries to start with
            quota_bytes: Maximum UTF-8 size of any single value
        """
        self._data: dict[str, str] = dict(initial or {})
        self._quota_bytes = quota_bytes

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        if self._quota_bytes is not None:
            size = len(value.encode("utf-8"))
            if size > self._quota_bytes:
                raise StorageQuotaExceededError(
                    f"Value for {key!r} is {size} bytes, quota is {self._quota_bytes}"
                )
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)
