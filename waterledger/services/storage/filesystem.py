"""
File-Backed Storage

One file per key under a data directory. Used by the console entry point so
a business's ledger survives between runs.

TRADEOFFS:
- Whole-file rewrite on every set (the ledger is small)
- Single writer assumed; two processes writing one key is last-write-wins
"""

import contextlib
import os
from pathlib import Path
from typing import Optional
from urllib.parse import quote, unquote

from waterledger.config import get_settings
from waterledger.services.storage.interface import (
    KeyValueStorageInterface,
    StorageQuotaExceededError,
    StorageReadError,
    StorageWriteError,
)


_SUFFIX = ".json"


class FileKeyValueStorage(KeyValueStorageInterface):
    """Key/value store kept as files in a directory."""

    def __init__(
        self,
        data_dir: Optional[Path] = None,
        quota_bytes: Optional[int] = None,
    ):
        settings = get_settings().storage
        self._data_dir = Path(data_dir or settings.data_dir)
        self._quota_bytes = quota_bytes if quota_bytes is not None else settings.quota_bytes

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def _path_for(self, key: str) -> Path:
        if not key:
            raise ValueError("Storage key must not be empty")
        # Percent-encoding keeps distinct keys in distinct files.
        return self._data_dir / (quote(key, safe="") + _SUFFIX)

    def get(self, key: str) -> Optional[str]:
        path = self._path_for(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise StorageReadError(f"Could not read {path}: {e}") from e

    def set(self, key: str, value: str) -> None:
        encoded = value.encode("utf-8")
        if self._quota_bytes is not None and len(encoded) > self._quota_bytes:
            raise StorageQuotaExceededError(
                f"Value for {key!r} is {len(encoded)} bytes, quota is {self._quota_bytes}"
            )

        path = self._path_for(key)
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        try:
            self._data_dir.mkdir(parents=True, exist_ok=True)
            tmp_path.write_bytes(encoded)
            os.replace(tmp_path, path)
        except OSError as e:
            with contextlib.suppress(OSError):
                tmp_path.unlink()
            raise StorageWriteError(f"Could not write {path}: {e}") from e

    def remove(self, key: str) -> None:
        path = self._path_for(key)
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            raise StorageWriteError(f"Could not remove {path}: {e}") from e

    def keys(self) -> list[str]:
        if not self._data_dir.exists():
            return []
        return sorted(unquote(p.name[: -len(_SUFFIX)]) for p in self._data_dir.glob(f"*{_SUFFIX}"))
