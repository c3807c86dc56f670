"""Tests for the key/value storage backends."""

import pytest

from waterledger.services.storage import (
    FileKeyValueStorage,
    InMemoryKeyValueStorage,
    StorageQuotaExceededError,
    StorageWriteError,
)


class TestInMemoryStorage:

    def test_set_get_remove(self):
        """Test basic key/value operations."""
        storage = InMemoryKeyValueStorage()
        assert storage.get("k") is None
        storage.set("k", "v")
        assert storage.get("k") == "v"
        assert storage.keys() == ["k"]
        storage.remove("k")
        assert storage.get("k") is None

    def test_remove_missing_key(self):
        """Test removing an absent key is a no-op."""
        InMemoryKeyValueStorage().remove("nothing")

    def test_quota_exceeded(self):
        """Test an oversized value is refused and nothing changes."""
        storage = InMemoryKeyValueStorage(initial={"k": "old"}, quota_bytes=4)
        with pytest.raises(StorageQuotaExceededError):
            storage.set("k", "too long")
        assert storage.get("k") == "old"

    def test_quota_error_is_a_write_error(self):
        """Test quota failures can be caught as write failures."""
        assert issubclass(StorageQuotaExceededError, StorageWriteError)


class TestFileStorage:

    def test_round_trip(self, tmp_path):
        """Test values persist as files in the data directory."""
        storage = FileKeyValueStorage(tmp_path)
        storage.set("aab_data_aab_e_hayat", '{"customers": []}')

        assert (tmp_path / "aab_data_aab_e_hayat.json").exists()
        assert FileKeyValueStorage(tmp_path).get("aab_data_aab_e_hayat") == '{"customers": []}'
        assert storage.keys() == ["aab_data_aab_e_hayat"]

    def test_unsafe_key_characters(self, tmp_path):
        """Test keys are encoded into file names inside the data directory."""
        storage = FileKeyValueStorage(tmp_path)
        storage.set("../escape", "x")
        assert storage.get("../escape") == "x"
        assert list(tmp_path.parent.glob("escape*")) == []

    def test_missing_directory_reads_empty(self, tmp_path):
        """Test a data directory that does not exist yet holds nothing."""
        storage = FileKeyValueStorage(tmp_path / "new")
        assert storage.get("k") is None
        assert storage.keys() == []

    def test_remove(self, tmp_path):
        """Test removing a key deletes its file."""
        storage = FileKeyValueStorage(tmp_path)
        storage.set("k", "v")
        storage.remove("k")
        storage.remove("k")
        assert storage.get("k") is None

    def test_quota(self, tmp_path):
        """Test the optional quota applies to file storage too."""
        storage = FileKeyValueStorage(tmp_path, quota_bytes=2)
        with pytest.raises(StorageQuotaExceededError):
            storage.set("k", "abc")
        assert storage.get("k") is None

    def test_distinct_keys_use_distinct_files(self, tmp_path):
        """Test keys that differ only in non-ASCII or punctuation never share a file."""
        storage = FileKeyValueStorage(tmp_path)
        storage.set("aab_data_آب", "first")
        storage.set("aab_data_پا", "second")
        storage.set("a/b", "slash")
        storage.set("a?b", "question")

        assert storage.get("aab_data_آب") == "first"
        assert storage.get("aab_data_پا") == "second"
        assert storage.get("a/b") == "slash"
        assert storage.get("a?b") == "question"

    def test_keys_returns_stored_keys(self, tmp_path):
        """Test keys() lists the keys as they were set."""
        storage = FileKeyValueStorage(tmp_path)
        storage.set("aab_data_آب", "x")
        storage.set("a/b", "y")
        storage.set("100%", "z")
        assert storage.keys() == sorted(["aab_data_آب", "a/b", "100%"])

    def test_failed_write_leaves_no_temp_file(self, tmp_path, monkeypatch):
        """Test a failed replace cleans up and keeps the previous value."""
        storage = FileKeyValueStorage(tmp_path)
        storage.set("k", "old")

        def _fail(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr("waterledger.services.storage.filesystem.os.replace", _fail)
        with pytest.raises(StorageWriteError):
            storage.set("k", "new")

        assert list(tmp_path.glob("*.tmp")) == []
        assert storage.get("k") == "old"
