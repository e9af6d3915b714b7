# tests/test_file_store.py
"""
File Store Tests - Atomic JSON Records and Corrupt-File Handling

Files that USE this module:
- pytest (test runner executes these tests)

Files that this module USES:
- ratekeeper.adapters.persistence.file_store (JsonFileStore)
"""
from unittest.mock import patch  # Patching os.replace to simulate a failed write

import pytest  # Testing framework for writing and running tests

from ratekeeper.adapters.persistence.file_store import JsonFileStore


class TestJsonFileStore:
    def test_save_and_load(self, tmp_path):
        store = JsonFileStore(tmp_path / "nested" / "data")
        store.save("cached_rates", {"rates": {"EUR": 0.9}})

        assert store.load("cached_rates") == {"rates": {"EUR": 0.9}}

    def test_missing_record(self, tmp_path):
        assert JsonFileStore(tmp_path).load("nothing") is None

    def test_save_replaces_previous_record(self, tmp_path):
        store = JsonFileStore(tmp_path)
        store.save("k", {"v": 1})
        store.save("k", {"v": 2})

        assert store.load("k") == {"v": 2}
        assert not list(tmp_path.glob("*.tmp"))

    def test_corrupt_record_is_quarantined(self, tmp_path):
        store = JsonFileStore(tmp_path)
        store.path_for("k").write_text("{not json", encoding="utf-8")

        assert store.load("k") is None
        assert not store.path_for("k").exists()
        assert (tmp_path / "k.json.corrupt").read_text(encoding="utf-8") == "{not json"

    def test_non_object_record_is_quarantined(self, tmp_path):
        store = JsonFileStore(tmp_path)
        store.path_for("k").write_text("[1, 2, 3]", encoding="utf-8")

        assert store.load("k") is None
        assert (tmp_path / "k.json.corrupt").exists()

    def test_failed_write_keeps_old_record(self, tmp_path):
        store = JsonFileStore(tmp_path)
        store.save("k", {"v": 1})

        with patch("ratekeeper.adapters.persistence.file_store.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(RuntimeError, match="Failed to save record k"):
                store.save("k", {"v": 2})

        assert store.load("k") == {"v": 1}
        assert not list(tmp_path.glob("*.tmp"))

    def test_delete(self, tmp_path):
        store = JsonFileStore(tmp_path)
        store.save("k", {"v": 1})

        store.delete("k")
        store.delete("k")

        assert store.load("k") is None
