# src/ratekeeper/adapters/persistence/file_store.py
"""
File Store - Durable JSON Records

This module persists cache state as JSON records keyed by fixed identifiers,
one file per record inside a data directory:

    <data_dir>/cached_rates.json       latest rate table + timestamp + base
    <data_dir>/historical_rates.json   pair key -> historical series

Writes are atomic (temp file + fsync + rename) so a crash can lose at most the
latest write, never leave a half-written record. Corrupt records are backed up
and treated as absent.

Files that USE this module:
- ratekeeper.application.rate_cache (persists CachedRates)
- ratekeeper.application.historical_cache (persists historical series)
- ratekeeper.app (builds the store from settings.data_dir)

Files that this module USES:
- None (json + filesystem only)
"""
from __future__ import annotations

import json
import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Optional, Union

log = logging.getLogger(__name__)

RATES_RECORD = "cached_rates"
HISTORY_RECORD = "historical_rates"


class JsonFileStore:
    """Key -> JSON object store backed by one file per key."""

    def __init__(self, directory: Union[str, Path]):
        """
        Initialize the store.

        Args:
            directory: Directory holding the record files (created on first write)
        """
        self.directory = Path(directory)

    def path_for(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def save(self, key: str, data: dict) -> None:
        """
        Save a record using an atomic write.

        Raises:
            RuntimeError: If the record cannot be written
        """
        self.directory.mkdir(parents=True, exist_ok=True)
        p = self.path_for(key)

        temp_fd, temp_path = tempfile.mkstemp(
            suffix=".json.tmp",
            dir=str(self.directory),
            text=True,
        )
        try:
            with os.fdopen(temp_fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
                f.flush()
                os.fsync(f.fileno())  # Ensure data is written to disk

            os.replace(temp_path, str(p))
        except Exception as e:
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            raise RuntimeError(f"Failed to save record {key}: {e}") from e
        log.debug("Saved record %s to %s", key, p)

    def load(self, key: str) -> Optional[dict]:
        """
        Load a record.

        A corrupt file is copied to <key>.json.corrupt, removed, and reported
        as missing.

        Returns:
            The stored object, or None if absent, corrupt or not a JSON object
        """
        p = self.path_for(key)
        if not p.exists():
            return None

        try:
            with p.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            self._quarantine(p, e)
            return None
        except OSError as e:
            log.error("Failed to read record %s: %s", key, e)
            return None

        if not isinstance(data, dict):
            self._quarantine(p, TypeError(f"expected object, got {type(data).__name__}"))
            return None
        return data

    def delete(self, key: str) -> None:
        """Remove a record if it exists."""
        p = self.path_for(key)
        try:
            p.unlink()
            log.debug("Deleted record %s", key)
        except FileNotFoundError:
            pass

    def _quarantine(self, p: Path, error: Exception) -> None:
        backup_path = p.with_suffix(".json.corrupt")
        try:
            shutil.copy2(p, backup_path)
            p.unlink()
            log.warning("Record %s corrupted, backed up to %s: %s", p.name, backup_path, error)
        except OSError as backup_error:
            log.error("Failed to back up corrupt record %s: %s", p.name, backup_error)
