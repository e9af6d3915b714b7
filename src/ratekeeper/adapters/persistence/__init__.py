# src/ratekeeper/adapters/persistence/__init__.py
"""
Persistence Adapters - Data Storage

This package contains adapters for persisting cache state:
- File-based storage (JSON records)
"""

from ratekeeper.adapters.persistence.file_store import HISTORY_RECORD, RATES_RECORD, JsonFileStore

__all__ = [
    "JsonFileStore",
    "RATES_RECORD",
    "HISTORY_RECORD",
]
