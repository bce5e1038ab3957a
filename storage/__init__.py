"""
Storage package: local SQLite store for metric snapshots and collector event logs.
"""

from .store import MetricsStore, StorageError

__all__ = ["MetricsStore", "StorageError"]
