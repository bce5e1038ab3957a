"""
Local SQLite event store for metric snapshots and raw collector events.
Each key holds an append-only, size-capped log of JSON values; the latest snapshot is kept separately
so readers never have to scan the history.
"""

import sqlite3
from dataclasses import replace
import json
import time
from typing import Optional, Any, Dict, List
import logging
import threading
from scoring.models import Snapshot, QualityMetrics

logger = logging.getLogger(__name__)

METRICS_HISTORY_KEY = 'metrics_history'
LATEST_METRICS_KEY = 'latest_metrics'
DEFAULT_MAX_ENTRIES = 1000

# keys included in export_data(), mapped to their export field names
EXPORT_KEYS = {
    METRICS_HISTORY_KEY: 'metrics',
    'churn_events': 'churnEvents',
    'ai_usage': 'aiUsage',
    'suggestion_shown': 'suggestionShown',
}

DB_PATH = None  # can be overridden by caller

# noinspection SqlResolve
SQL_CREATE = """
CREATE TABLE IF NOT EXISTS event_log (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    key TEXT NOT NULL,
    value TEXT NOT NULL,
    timestamp REAL NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_event_log_key_id ON event_log(key, id);
CREATE TABLE IF NOT EXISTS kv_state (
    key TEXT PRIMARY KEY,
    value TEXT,
    timestamp REAL
);
"""


class StorageError(Exception):
    """Raised when the store cannot read, write or decode its data."""


class MetricsStore:
    def __init__(self, path: Optional[str] = None, max_entries: Optional[int] = DEFAULT_MAX_ENTRIES):
        """Create a store.

        :param path: SQLite file path or None for in-memory.
        :param max_entries: maximum number of values kept per key; older values are pruned on write.
        """
        self.path = path or DB_PATH or ':memory:'
        self.max_entries = int(max_entries) if max_entries is not None else None
        self._lock = threading.RLock()
        try:
            self.conn = sqlite3.connect(self.path, check_same_thread=False)
            self._init_db()
        except sqlite3.Error as ex:
            raise StorageError(f"Failed to open metrics store at {self.path}: {ex}") from ex
        logger.debug(f"Metrics store opened at {self.path}")

    def _init_db(self):
        with self._lock:
            cur = self.conn.cursor()
            cur.executescript(SQL_CREATE)
            self.conn.commit()

    def close(self):
        with self._lock:
            if getattr(self, 'conn', None) is not None:
                try:
                    self.conn.close()
                finally:
                    self.conn = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def _connection(self) -> sqlite3.Connection:
        if self.conn is None:
            raise StorageError('Metrics store is closed')
        return self.conn

    @staticmethod
    def _encode(value: Any) -> str:
        try:
            return json.dumps(value, allow_nan=False)
        except (TypeError, ValueError) as ex:
            raise StorageError(f"Value is not JSON-serializable: {ex}") from ex

    @staticmethod
    def _decode(payload: str) -> Any:
        try:
            return json.loads(payload)
        except ValueError as ex:
            raise StorageError(f"Corrupt stored value: {ex}") from ex

    # noinspection SqlResolve
    def _append(self, cur: sqlite3.Cursor, key: str, payload: str, ts: float):
        cur.execute('INSERT INTO event_log(key, value, timestamp) VALUES (?, ?, ?)', (key, payload, ts))
        if self.max_entries is not None:
            # keep only the newest max_entries rows for this key
            cur.execute(
                'DELETE FROM event_log WHERE key = ? AND id NOT IN '
                '(SELECT id FROM event_log WHERE key = ? ORDER BY id DESC LIMIT ?)',
                (key, key, self.max_entries),
            )

    def store(self, key: str, value: Any):
        """Append value to the log for key."""
        payload = self._encode(value)
        with self._lock:
            try:
                conn = self._connection()
                with conn:
                    self._append(conn.cursor(), key, payload, time.time())
            except sqlite3.Error as ex:
                raise StorageError(f"Failed to store value for {key}: {ex}") from ex

    # noinspection SqlResolve
    def get(self, key: str) -> List[Any]:
        """Return all values stored under key, oldest first."""
        with self._lock:
            try:
                cur = self._connection().cursor()
                cur.execute('SELECT value FROM event_log WHERE key = ? ORDER BY id ASC', (key,))
                rows = cur.fetchall()
            except sqlite3.Error as ex:
                raise StorageError(f"Failed to read {key}: {ex}") from ex
        return [self._decode(r[0]) for r in rows]

    # noinspection SqlResolve
    def store_metrics(self, snapshot: Snapshot) -> Snapshot:
        """
        Append a snapshot to the history and make it the latest, in one transaction.
        A snapshot without a timestamp is stamped with the current time (epoch ms).
        """
        if not snapshot.timestamp:
            snapshot = replace(snapshot, timestamp=int(time.time() * 1000))
        payload = self._encode(snapshot.to_dict())
        now = time.time()
        with self._lock:
            try:
                conn = self._connection()
                with conn:
                    cur = conn.cursor()
                    self._append(cur, METRICS_HISTORY_KEY, payload, now)
                    cur.execute(
                        'REPLACE INTO kv_state(key, value, timestamp) VALUES (?, ?, ?)',
                        (LATEST_METRICS_KEY, payload, now),
                    )
            except sqlite3.Error as ex:
                raise StorageError(f"Failed to store metrics snapshot: {ex}") from ex
        logger.debug(f"Stored metrics snapshot at {snapshot.timestamp}")
        return snapshot

    # noinspection SqlResolve
    def get_latest_metrics(self) -> Snapshot:
        """Return the most recently stored snapshot, or a default snapshot with empty quality metrics."""
        with self._lock:
            try:
                cur = self._connection().cursor()
                cur.execute('SELECT value FROM kv_state WHERE key = ?', (LATEST_METRICS_KEY,))
                row = cur.fetchone()
            except sqlite3.Error as ex:
                raise StorageError(f"Failed to read latest metrics: {ex}") from ex
        if not row or row[0] is None:
            return Snapshot(quality=QualityMetrics())
        return Snapshot.from_dict(self._decode(row[0]))

    # noinspection SqlResolve
    def get_metrics_history(self, max_count: int = 30, since_days: Optional[float] = None) -> List[Snapshot]:
        """
        Return up to max_count snapshots, newest first.
        since_days limits the result to snapshots stamped within that many days.
        """
        if max_count is None or max_count <= 0:
            return []
        with self._lock:
            try:
                cur = self._connection().cursor()
                cur.execute(
                    'SELECT value FROM event_log WHERE key = ? ORDER BY id DESC LIMIT ?',
                    (METRICS_HISTORY_KEY, int(max_count)),
                )
                rows = cur.fetchall()
            except sqlite3.Error as ex:
                raise StorageError(f"Failed to read metrics history: {ex}") from ex
        snapshots = [Snapshot.from_dict(self._decode(r[0])) for r in rows]
        if since_days is not None:
            cutoff_ms = (time.time() - float(since_days) * 86400) * 1000
            snapshots = [s for s in snapshots if s.timestamp > cutoff_ms]
        return snapshots

    # noinspection SqlWithoutWhere
    def clear_all(self):
        """Remove every stored value, including the latest snapshot."""
        with self._lock:
            try:
                conn = self._connection()
                with conn:
                    conn.execute('DELETE FROM event_log')
                    conn.execute('DELETE FROM kv_state')
            except sqlite3.Error as ex:
                raise StorageError(f"Failed to clear metrics store: {ex}") from ex

    # noinspection SqlResolve
    def stats(self) -> Dict[str, Any]:
        """Return basic statistics: entry count per key, oldest and newest write timestamps."""
        with self._lock:
            try:
                cur = self._connection().cursor()
                cur.execute('SELECT key, COUNT(1) FROM event_log GROUP BY key')
                counts = {k: int(c) for k, c in cur.fetchall()}
                cur.execute('SELECT MIN(timestamp), MAX(timestamp) FROM event_log')
                oldest, newest = cur.fetchone() or (None, None)
            except sqlite3.Error as ex:
                raise StorageError(f"Failed to read store statistics: {ex}") from ex
        return {
            'count': sum(counts.values()),
            'keys': counts,
            'oldest': float(oldest) if oldest is not None else None,
            'newest': float(newest) if newest is not None else None,
        }

    # noinspection SqlResolve
    def list_keys(self) -> List[str]:
        with self._lock:
            try:
                cur = self._connection().cursor()
                cur.execute('SELECT DISTINCT key FROM event_log ORDER BY key')
                return [r[0] for r in cur.fetchall()]
            except sqlite3.Error as ex:
                raise StorageError(f"Failed to list keys: {ex}") from ex

    def export_data(self) -> str:
        """Serialize history and raw collector logs to strict JSON text (no NaN / Infinity tokens)."""
        with self._lock:
            data = {field_name: self.get(key) for key, field_name in EXPORT_KEYS.items()}
        try:
            return json.dumps(data, indent=2, allow_nan=False)
        except ValueError as ex:
            raise StorageError(f"Stored data is not valid JSON: {ex}") from ex


__all__ = ["MetricsStore", "StorageError", "METRICS_HISTORY_KEY"]
