"""Durable key/value persistence for balance, history and identity.

The SQLite store keeps a single ItemTable of string keys and string values.
Every failure to reach the database is tolerated: the store logs it once,
switches to degraded mode and serves the rest of the process lifetime from
an in-memory mirror. Callers never see a persistence error.
"""

import json
import logging
import sqlite3
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable

from .core import HistoryEntry, entry_from_dict, entry_to_dict

logger = logging.getLogger(__name__)

POINTS_KEY = "eduia_points"
HISTORY_KEY = "eduia_history"
USER_ID_KEY = "eduia_user_id"
SESSION_ID_KEY = "eduia_session_id"


class PersistenceUnavailable(Exception):
    """The backing store could not be read or written."""


class KeyValueStore(ABC):
    """String-to-string mapping that survives restarts."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        ...

    @abstractmethod
    def clear(self) -> None:
        ...


class MemoryStore(KeyValueStore):
    """Process-local store, used for tests and --no-persist runs."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def clear(self) -> None:
        self._data.clear()


class SQLiteStore(KeyValueStore):
    """Key/value store in a local SQLite file."""

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self.degraded = False
        self._mirror: dict[str, str] = {}
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._execute(
                "CREATE TABLE IF NOT EXISTS ItemTable "
                "(key TEXT UNIQUE ON CONFLICT REPLACE, value TEXT)"
            )
        except PersistenceUnavailable:
            pass
        except OSError as e:
            self._degrade(e)

    def get(self, key: str) -> str | None:
        if self.degraded:
            return self._mirror.get(key)
        try:
            rows = self._execute("SELECT value FROM ItemTable WHERE key = ?", (key,))
        except PersistenceUnavailable:
            return self._mirror.get(key)
        if not rows:
            return None
        value = rows[0][0]
        if isinstance(value, bytes):
            value = value.decode("utf-8", errors="replace")
        self._mirror[key] = value
        return value

    def set(self, key: str, value: str) -> None:
        self._mirror[key] = value
        if self.degraded:
            return
        try:
            self._execute("INSERT INTO ItemTable VALUES (?, ?)", (key, value))
        except PersistenceUnavailable:
            pass

    def delete(self, key: str) -> None:
        self._mirror.pop(key, None)
        if self.degraded:
            return
        try:
            self._execute("DELETE FROM ItemTable WHERE key = ?", (key,))
        except PersistenceUnavailable:
            pass

    def clear(self) -> None:
        self._mirror.clear()
        if self.degraded:
            return
        try:
            self._execute("DELETE FROM ItemTable")
        except PersistenceUnavailable:
            pass

    # ── Private helpers ──────────────────────────────────────────────

    def _execute(self, sql: str, params: tuple = ()) -> list[tuple]:
        try:
            conn = sqlite3.connect(str(self.path))
            try:
                with conn:
                    rows = conn.execute(sql, params).fetchall()
            finally:
                conn.close()
            return rows
        except (sqlite3.Error, OSError) as e:
            self._degrade(e)
            raise PersistenceUnavailable(str(e)) from e

    def _degrade(self, error: Exception) -> None:
        if not self.degraded:
            logger.warning(
                "Local store %s unavailable, keeping state in memory: %s", self.path, error
            )
        self.degraded = True


def save_history(store: KeyValueStore, entries: Iterable[HistoryEntry]) -> None:
    """Persist the archive as a JSON list, newest first."""
    payload = [entry_to_dict(e) for e in entries]
    store.set(HISTORY_KEY, json.dumps(payload, ensure_ascii=False))


def load_history(store: KeyValueStore) -> list[HistoryEntry]:
    """Load the archive from the store, skipping malformed entries."""
    try:
        raw = store.get(HISTORY_KEY)
    except Exception as e:
        logger.warning("Could not read stored history, starting empty: %s", e)
        return []
    if not raw:
        return []
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.warning("Stored history is not valid JSON, starting empty: %s", e)
        return []
    if not isinstance(data, list):
        return []

    entries = []
    for item in data:
        if not isinstance(item, dict):
            continue
        try:
            entries.append(entry_from_dict(item))
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Skipping malformed history entry %r: %s", item.get("id"), e)
    return entries
