"""
Durable key-value stores for engine state.

Values are opaque bytes; the engine owns the serialization. SqliteStore
keeps state in ~/.taika/progress.db by default, MemoryStore is for
ephemeral sessions.
"""

import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Optional, Protocol


DEFAULT_STORE_DIR = Path.home() / ".taika"
DEFAULT_STORE_DB = DEFAULT_STORE_DIR / "progress.db"


class StoreError(Exception):
    """Reading or writing the durable store failed."""


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[bytes]: ...

    def set(self, key: str, value: bytes) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryStore:
    """Dictionary-backed store. Nothing survives the process."""

    def __init__(self, initial: Optional[dict[str, bytes]] = None):
        self._data: dict[str, bytes] = dict(initial or {})

    def get(self, key: str) -> Optional[bytes]:
        return self._data.get(key)

    def set(self, key: str, value: bytes):
        self._data[key] = bytes(value)

    def delete(self, key: str):
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._data)


class SqliteStore:
    """
    Key-value store in a SQLite database.

    Opens a new connection per call, so an instance can be shared freely.
    sqlite3 errors surface as StoreError.
    """

    def __init__(self, db_path: Optional[Path] = None):
        """
        Initialize store.

        Args:
            db_path: Path to the database (default: ~/.taika/progress.db)
        """
        self.db_path = Path(db_path) if db_path else DEFAULT_STORE_DB
        self._ensure_database()

    def _ensure_database(self):
        """Create database and table if they don't exist."""
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StoreError(f"Cannot create store directory {self.db_path.parent}: {e}") from e

        conn = self._get_connection()
        try:
            conn.executescript("""
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value BLOB NOT NULL,
                    updated_at TEXT NOT NULL
                );
            """)
            conn.commit()
        except sqlite3.Error as e:
            raise StoreError(f"Cannot initialize store {self.db_path}: {e}") from e
        finally:
            conn.close()

    def _get_connection(self) -> sqlite3.Connection:
        """Get a new database connection."""
        try:
            conn = sqlite3.connect(str(self.db_path))
        except sqlite3.Error as e:
            raise StoreError(f"Cannot open store {self.db_path}: {e}") from e
        conn.row_factory = sqlite3.Row
        return conn

    def get(self, key: str) -> Optional[bytes]:
        conn = self._get_connection()
        try:
            cursor = conn.execute("SELECT value FROM kv WHERE key = ?", (key,))
            row = cursor.fetchone()
            return bytes(row["value"]) if row else None
        except sqlite3.Error as e:
            raise StoreError(f"Cannot read {key!r}: {e}") from e
        finally:
            conn.close()

    def set(self, key: str, value: bytes):
        conn = self._get_connection()
        try:
            now = datetime.now().isoformat()
            conn.execute(
                """INSERT INTO kv (key, value, updated_at)
                   VALUES (?, ?, ?)
                   ON CONFLICT(key) DO UPDATE SET
                     value = excluded.value,
                     updated_at = excluded.updated_at""",
                (key, sqlite3.Binary(value), now)
            )
            conn.commit()
        except sqlite3.Error as e:
            raise StoreError(f"Cannot write {key!r}: {e}") from e
        finally:
            conn.close()

    def delete(self, key: str):
        conn = self._get_connection()
        try:
            conn.execute("DELETE FROM kv WHERE key = ?", (key,))
            conn.commit()
        except sqlite3.Error as e:
            raise StoreError(f"Cannot delete {key!r}: {e}") from e
        finally:
            conn.close()

    def keys(self) -> list[str]:
        conn = self._get_connection()
        try:
            cursor = conn.execute("SELECT key FROM kv ORDER BY key")
            return [row["key"] for row in cursor.fetchall()]
        except sqlite3.Error as e:
            raise StoreError(f"Cannot list keys: {e}") from e
        finally:
            conn.close()
