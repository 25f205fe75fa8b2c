# src/tokenledger/database/storage_manager.py
from __future__ import annotations

"""
Persistent world state backed by SQLite.

Keys are stored as their UTF-8 bytes in a BLOB column. BLOBs compare with
memcmp, and UTF-8 byte order matches code-point order, so composite keys
(which embed U+0000) sort correctly. Range scans therefore
return keys in the same order as the in-memory backend.
"""

import logging
import sqlite3
from pathlib import Path
from typing import Iterator, List, Optional, Sequence, Tuple

from tokenledger.core.ledger_exceptions import StoreError

logger = logging.getLogger(__name__)


def _encode(key: str) -> bytes:
    return key.encode("utf-8")


def _decode(raw: bytes) -> str:
    return bytes(raw).decode("utf-8")


class SQLiteStateBackend:
    """
    Key-value world state stored in a single SQLite table.

    A write set is applied inside one SQL transaction, so a failed commit
    leaves the table untouched.
    """

    def __init__(self, db_path: Path | str):
        """
        Open (and create if needed) the database.

        Args:
            db_path: Path to the SQLite database file, or ":memory:". The
                     parent directory is created if it does not exist.

        Raises:
            StoreError: If the database cannot be opened or initialised
        """
        self.db_path = db_path if str(db_path) == ":memory:" else Path(db_path)
        if isinstance(self.db_path, Path):
            self.db_path.parent.mkdir(parents=True, exist_ok=True)

        try:
            self._conn = sqlite3.connect(
                str(self.db_path), check_same_thread=False, isolation_level="DEFERRED"
            )
            if isinstance(self.db_path, Path):
                self._conn.execute("PRAGMA journal_mode=WAL;")
                self._conn.execute("PRAGMA synchronous=NORMAL;")
            self._create_table()
        except sqlite3.Error as e:
            logger.error(
                "World state database could not be opened",
                extra={"event": "storage.open_failed", "db_path": str(db_path), "error": str(e)},
            )
            raise StoreError(f"failed to open world state {db_path}: {e}") from e

    def _create_table(self) -> None:
        with self._conn:
            self._conn.execute(
                """
                CREATE TABLE IF NOT EXISTS world_state (
                    key BLOB PRIMARY KEY,
                    value BLOB NOT NULL
                )
                """
            )

    def get(self, key: str) -> Optional[bytes]:
        """
        Read one key.

        Returns:
            The stored bytes, or None if the key is absent

        Raises:
            StoreError: If the query fails
        """
        try:
            row = self._connection().execute(
                "SELECT value FROM world_state WHERE key = ?", (_encode(key),)
            ).fetchone()
        except sqlite3.Error as e:
            raise StoreError(f"failed to read key {key!r}: {e}") from e
        return bytes(row[0]) if row else None

    def range(self, start: str, end: str) -> Iterator[Tuple[str, bytes]]:
        """Yield ``(key, value)`` pairs with ``start <= key < end`` in key order."""
        try:
            rows = self._connection().execute(
                "SELECT key, value FROM world_state WHERE key >= ? AND key < ? ORDER BY key",
                (_encode(start), _encode(end)),
            ).fetchall()
        except sqlite3.Error as e:
            raise StoreError(f"failed to scan range [{start!r}, {end!r}): {e}") from e
        for key, value in rows:
            yield _decode(key), bytes(value)

    def apply(self, writes: Sequence[Tuple[str, bytes]]) -> None:
        """
        Upsert a write set atomically.

        Raises:
            StoreError: If the transaction fails; nothing is written in that case
        """
        if not writes:
            return
        conn = self._connection()
        try:
            with conn:
                conn.executemany(
                    """
                    INSERT INTO world_state (key, value)
                    VALUES (?, ?)
                    ON CONFLICT(key) DO UPDATE SET value = excluded.value
                    """,
                    [(_encode(key), sqlite3.Binary(value)) for key, value in writes],
                )
        except sqlite3.Error as e:
            logger.error(
                "World state write set rejected",
                extra={"event": "storage.apply_failed", "keys": len(writes), "error": str(e)},
            )
            raise StoreError(f"failed to apply {len(writes)} writes: {e}") from e

    def items(self) -> List[Tuple[str, bytes]]:
        """All entries in key order."""
        try:
            rows = self._connection().execute("SELECT key, value FROM world_state ORDER BY key").fetchall()
        except sqlite3.Error as e:
            raise StoreError(f"failed to list world state: {e}") from e
        return [(_decode(key), bytes(value)) for key, value in rows]

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StoreError(f"world state {self.db_path} is closed")
        return self._conn

    def close(self) -> None:
        if self._conn:
            self._conn.close()
            self._conn = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
