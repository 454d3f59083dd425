"""SQLite storage driver."""

from __future__ import annotations

import logging
import os
import sqlite3
import threading
from contextlib import contextmanager
from enum import Enum
from pathlib import Path
from typing import Iterator

from dfind.db.drivers.base import InsertStatus, StorageDriver
from dfind.errors import ConstraintViolation, KeyMismatch, QueryFailure, SetupFailure
from dfind.models import RecordPayload, SearchHit, SearchFailure, SearchResult, StoreRecord
from dfind.stream import DEFAULT_MAXSIZE, Stream

LOGGER = logging.getLogger(__name__)

TABLE = "files"
INDEX = "lc_key_idx"


class ProvisionState(str, Enum):
    UNPROVISIONED = "unprovisioned"
    PROVISIONING = "provisioning"
    PROVISIONED = "provisioned"


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _escape_glob(text: str) -> str:
    return "".join(f"[{ch}]" if ch in "[*?" else ch for ch in text)


class SQLiteDriver(StorageDriver):
    """Stores keys and their lowercase projection in a single table."""

    def __init__(self, db_path: Path, *, queue_size: int = DEFAULT_MAXSIZE) -> None:
        self.db_path = Path(db_path)
        self.queue_size = queue_size
        self.state = ProvisionState.UNPROVISIONED
        self._content_search_logged = False
        try:
            self._conn = self._connect()
        except sqlite3.Error as exc:
            raise SetupFailure(f"Cannot open database {self.db_path}: {exc}") from exc
        try:
            self._check_provision()
        except sqlite3.Error as exc:
            self._conn.close()
            raise SetupFailure(f"Cannot provision database {self.db_path}: {exc}") from exc

    @property
    def connection(self) -> sqlite3.Connection:
        return self._conn

    def close(self) -> None:
        self._conn.close()

    def _connect(self, *, check_same_thread: bool = True) -> sqlite3.Connection:
        conn = sqlite3.connect(
            self.db_path, isolation_level=None, check_same_thread=check_same_thread
        )
        try:
            conn.execute("PRAGMA journal_mode=WAL;")
            conn.execute("PRAGMA synchronous=NORMAL;")
        except sqlite3.Error:
            conn.close()
            raise
        return conn

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        self._conn.execute("BEGIN IMMEDIATE")
        try:
            yield self._conn
            self._conn.execute("COMMIT")
        except Exception:
            self._conn.execute("ROLLBACK")
            raise

    def _table_exists(self) -> bool:
        row = self._conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name=?", (TABLE,)
        ).fetchone()
        return row is not None

    def _check_provision(self) -> None:
        if not self._table_exists():
            self._provision()
        else:
            self._migrate()
        self.state = ProvisionState.PROVISIONED

    def _provision(self) -> None:
        self.state = ProvisionState.PROVISIONING
        LOGGER.info("Provisioning database %s", self.db_path)
        with self.transaction() as conn:
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {TABLE} (
                    key TEXT NOT NULL PRIMARY KEY,
                    lc_key TEXT NOT NULL,
                    payload TEXT
                )
                """
            )
            conn.execute(f"CREATE INDEX IF NOT EXISTS {INDEX} ON {TABLE} (lc_key)")

    def _migrate(self) -> None:
        columns = {row[1] for row in self._conn.execute(f"PRAGMA table_info({TABLE})")}
        if "payload" in columns:
            return
        LOGGER.info("Adding payload column to %s", self.db_path)
        with self.transaction() as conn:
            conn.execute(f"ALTER TABLE {TABLE} ADD COLUMN payload TEXT")

    def insert(self, key: str, record: StoreRecord, force: bool) -> InsertStatus:
        if key != record.key:
            raise KeyMismatch(f"key does not match record key: {key!r} != {record.key!r}")

        payload = record.payload.model_dump_json() if record.payload is not None else None
        action: InsertStatus = "inserted"
        with self.transaction() as conn:
            found = conn.execute(
                f"SELECT key FROM {TABLE} WHERE key = ?", (key,)
            ).fetchone()
            if found:
                if not force:
                    raise ConstraintViolation(f"can not insert: {key} already exists")
                conn.execute(f"DELETE FROM {TABLE} WHERE key = ?", (key,))
                action = "updated"
            conn.execute(
                f"INSERT INTO {TABLE}(key, lc_key, payload) VALUES (?, ?, ?)",
                (key, key.lower(), payload),
            )

        LOGGER.debug("%s: %s", "UPDATE" if action == "updated" else "INSERT", key)
        return action

    def delete(self, key: str) -> None:
        with self.transaction() as conn:
            conn.execute(f"DELETE FROM {TABLE} WHERE key = ?", (key,))

    def get(self, key: str) -> StoreRecord | None:
        row = self._conn.execute(
            f"SELECT key, payload FROM {TABLE} WHERE key = ?", (key,)
        ).fetchone()
        if row is None:
            return None
        payload = RecordPayload.model_validate_json(row[1]) if row[1] else None
        return StoreRecord(key=row[0], payload=payload)

    def count(self) -> int:
        return self._conn.execute(f"SELECT COUNT(*) FROM {TABLE}").fetchone()[0]

    def keys(self) -> Iterator[str]:
        for (key,) in self._conn.execute(f"SELECT key FROM {TABLE}").fetchall():
            yield key

    def delete_missing(self) -> int:
        """Remove rows whose path no longer exists on disk."""
        missing = [key for key in self.keys() if not os.path.lexists(key)]
        with self.transaction() as conn:
            conn.executemany(f"DELETE FROM {TABLE} WHERE key = ?", [(key,) for key in missing])
        return len(missing)

    def search(
        self, pattern: str, ignore_case: bool, search_content: bool
    ) -> Stream[SearchResult]:
        if search_content and not self._content_search_logged:
            self._content_search_logged = True
            LOGGER.debug("Content search is not supported by the SQLite driver")

        # LIKE ignores ASCII case, so exact-case matching goes through GLOB.
        if ignore_case:
            query = f"SELECT key FROM {TABLE} WHERE lc_key LIKE ? ESCAPE '\\'"
            param = f"%{_escape_like(pattern.lower())}%"
        else:
            query = f"SELECT key FROM {TABLE} WHERE key GLOB ?"
            param = f"*{_escape_glob(pattern)}*"

        conn: sqlite3.Connection | None = None
        try:
            conn = self._connect(check_same_thread=False)
            cursor = conn.execute(query, (param,))
        except sqlite3.Error as exc:
            if conn is not None:
                conn.close()
            raise QueryFailure(f"Error starting search: {exc}") from exc

        stream: Stream[SearchResult] = Stream(self.queue_size)
        worker = threading.Thread(
            target=self._stream_rows,
            args=(conn, cursor, stream),
            name="dfind-search",
            daemon=True,
        )
        worker.start()
        return stream

    @staticmethod
    def _stream_rows(
        conn: sqlite3.Connection, cursor: sqlite3.Cursor, stream: Stream[SearchResult]
    ) -> None:
        try:
            for (key,) in cursor:
                if not stream.send(SearchHit(key)):
                    break
        except sqlite3.Error as exc:
            LOGGER.error("Search failed: %s", exc)
            stream.send(SearchFailure(QueryFailure(str(exc))))
        finally:
            conn.close()
            stream.close()
