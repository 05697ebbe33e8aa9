# src/deadline_penalty/storage/kv_store.py

from __future__ import annotations

import contextlib
import json
import logging
import os
import sqlite3
import time
from pathlib import Path

from ..tasks.task_models import StorageError

logger = logging.getLogger(__name__)


class MemoryStorage:
    """Dict-backed storage for tests and throwaway sessions."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value


class JsonFileStorage:
    """
    Key-value storage in a single JSON file.

    Writes go to a sibling temp file first and are moved into place with
    os.replace, so readers see either the previous or the new document.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        logger.info("JsonFileStorage ready path=%s", self._path)

    @property
    def path(self) -> Path:
        return self._path

    def _read_all(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text("utf-8"))
        except (OSError, ValueError) as exc:
            raise StorageError(f"cannot read {self._path}: {exc}") from exc
        if not isinstance(data, dict):
            raise StorageError(f"{self._path} does not hold a JSON object")
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def get(self, key: str) -> str | None:
        return self._read_all().get(key)

    def set(self, key: str, value: str) -> None:
        try:
            data = self._read_all()
        except StorageError:
            # A corrupt file is replaced rather than blocking every future save.
            logger.warning("Overwriting unreadable storage file %s", self._path)
            data = {}
        data[key] = value

        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        try:
            tmp.write_text(json.dumps(data, ensure_ascii=False, indent=2), "utf-8")
            os.replace(tmp, self._path)
        except OSError as exc:
            with contextlib.suppress(OSError):
                tmp.unlink()
            raise StorageError(f"cannot write {self._path}: {exc}") from exc

        with contextlib.suppress(Exception):
            os.chmod(self._path, 0o600)


class SqliteKeyValueStorage:
    """
    SQLite key-value table.

    Thread-safety:
    - each method opens its own SQLite connection
    """

    def __init__(self, db_path: str | Path = "state.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        logger.info("SqliteKeyValueStorage ready db=%s", self._db_path)

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        with contextlib.suppress(Exception):
            conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _ensure_schema(self) -> None:
        try:
            conn = self._get_conn()
        except sqlite3.Error as exc:
            raise StorageError(f"cannot open {self._db_path}: {exc}") from exc
        try:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at REAL NOT NULL
                )
                """
            )
            conn.commit()
        except sqlite3.Error as exc:
            raise StorageError(f"cannot create schema in {self._db_path}: {exc}") from exc
        finally:
            conn.close()

    # ---- public API ----

    def get(self, key: str) -> str | None:
        try:
            conn = self._get_conn()
            try:
                row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
            finally:
                conn.close()
        except sqlite3.Error as exc:
            raise StorageError(f"cannot read key={key}: {exc}") from exc
        return str(row["value"]) if row else None

    def set(self, key: str, value: str) -> None:
        try:
            conn = self._get_conn()
            try:
                # The connection context manager commits or rolls back as a unit.
                with conn:
                    conn.execute(
                        """
                        INSERT INTO kv(key, value, updated_at)
                        VALUES (?, ?, ?)
                        ON CONFLICT(key) DO UPDATE SET
                            value = excluded.value,
                            updated_at = excluded.updated_at
                        """,
                        (key, value, time.time()),
                    )
            finally:
                conn.close()
        except sqlite3.Error as exc:
            raise StorageError(f"cannot write key={key}: {exc}") from exc
