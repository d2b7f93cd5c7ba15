"""Storage abstractions for the domain classification store."""

from __future__ import annotations

import sqlite3
from pathlib import Path
from threading import Lock
from typing import Dict


class SQLiteManager:
    """Manage SQLite connections with basic schema guarantees."""

    def __init__(self) -> None:
        self._connections: Dict[Path, sqlite3.Connection] = {}
        self._lock = Lock()

    def connect(self, path: Path) -> sqlite3.Connection:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        key = path.resolve()
        with self._lock:
            if key not in self._connections:
                # Shared across worker threads; callers serialise access.
                conn = sqlite3.connect(key, check_same_thread=False)
                conn.row_factory = sqlite3.Row
                try:
                    self._ensure_schema(conn)
                except sqlite3.Error:
                    conn.close()
                    raise
                self._connections[key] = conn
            return self._connections[key]

    def _ensure_schema(self, conn: sqlite3.Connection) -> None:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS domains (
                name TEXT PRIMARY KEY,
                has_oidc BOOLEAN NOT NULL,
                tested_at DATETIME DEFAULT CURRENT_TIMESTAMP
            )
            """
        )
        conn.commit()

    def close(self, path: Path) -> None:
        key = Path(path).resolve()
        with self._lock:
            conn = self._connections.pop(key, None)
        if conn is not None:
            conn.close()

    def close_all(self) -> None:
        with self._lock:
            for conn in self._connections.values():
                conn.close()
            self._connections.clear()


__all__ = ["SQLiteManager"]
