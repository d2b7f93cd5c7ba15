"""Persistent domain classification store used to avoid re-probing."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from threading import Lock

from ..infra.storage import SQLiteManager

_UPSERT_SQL = """
    INSERT INTO domains(name, has_oidc) VALUES (?, ?)
    ON CONFLICT(name) DO UPDATE SET has_oidc=excluded.has_oidc, tested_at=CURRENT_TIMESTAMP
"""


@dataclass(frozen=True, slots=True)
class DomainRecord:
    name: str
    has_oidc: bool
    tested_at: str | None


class DomainStore:
    """Lookup/upsert keyed by domain name.

    Every statement runs under one exclusive lock, so a single store
    instance can be shared by all workers of a batch.
    """

    def __init__(self, manager: SQLiteManager, db_path: Path) -> None:
        self.manager = manager
        self.db_path = Path(db_path)
        self._lock = Lock()
        self._conn = self.manager.connect(self.db_path)

    def lookup(self, domain: str) -> bool | None:
        """Return the stored flag, or ``None`` when the domain is unknown."""

        with self._lock:
            row = self._conn.execute(
                "SELECT has_oidc FROM domains WHERE name = ?", (domain,)
            ).fetchone()
        if row is None:
            return None
        return bool(row["has_oidc"])

    def upsert(self, domain: str, has_oidc: bool) -> None:
        with self._lock:
            try:
                self._conn.execute(_UPSERT_SQL, (domain, bool(has_oidc)))
                self._conn.commit()
            except Exception:
                self._conn.rollback()
                raise

    def get(self, domain: str) -> DomainRecord | None:
        with self._lock:
            row = self._conn.execute(
                "SELECT name, has_oidc, tested_at FROM domains WHERE name = ?", (domain,)
            ).fetchone()
        return self._to_record(row) if row is not None else None

    def list_domains(self, has_oidc: bool | None = None) -> list[DomainRecord]:
        query = "SELECT name, has_oidc, tested_at FROM domains"
        params: tuple = ()
        if has_oidc is not None:
            query += " WHERE has_oidc = ?"
            params = (bool(has_oidc),)
        query += " ORDER BY name"
        with self._lock:
            rows = self._conn.execute(query, params).fetchall()
        return [self._to_record(row) for row in rows]

    def remove(self, domain: str, has_oidc: bool | None = None) -> bool:
        """Delete a record; with ``has_oidc`` only when the stored flag matches."""

        if has_oidc is None:
            query, params = "DELETE FROM domains WHERE name = ?", (domain,)
        else:
            query, params = (
                "DELETE FROM domains WHERE name = ? AND has_oidc = ?",
                (domain, bool(has_oidc)),
            )
        with self._lock:
            try:
                cursor = self._conn.execute(query, params)
                self._conn.commit()
            except Exception:
                self._conn.rollback()
                raise
        return cursor.rowcount > 0

    def close(self) -> None:
        self.manager.close(self.db_path)

    @staticmethod
    def _to_record(row) -> DomainRecord:
        return DomainRecord(
            name=row["name"],
            has_oidc=bool(row["has_oidc"]),
            tested_at=row["tested_at"],
        )


__all__ = ["DomainRecord", "DomainStore"]
