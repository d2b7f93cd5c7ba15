from __future__ import annotations

from oidc_scout.infra import SQLiteManager


def test_sqlite_manager_initialises_schema(tmp_path) -> None:
    manager = SQLiteManager()
    conn = manager.connect(tmp_path / "domains.db")
    columns = {row["name"]: row for row in conn.execute("PRAGMA table_info(domains)").fetchall()}
    assert set(columns) == {"name", "has_oidc", "tested_at"}
    assert columns["name"]["pk"] == 1
    assert columns["has_oidc"]["notnull"] == 1
    manager.close_all()


def test_sqlite_manager_reuses_connection(tmp_path) -> None:
    manager = SQLiteManager()
    first = manager.connect(tmp_path / "domains.db")
    assert manager.connect(tmp_path / "domains.db") is first
    manager.close(tmp_path / "domains.db")
    assert manager.connect(tmp_path / "domains.db") is not first
    manager.close_all()


def test_tested_at_defaults_to_now(tmp_path) -> None:
    manager = SQLiteManager()
    conn = manager.connect(tmp_path / "domains.db")
    conn.execute("INSERT INTO domains(name, has_oidc) VALUES ('a.example', 1)")
    row = conn.execute("SELECT tested_at FROM domains").fetchone()
    assert row["tested_at"]
    manager.close_all()
