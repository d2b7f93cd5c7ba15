from __future__ import annotations

import time

from oidc_scout.engine.store import DomainStore


def test_lookup_unknown_domain_returns_none(store: DomainStore) -> None:
    assert store.lookup("unknown.example") is None


def test_upsert_then_lookup_returns_classification(store: DomainStore) -> None:
    store.upsert("good.example", True)
    store.upsert("bad.example", False)
    assert store.lookup("good.example") is True
    assert store.lookup("bad.example") is False


def test_upsert_overwrites_single_record(store: DomainStore) -> None:
    store.upsert("flip.example", False)
    first = store.get("flip.example")
    time.sleep(1.1)
    store.upsert("flip.example", True)
    second = store.get("flip.example")
    assert second is not None and second.has_oidc
    assert len(store.list_domains()) == 1
    assert first is not None and second.tested_at > first.tested_at


def test_list_domains_filters_and_orders(store: DomainStore) -> None:
    for name, flag in [("c.example", True), ("a.example", True), ("b.example", False)]:
        store.upsert(name, flag)
    assert [r.name for r in store.list_domains(True)] == ["a.example", "c.example"]
    assert [r.name for r in store.list_domains(False)] == ["b.example"]
    assert [r.name for r in store.list_domains()] == ["a.example", "b.example", "c.example"]


def test_remove_respects_expected_flag(store: DomainStore) -> None:
    store.upsert("x.example", True)
    assert not store.remove("x.example", has_oidc=False)
    assert store.lookup("x.example") is True
    assert store.remove("x.example", has_oidc=True)
    assert store.lookup("x.example") is None


def test_remove_any(store: DomainStore) -> None:
    store.upsert("y.example", False)
    assert store.remove("y.example")
    assert not store.remove("y.example")


def test_store_persists_across_connections(tmp_path, storage) -> None:
    path = tmp_path / "persist.db"
    first = DomainStore(storage, path)
    first.upsert("kept.example", True)
    first.close()
    second = DomainStore(storage, path)
    assert second.lookup("kept.example") is True
