# helpsync test scripts
from __future__ import annotations

import json
from pathlib import Path

import pytest

from conftest import make_request
from helpsync.state_store import StateStore
from helpsync.suppression import SuppressionStore


def test_suppress_is_idempotent(store: StateStore) -> None:
    sup = SuppressionStore(store)
    sup.suppress("7")
    once = json.loads(store.declined.read_text("utf-8"))
    sup.suppress("7")
    twice = json.loads(store.declined.read_text("utf-8"))
    assert once == twice == ["7"]
    assert sup.ids() == frozenset({"7"})


def test_unsuppress_is_idempotent(store: StateStore) -> None:
    sup = SuppressionStore(store)
    sup.suppress("7")
    sup.unsuppress("7")
    sup.unsuppress("7")
    sup.unsuppress("never-seen")
    assert not sup.is_suppressed("7")
    assert json.loads(store.declined.read_text("utf-8")) == []


def test_set_survives_restart(store: StateStore) -> None:
    SuppressionStore(store).suppress("a")
    SuppressionStore(store).suppress("b")
    again = SuppressionStore(store)
    assert again.ids() == frozenset({"a", "b"})


def test_corrupt_file_reads_as_empty(store: StateStore) -> None:
    store.declined.write_text("{not json", "utf-8")
    assert SuppressionStore(store).ids() == frozenset()

    store.declined.write_text(json.dumps({"ids": ["x"]}), "utf-8")
    assert SuppressionStore(store).ids() == frozenset()


def test_filter_drops_suppressed(store: StateStore) -> None:
    sup = SuppressionStore(store)
    sup.suppress("2")
    items = [make_request("1"), make_request("2"), make_request("3")]
    assert [it.id for it in sup.filter(items)] == ["1", "3"]


def test_clear_forgets_everything(store: StateStore) -> None:
    sup = SuppressionStore(store)
    for k in ("1", "2", "3"):
        sup.suppress(k)
    assert sup.clear() == 3
    assert SuppressionStore(store).ids() == frozenset()


def test_write_failure_keeps_session_state(store: StateStore, monkeypatch: pytest.MonkeyPatch) -> None:
    def boom(_p: Path, _data: object) -> None:
        raise OSError("read-only")

    monkeypatch.setattr(store, "write_atomic", boom)
    sup = SuppressionStore(store)
    sup.suppress("9")
    assert sup.is_suppressed("9")
    assert not store.declined.exists()
