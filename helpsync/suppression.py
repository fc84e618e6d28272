# helpsync/suppression.py
# declined (locally hidden) request ids.
# Copyright (c) 2025-2026 CrossWatch / Cenodude (https://github.com/cenodude/CrossWatch)
from __future__ import annotations

from collections.abc import Iterable
from typing import TypeVar

from ._log import log
from .models import HelpRequest
from .state_store import StateStore

__all__ = ["SuppressionStore"]

TItem = TypeVar("TItem", bound=HelpRequest)


def _dbg(msg: str, **fields: object) -> None:
    log("SUPPRESSION", "declined", "debug", msg, **fields)


class SuppressionStore:
    def __init__(self, store: StateStore):
        self.store = store
        self._ids: set[str] | None = None

    def _load(self) -> set[str]:
        if self._ids is None:
            raw = self.store.read(self.store.declined, [])
            if not isinstance(raw, list):
                raw = []
            self._ids = {str(x) for x in raw if isinstance(x, (str, int)) and not isinstance(x, bool)}
        return self._ids

    def _save(self) -> None:
        ids = self._load()
        try:
            self.store.write_atomic(self.store.declined, sorted(ids))
        except OSError as e:
            log("SUPPRESSION", "declined", "warn", "cannot persist declined ids", count=len(ids), error=e)

    def is_suppressed(self, request_id: str) -> bool:
        return str(request_id) in self._load()

    def suppress(self, request_id: str) -> None:
        ids = self._load()
        k = str(request_id)
        if k in ids:
            return
        ids.add(k)
        self._save()
        _dbg("suppressed", id=k, total=len(ids))

    def unsuppress(self, request_id: str) -> None:
        ids = self._load()
        k = str(request_id)
        if k not in ids:
            return
        ids.discard(k)
        self._save()
        _dbg("unsuppressed", id=k, total=len(ids))

    def ids(self) -> frozenset[str]:
        return frozenset(self._load())

    def filter(self, items: Iterable[TItem]) -> list[TItem]:
        ids = self._load()
        return [it for it in items if it.id not in ids]

    def clear(self) -> int:
        ids = self._load()
        n = len(ids)
        if n:
            ids.clear()
            self._save()
        _dbg("cleared", removed=n)
        return n
