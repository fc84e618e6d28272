# helpsync/manager/_observable.py
# published snapshot + change notifications.
# Copyright (c) 2025-2026 CrossWatch / Cenodude (https://github.com/cenodude/CrossWatch)
from __future__ import annotations

from typing import Callable

from .._log import log
from ._types import SyncEvent

Observer = Callable[[SyncEvent], None]


class Subject:
    def __init__(self) -> None:
        self._observers: list[Observer] = []

    def subscribe(self, cb: Observer) -> Callable[[], None]:
        self._observers.append(cb)

        def _unsubscribe() -> None:
            try:
                self._observers.remove(cb)
            except ValueError:
                pass

        return _unsubscribe

    def emit(self, event: SyncEvent) -> None:
        for cb in list(self._observers):
            try:
                cb(event)
            except Exception as e:
                log("MANAGER", "observers", "error", "observer failed", kind=event.kind, op=event.op, error=e)

    def __len__(self) -> int:
        return len(self._observers)
