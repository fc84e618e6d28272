# helpsync/manager/_undo.py
# time-boxed undo for declined requests.
# Copyright (c) 2025-2026 CrossWatch / Cenodude (https://github.com/cenodude/CrossWatch)
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Callable

from .._log import log
from ..models import HelpRequest
from ..suppression import SuppressionStore
from ._types import UndoState

__all__ = ["PendingDecline", "UndoCoordinator", "DEFAULT_WINDOW_SEC"]

DEFAULT_WINDOW_SEC = 10.0


@dataclass
class PendingDecline:
    request_id: str
    item: HelpRequest
    deadline: float
    loop: asyncio.AbstractEventLoop = field(repr=False)
    handle: asyncio.TimerHandle | None = field(default=None, repr=False)
    state: UndoState = UndoState.DECLINED

    def remaining(self) -> float:
        return max(0.0, self.deadline - self.loop.time())


class UndoCoordinator:
    """One reversible decline at a time.

    ``begin`` suppresses the id and arms a commit timer on the running loop.
    ``undo`` before the deadline cancels the timer, unsuppresses the id and
    hands the entity back. Once the deadline passes the decline is committed
    and ``undo`` does nothing. A new ``begin`` commits the previous window
    immediately.
    """

    def __init__(
        self,
        suppression: SuppressionStore,
        *,
        window_sec: float = DEFAULT_WINDOW_SEC,
        on_state: Callable[[PendingDecline], None] | None = None,
    ):
        self.suppression = suppression
        self.window_sec = max(0.0, float(window_sec))
        self.on_state = on_state
        self._pending: PendingDecline | None = None

    @property
    def pending(self) -> PendingDecline | None:
        return self._pending

    def _notify(self, p: PendingDecline) -> None:
        if self.on_state:
            self.on_state(p)

    def begin(self, item: HelpRequest) -> PendingDecline:
        loop = asyncio.get_running_loop()
        if self._pending is not None:
            self._commit(self._pending)

        self.suppression.suppress(item.id)
        p = PendingDecline(
            request_id=item.id,
            item=item,
            deadline=loop.time() + self.window_sec,
            loop=loop,
        )
        p.handle = loop.call_later(self.window_sec, self._expire, p)
        self._pending = p
        log("UNDO", "decline", "debug", "window opened", id=item.id, window=self.window_sec)
        self._notify(p)
        return p

    def undo(self) -> HelpRequest | None:
        p = self._pending
        if p is None:
            return None
        if p.loop.time() >= p.deadline:
            self._commit(p)
            return None

        if p.handle is not None:
            p.handle.cancel()
        self._pending = None
        self.suppression.unsuppress(p.request_id)
        p.state = UndoState.REVERTED
        log("UNDO", "decline", "info", "decline reverted", id=p.request_id)
        self._notify(p)
        return p.item

    def _expire(self, p: PendingDecline) -> None:
        if self._pending is p:
            self._commit(p)

    def _commit(self, p: PendingDecline) -> None:
        if p.handle is not None:
            p.handle.cancel()
        if self._pending is p:
            self._pending = None
        p.state = UndoState.COMMITTED
        log("UNDO", "decline", "debug", "decline committed", id=p.request_id)
        self._notify(p)

    def close(self) -> None:
        if self._pending is not None:
            self._commit(self._pending)
