# helpsync/manager/_types.py
# types and protocols for the sync manager.
# Copyright (c) 2025-2026 CrossWatch / Cenodude (https://github.com/cenodude/CrossWatch)
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Protocol

from ..models import HelpRequest, HelpRequestDraft


class Gateway(Protocol):
    async def list_active(self) -> list[HelpRequest]: ...
    async def create(self, draft: HelpRequestDraft) -> HelpRequest: ...
    async def update(self, request_id: str, fields: Mapping[str, Any]) -> None: ...
    async def delete(self, request_id: str) -> None: ...
    def close(self) -> None: ...


class UndoState(Enum):
    DECLINED = auto()
    REVERTED = auto()
    COMMITTED = auto()


@dataclass(frozen=True)
class SyncEvent:
    kind: str                                   # "changed" | "error" | "undo"
    op: str
    items: tuple[HelpRequest, ...] = ()
    request_id: str | None = None
    error: Exception | None = None
    undo: UndoState | None = None


@dataclass(frozen=True)
class OpResult:
    ok: bool
    op: str
    request_id: str | None = None
    item: HelpRequest | None = None
    error: Exception | None = None
