# helpsync/manager/facade.py
# sync manager: local collection, optimistic intents, reconciliation.
# Copyright (c) 2025-2026 CrossWatch / Cenodude (https://github.com/cenodude/CrossWatch)
from __future__ import annotations

import asyncio
import contextlib
from collections import Counter
from collections.abc import AsyncIterator, Callable, Iterable, Mapping
from dataclasses import replace
from typing import Any

from .._log import enable_debug, log
from ..config_base import load_config, normalize_config, state_dir
from ..demo import DEMO_CREATOR_ID, demo_requests
from ..errors import DecodeError, NetworkError, ValidationError
from ..identity import IdentityProvider
from ..models import Coordinate, HelpRequest, HelpRequestDraft, valid_rating
from ..remote import GatewayConfig, RemoteGateway
from ..state_store import StateStore
from ..suppression import SuppressionStore
from ._observable import Observer, Subject
from ._types import Gateway, OpResult, SyncEvent
from ._undo import DEFAULT_WINDOW_SEC, PendingDecline, UndoCoordinator

__all__ = ["SyncManager", "build_manager"]

_SOFT_ERRORS = (NetworkError, DecodeError)


def _log(op: str, level: str, msg: str, **fields: Any) -> None:
    log("MANAGER", op, level, msg, **fields)


class SyncManager:
    """Owns the local collection of help requests.

    All writes to the collection happen in synchronous sections on the event
    loop that runs the manager, so results of network calls that complete in
    any order are applied one at a time. Observers receive a ``SyncEvent``
    with an immutable snapshot after every change.

    Per operation policy:
      create    remote first, inserted once the server id is known
      accept    remote update, then a forced refresh
      complete  remote update, then the local copy is replaced
      cancel    optimistic removal, remote delete, no rollback
      decline   local only: removal + suppression + undo window
    """

    def __init__(
        self,
        gateway: Gateway,
        identity: IdentityProvider,
        suppression: SuppressionStore,
        *,
        undo_window_sec: float = DEFAULT_WINDOW_SEC,
        refresh_after_delete: float | None = None,
        on_event: Observer | None = None,
    ):
        self.gateway = gateway
        self.identity = identity
        self.suppression = suppression
        self.refresh_after_delete = refresh_after_delete
        self.undo_coordinator = UndoCoordinator(
            suppression,
            window_sec=undo_window_sec,
            on_state=self._on_undo_state,
        )
        self.last_error: Exception | None = None

        self._items: dict[str, HelpRequest] = {}
        self._snapshot: tuple[HelpRequest, ...] = ()
        self._subject = Subject()
        self._refresh_task: asyncio.Task[tuple[HelpRequest, ...]] | None = None
        self._id_locks: dict[str, asyncio.Lock] = {}
        self._lock_users: Counter[str] = Counter()
        self._deleting: Counter[str] = Counter()
        # local write generation; ids written after a refresh started keep their local copy
        self._gen = 0
        self._written: dict[str, int] = {}
        self._applied_gen = -1
        self._background: set[asyncio.Task[Any]] = set()

        if on_event is not None:
            self._subject.subscribe(on_event)

    # Read side
    @property
    def snapshot(self) -> tuple[HelpRequest, ...]:
        return self._snapshot

    def get(self, request_id: str) -> HelpRequest | None:
        return self._items.get(str(request_id))

    def active(self) -> list[HelpRequest]:
        return [it for it in self._snapshot if it.is_active]

    def finished(self) -> list[HelpRequest]:
        return [it for it in self._snapshot if not it.is_active]

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, request_id: object) -> bool:
        return str(request_id) in self._items

    def subscribe(self, cb: Observer) -> Callable[[], None]:
        return self._subject.subscribe(cb)

    @property
    def pending_decline(self) -> PendingDecline | None:
        return self.undo_coordinator.pending

    # Single writer
    def _commit(self, items: dict[str, HelpRequest], op: str, request_id: str | None = None) -> None:
        self._items = items
        self._snapshot = tuple(items.values())
        self._subject.emit(SyncEvent("changed", op, self._snapshot, request_id=request_id))

    def _upsert(self, item: HelpRequest, op: str) -> None:
        items = dict(self._items)
        items[item.id] = item
        self._commit(items, op, item.id)

    def _remove(self, request_id: str, op: str) -> HelpRequest | None:
        if request_id not in self._items:
            return None
        items = dict(self._items)
        item = items.pop(request_id)
        self._commit(items, op, request_id)
        return item

    def _stamp(self, request_id: str | None = None) -> int:
        self._gen += 1
        if request_id is not None:
            self._written[request_id] = self._gen
        return self._gen

    def _apply_remote(self, remote: Iterable[HelpRequest], started: int) -> tuple[HelpRequest, ...]:
        merged: dict[str, HelpRequest] = {k: v for k, v in self._items.items() if v.is_demo}
        visible = self.suppression.filter(remote)
        skipped = 0
        for it in visible:
            if self._deleting[it.id]:
                skipped += 1
                continue
            merged[it.id] = it

        kept = 0
        for rid, gen in list(self._written.items()):
            if gen <= started:
                # the listing already reflects this write
                del self._written[rid]
                continue
            local = self._items.get(rid)
            if local is not None:
                merged[rid] = local
                kept += 1

        self._applied_gen = max(self._applied_gen, started)
        self._commit(merged, "refresh")
        _log(
            "refresh",
            "debug",
            "applied",
            visible=len(visible),
            skipped_deleting=skipped,
            kept_local=kept,
            total=len(merged),
        )
        return self._snapshot

    def _fail(self, op: str, err: Exception, request_id: str | None = None) -> OpResult:
        self.last_error = err
        _log(op, "warn", "remote call failed", id=request_id, error=err)
        self._subject.emit(SyncEvent("error", op, self._snapshot, request_id=request_id, error=err))
        return OpResult(False, op, request_id, error=err)

    def _require(self, request_id: str) -> HelpRequest:
        item = self._items.get(str(request_id))
        if item is None:
            raise ValidationError(f"unknown request: {request_id}")
        return item

    @contextlib.asynccontextmanager
    async def _locked(self, request_id: str) -> AsyncIterator[None]:
        lock = self._id_locks.get(request_id)
        if lock is None:
            lock = self._id_locks[request_id] = asyncio.Lock()
        self._lock_users[request_id] += 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[request_id] -= 1
            if self._lock_users[request_id] <= 0:
                del self._lock_users[request_id]
                self._id_locks.pop(request_id, None)

    def _on_undo_state(self, p: PendingDecline) -> None:
        self._subject.emit(
            SyncEvent("undo", p.state.name.lower(), self._snapshot, request_id=p.request_id, undo=p.state)
        )

    # Refresh
    async def refresh(self) -> tuple[HelpRequest, ...]:
        task = self._refresh_task
        if task is None or task.done():
            task = asyncio.get_running_loop().create_task(self._run_refresh())
            self._refresh_task = task
            task.add_done_callback(self._refresh_done)
        else:
            _log("refresh", "debug", "joined in-flight refresh")
        return await asyncio.shield(task)

    def _refresh_done(self, task: asyncio.Task[Any]) -> None:
        if self._refresh_task is task:
            self._refresh_task = None

    async def _run_refresh(self) -> tuple[HelpRequest, ...]:
        started = self._gen
        try:
            remote = await self.gateway.list_active()
        except _SOFT_ERRORS as e:
            self._fail("refresh", e)
            return self._snapshot
        return self._apply_remote(remote, started)

    async def _refresh_since(self, mark: int) -> tuple[HelpRequest, ...]:
        joined = self._refresh_task is not None and not self._refresh_task.done()
        snap = await self.refresh()
        if joined and self._applied_gen < mark:
            # the joined refresh was listed before our write
            snap = await self.refresh()
        return snap

    def _schedule_refresh(self) -> None:
        delay = self.refresh_after_delete
        if delay is None:
            return

        async def _later() -> None:
            await asyncio.sleep(delay)
            await self.refresh()

        task = asyncio.get_running_loop().create_task(_later())
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    # Intents
    async def create(
        self,
        title: str,
        details: str,
        tip_amount: float | None = None,
        location: Coordinate | tuple[float, float] | None = None,
    ) -> OpResult:
        draft = HelpRequestDraft.build(
            title,
            details,
            location=location,
            creator_id=self.identity.current_user_id(),
            tip_amount=tip_amount,
        )
        try:
            item = await self.gateway.create(draft)
        except _SOFT_ERRORS as e:
            return self._fail("create", e)

        if self.suppression.is_suppressed(item.id):
            _log("create", "debug", "created id is declined; not shown", id=item.id)
        else:
            self._stamp(item.id)
            self._upsert(item, "create")
        return OpResult(True, "create", item.id, item)

    async def accept(self, request_id: str) -> OpResult:
        request_id = str(request_id)
        item = self._require(request_id)
        me = self.identity.current_user_id()
        if item.creator_id == me:
            raise ValidationError("cannot accept your own request")
        if not item.is_active:
            raise ValidationError(f"request {request_id} is no longer active")

        if item.is_demo:
            accepted = item.accepted(me)
            self._upsert(accepted, "accept")
            return OpResult(True, "accept", request_id, accepted)

        async with self._locked(request_id):
            try:
                await self.gateway.update(request_id, {"helperName": me, "isActive": True})
            except _SOFT_ERRORS as e:
                return self._fail("accept", e, request_id)
            mark = self._stamp()

        await self._refresh_since(mark)
        return OpResult(True, "accept", request_id, self._items.get(request_id))

    async def complete(self, request_id: str, helper_name: str, rating: int) -> OpResult:
        request_id = str(request_id)
        if not valid_rating(rating):
            raise ValidationError(f"rating must be an integer from 1 to 5, got {rating!r}")
        helper = (helper_name or "").strip()
        if not helper:
            raise ValidationError("helper name is required")
        item = self._require(request_id)

        if not item.is_demo:
            async with self._locked(request_id):
                try:
                    await self.gateway.update(
                        request_id,
                        {"isActive": False, "helperName": helper, "rating": rating},
                    )
                except _SOFT_ERRORS as e:
                    return self._fail("complete", e, request_id)

        current = self._items.get(request_id)
        if current is None:
            # removed locally while the update was in flight
            return OpResult(True, "complete", request_id)
        done = current.completed(helper, rating)
        self._stamp(request_id)
        self._upsert(done, "complete")
        return OpResult(True, "complete", request_id, done)

    async def delete(self, request_id: str, *, op: str = "delete") -> OpResult:
        request_id = str(request_id)
        item = self._remove(request_id, op)
        if item is not None and item.is_demo:
            return OpResult(True, op, request_id, item)

        self._deleting[request_id] += 1
        try:
            async with self._locked(request_id):
                await self.gateway.delete(request_id)
        except _SOFT_ERRORS as e:
            return self._fail(op, e, request_id)
        finally:
            self._deleting[request_id] -= 1
            if self._deleting[request_id] <= 0:
                del self._deleting[request_id]

        self._schedule_refresh()
        return OpResult(True, op, request_id, item)

    async def cancel(self, request_id: str) -> OpResult:
        return await self.delete(request_id, op="cancel")

    def decline(self, request_id: str) -> OpResult:
        request_id = str(request_id)
        item = self._require(request_id)
        self._remove(request_id, "decline")
        self.undo_coordinator.begin(item)
        return OpResult(True, "decline", request_id, item)

    def undo(self) -> HelpRequest | None:
        item = self.undo_coordinator.undo()
        if item is None:
            return None
        if item.id not in self._items:
            self._upsert(item, "undo")
        return item

    def seed_demo(self, items: Iterable[HelpRequest]) -> int:
        merged = dict(self._items)
        added = 0
        for it in items:
            if self.suppression.is_suppressed(it.id):
                continue
            merged[it.id] = it if it.is_demo else replace(it, is_demo=True)
            added += 1
        if added:
            self._commit(merged, "demo")
        return added

    async def aclose(self) -> None:
        tasks = list(self._background)
        if self._refresh_task is not None and not self._refresh_task.done():
            tasks.append(self._refresh_task)
        for t in tasks:
            t.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self.undo_coordinator.close()
        self.gateway.close()


def build_manager(
    cfg: Mapping[str, Any] | None = None,
    *,
    gateway: Gateway | None = None,
    on_event: Observer | None = None,
    center: Coordinate | tuple[float, float] | None = None,
) -> SyncManager:
    """Wire stores, gateway and manager from a loaded config."""
    conf: dict[str, Any] = normalize_config(dict(cfg)) if cfg is not None else load_config()
    if conf["runtime"]["debug"]:
        enable_debug(True)

    store = StateStore(state_dir(conf))
    gw = gateway if gateway is not None else RemoteGateway(GatewayConfig.from_config(conf))

    sync = conf["sync"]
    delay_ms = int(sync["refresh_after_delete_ms"])
    mgr = SyncManager(
        gw,
        IdentityProvider(store),
        SuppressionStore(store),
        undo_window_sec=float(sync["undo_window_sec"]),
        refresh_after_delete=delay_ms / 1000.0 if delay_ms > 0 else None,
        on_event=on_event,
    )
    if sync["demo_mode"] and center is not None:
        n = mgr.seed_demo(demo_requests(Coordinate(*center), creator_id=DEMO_CREATOR_ID))
        _log("demo", "info", "seeded demo requests", count=n)
    return mgr
