# helpsync test scripts
from __future__ import annotations

import asyncio
import sys
import uuid
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from helpsync.identity import IdentityProvider  # noqa: E402
from helpsync.manager import SyncManager  # noqa: E402
from helpsync.models import Coordinate, HelpRequest, HelpRequestDraft  # noqa: E402
from helpsync.state_store import StateStore  # noqa: E402
from helpsync.suppression import SuppressionStore  # noqa: E402

ME = "user_ME0001"
HOME = Coordinate(42.8600, -90.1790)


def make_request(request_id: str, **kw: Any) -> HelpRequest:
    base: dict[str, Any] = {
        "title": f"Request {request_id}",
        "details": "",
        "location": HOME,
        "creator_id": "user_OTHER",
        "is_active": True,
    }
    base.update(kw)
    return HelpRequest(id=str(request_id), **base)


@dataclass
class FakeGateway:
    remote: dict[str, HelpRequest] = field(default_factory=dict)
    fail: dict[str, Exception] = field(default_factory=dict)
    create_ids: list[str] = field(default_factory=list)
    list_gate: asyncio.Event | None = None
    list_calls: int = 0
    create_calls: list[HelpRequestDraft] = field(default_factory=list)
    update_calls: list[tuple[str, dict[str, Any]]] = field(default_factory=list)
    delete_calls: list[str] = field(default_factory=list)
    closed: bool = False

    def _maybe_fail(self, op: str) -> None:
        err = self.fail.get(op)
        if err is not None:
            raise err

    async def list_active(self) -> list[HelpRequest]:
        self.list_calls += 1
        # the server answers with its state at request time
        listed = list(self.remote.values())
        if self.list_gate is not None:
            await self.list_gate.wait()
        else:
            await asyncio.sleep(0)
        self._maybe_fail("list")
        return listed

    async def create(self, draft: HelpRequestDraft) -> HelpRequest:
        self.create_calls.append(draft)
        await asyncio.sleep(0)
        self._maybe_fail("create")
        rid = self.create_ids.pop(0) if self.create_ids else str(uuid.uuid4())
        item = HelpRequest(
            id=rid,
            title=draft.title,
            details=draft.details,
            location=draft.location,
            creator_id=draft.creator_id,
            tip_amount=draft.tip_amount,
        )
        self.remote[rid] = item
        return item

    async def update(self, request_id: str, fields: Mapping[str, Any]) -> None:
        self.update_calls.append((request_id, dict(fields)))
        await asyncio.sleep(0)
        self._maybe_fail("update")
        cur = self.remote.get(request_id)
        if cur is None:
            return
        if fields.get("isActive") is False:
            self.remote[request_id] = cur.completed(fields["helperName"], fields["rating"])
        elif "helperName" in fields:
            self.remote[request_id] = replace(cur, accepted_by=fields["helperName"])

    async def delete(self, request_id: str) -> None:
        self.delete_calls.append(request_id)
        await asyncio.sleep(0)
        self._maybe_fail("delete")
        self.remote.pop(request_id, None)

    def close(self) -> None:
        self.closed = True


@pytest.fixture()
def config_base(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.setenv("CONFIG_BASE", str(tmp_path))
    return tmp_path


@pytest.fixture()
def store(tmp_path: Path) -> StateStore:
    s = StateStore(tmp_path / "state")
    s.write_atomic(s.identity, {"user_id": ME})
    return s


@pytest.fixture()
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture()
def make_manager(gateway: FakeGateway, store: StateStore) -> Callable[..., SyncManager]:
    def _make(**kw: Any) -> SyncManager:
        return SyncManager(gateway, IdentityProvider(store), SuppressionStore(store), **kw)

    return _make
