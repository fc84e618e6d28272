# helpsync/remote/gateway.py
# Remote gateway for the help requests service.
# Copyright (c) 2025-2026 CrossWatch / Cenodude (https://github.com/cenodude/CrossWatch)
from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Mapping
from urllib.parse import quote

import requests

from .._log import log
from ..errors import ConfigError, NetworkError, RemoteStatusError, ValidationError
from ..models import HelpRequest, HelpRequestDraft
from ._common import build_session, json_or_raise
from ._wire import MUTABLE_FIELDS, decode_item, decode_list, encode_draft

__VERSION__ = "1.0.0"
__all__ = ["GatewayConfig", "RemoteGateway"]


def _log(level: str, msg: str, **fields: Any) -> None:
    log("GATEWAY", "requests", level, msg, **fields)


@dataclass
class GatewayConfig:
    base_url: str
    timeout: float = 10.0
    verify_ssl: bool = True
    api_hits: bool = False

    @classmethod
    def from_config(cls, cfg: Mapping[str, Any]) -> "GatewayConfig":
        r = dict(cfg.get("remote") or {})
        base = str(r.get("base_url") or "").strip().rstrip("/")
        if not base:
            raise ConfigError("Missing remote.base_url")
        return cls(
            base_url=base,
            timeout=float(r.get("timeout", 10.0)),
            verify_ssl=bool(r.get("verify_ssl", True)),
            api_hits=bool(r.get("api_hits", False)),
        )


class RemoteGateway:
    """CRUD access to ``/requests``; the only code in helpsync that talks to the network.

    Every operation is awaitable. The blocking ``requests`` call runs in a
    worker thread so the event loop keeps serving other work meanwhile.
    Failures are raised to the caller as ``NetworkError`` (``RemoteStatusError``
    for non-2xx) or ``DecodeError`` and are never retried here.
    """

    def __init__(self, cfg: GatewayConfig, *, session: Any = None, ctx: Any = None):
        self.cfg = cfg
        self.base = cfg.base_url.rstrip("/")
        self.session = session or build_session(
            "GATEWAY",
            ctx,
            emit_hits=cfg.api_hits,
            verify_ssl=cfg.verify_ssl,
        )

    def _url(self, request_id: str | None = None) -> str:
        if request_id is None:
            return f"{self.base}/requests"
        return f"{self.base}/requests/{quote(str(request_id), safe='')}"

    def _send(self, method: str, url: str, **kw: Any) -> Any:
        start = time.perf_counter()
        try:
            resp = self.session.request(method, url, timeout=self.cfg.timeout, **kw)
        except requests.RequestException as e:
            _log("warn", "transport failure", method=method, url=url, error=e)
            raise NetworkError(f"{method} {url} failed: {e}", method=method, url=url) from e
        ms = int((time.perf_counter() - start) * 1000)
        _log("debug", "http", method=method, url=url, status=resp.status_code, ms=ms)
        return resp

    async def _call(self, method: str, url: str, **kw: Any) -> Any:
        return await asyncio.to_thread(self._send, method, url, **kw)

    @staticmethod
    def _check(resp: Any, method: str, url: str, *, ok_extra: tuple[int, ...] = ()) -> None:
        code = int(resp.status_code)
        if 200 <= code < 300 or code in ok_extra:
            return
        raise RemoteStatusError(code, method=method, url=url, body=str(resp.text or ""))

    async def list_active(self) -> list[HelpRequest]:
        url = self._url()
        resp = await self._call("GET", url)
        self._check(resp, "GET", url)
        items = decode_list(json_or_raise(resp))
        _log("debug", "listed", count=len(items))
        return items

    async def create(self, draft: HelpRequestDraft) -> HelpRequest:
        url = self._url()
        resp = await self._call("POST", url, json=encode_draft(draft))
        self._check(resp, "POST", url)
        item = decode_item(json_or_raise(resp))
        _log("info", "created", id=item.id)
        return item

    async def update(self, request_id: str, fields: Mapping[str, Any]) -> None:
        body = dict(fields or {})
        if not body:
            raise ValidationError("update needs at least one field")
        bad = sorted(set(body) - MUTABLE_FIELDS)
        if bad:
            raise ValidationError(f"fields cannot be updated: {', '.join(bad)}")
        url = self._url(request_id)
        resp = await self._call("PUT", url, json=body)
        self._check(resp, "PUT", url)
        _log("info", "updated", id=request_id, fields=",".join(sorted(body)))

    async def delete(self, request_id: str) -> None:
        url = self._url(request_id)
        resp = await self._call("DELETE", url)
        # already gone counts as deleted
        self._check(resp, "DELETE", url, ok_extra=(404,))
        _log("info", "deleted", id=request_id, status=resp.status_code)

    def close(self) -> None:
        close = getattr(self.session, "close", None)
        if callable(close):
            close()
