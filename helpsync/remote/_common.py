# helpsync/remote/_common.py
# HTTP session helpers for the requests service.
# Copyright (c) 2025-2026 CrossWatch / Cenodude (https://github.com/cenodude/CrossWatch)
from __future__ import annotations

import json
from typing import Any, Callable, Mapping
from urllib.parse import urlparse

import requests

from ..errors import DecodeError

__all__ = [
    "HitSession",
    "make_emitter",
    "build_session",
    "label_requests",
    "json_or_raise",
]

EmitFn = Callable[[str, Mapping[str, Any]], None]
FeatureLabelFn = Callable[[str, str, Mapping[str, Any]], str]


def make_emitter(ctx: Any) -> EmitFn:
    emit_fn: Callable[..., Any] | None = None
    if ctx is not None:
        if hasattr(ctx, "emit") and callable(getattr(ctx, "emit")):
            emit_fn = getattr(ctx, "emit")
        elif callable(ctx):
            emit_fn = ctx

    def _emit(event: str, payload: Mapping[str, Any]) -> None:
        if not emit_fn:
            return
        try:
            try:
                emit_fn(event, **dict(payload))
            except TypeError:
                emit_fn(event, dict(payload))
        except Exception:
            pass

    return _emit


def label_requests(method: str, url: str, kw: Mapping[str, Any]) -> str:
    p = urlparse(url)
    segs = [s for s in (p.path or "/").split("/") if s]
    m = method.upper()
    if segs[-1:] == ["requests"]:
        if m == "GET":
            return "requests:index"
        if m == "POST":
            return "requests:create"
    if len(segs) >= 2 and segs[-2] == "requests":
        if m == "PUT":
            return "requests:update"
        if m == "DELETE":
            return "requests:delete"
        return "requests:item"
    return "/".join(segs[:3]).lower() or "unknown"


class HitSession(requests.Session):
    def __init__(
        self,
        component: str,
        emit: EmitFn,
        feature_label: FeatureLabelFn | None = None,
        emit_hits: bool = False,
    ):
        super().__init__()
        self._component = component
        self._emit = emit
        self._label = feature_label or label_requests
        self._emit_hits = bool(emit_hits)

    def request(self, method: str, url: str, **kwargs: Any) -> requests.Response:  # type: ignore[override]
        try:
            return super().request(method, url, **kwargs)
        finally:
            if self._emit_hits:
                try:
                    feature = self._label(method.upper(), url, kwargs)
                except Exception:
                    feature = "unknown"
                self._emit("api:hit", {"component": self._component, "feature": feature})


def build_session(
    component: str,
    ctx: Any = None,
    *,
    feature_label: FeatureLabelFn | None = None,
    emit_hits: bool = False,
    verify_ssl: bool = True,
) -> HitSession:
    sess = HitSession(component, make_emitter(ctx), feature_label, emit_hits)
    sess.verify = verify_ssl
    sess.headers.update({"Accept": "application/json"})
    return sess


def json_or_raise(resp: Any) -> Any:
    text = resp.text or ""
    if not text.strip():
        raise DecodeError(f"empty response body (HTTP {resp.status_code})")
    try:
        return json.loads(text)
    except ValueError as e:
        raise DecodeError(f"response is not JSON (HTTP {resp.status_code}): {e}") from e
