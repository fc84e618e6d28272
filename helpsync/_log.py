# helpsync/_log.py
# component/operation log lines for the gateway, stores and manager.
# Copyright (c) 2025-2026 CrossWatch / Cenodude (https://github.com/cenodude/CrossWatch)
from __future__ import annotations

import json
import os
from datetime import datetime, timezone
from typing import Any

__all__ = ["log", "enable_debug", "threshold", "format_error"]

_LEVELS: dict[str, int] = {
    "off": 99,
    "error": 40,
    "warn": 30,
    "warning": 30,
    "info": 20,
    "debug": 10,
}

_TRUE = ("1", "true", "yes", "on")


def _num(level: str) -> int:
    return _LEVELS.get(str(level or "info").strip().lower(), 20)


def threshold(component: str) -> int:
    """Minimum level for a component: HELPSYNC_<COMP>_LOG_LEVEL, HELPSYNC_LOG_LEVEL, then HELPSYNC_DEBUG."""
    comp = str(component).strip().upper()
    v = os.getenv(f"HELPSYNC_{comp}_LOG_LEVEL") or os.getenv("HELPSYNC_LOG_LEVEL") or ""
    if v.strip():
        return _num(v)
    if (os.getenv("HELPSYNC_DEBUG") or "").strip().lower() in _TRUE:
        return _LEVELS["debug"]
    return _LEVELS["info"]


def enable_debug(on: bool = True) -> None:
    if on:
        os.environ["HELPSYNC_DEBUG"] = "1"
    else:
        os.environ.pop("HELPSYNC_DEBUG", None)


def format_error(err: BaseException) -> str:
    status = getattr(err, "status_code", None)
    head = type(err).__name__ if status is None else f"{type(err).__name__}[{status}]"
    text = " ".join(str(err).split())
    return f"{head}: {text}" if text else head


def _value(v: Any) -> Any:
    if isinstance(v, BaseException):
        return format_error(v)
    return v


def _kv(v: Any) -> str:
    s = " ".join(str(v).split())
    if not s or any(ch.isspace() or ch in '"=' for ch in s):
        return json.dumps(s, ensure_ascii=False)
    return s


def log(component: str, feature: str, level: str, msg: str, **fields: Any) -> None:
    """Print one log line to stdout.

    ``feature`` is the operation (``refresh``, ``complete``, ``decline``...).
    An ``id`` field names the help request and leads the line as ``#<id>``;
    exceptions are rendered as ``Type[status]: message``. Fields set to None
    are left out. HELPSYNC_LOG_FORMAT=json prints one JSON object instead.
    """
    comp = str(component).strip().upper()
    if _num(level) < threshold(comp):
        return

    request_id = fields.pop("id", None)
    extra = {k: _value(v) for k, v in sorted(fields.items()) if v is not None}
    lvl = str(level).strip().upper()

    if (os.getenv("HELPSYNC_LOG_FORMAT") or "").strip().lower() == "json":
        ts = datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")
        payload: dict[str, Any] = {"ts": ts, "component": comp, "feature": str(feature).lower(), "level": lvl}
        if request_id is not None:
            payload["request_id"] = str(request_id)
        payload["msg"] = " ".join(str(msg).split())
        payload.update(extra)
        print(json.dumps(payload, ensure_ascii=False, default=str), flush=True)
        return

    parts = [f"[{comp}:{str(feature).lower()}]", lvl]
    if request_id is not None:
        parts.append(f"#{request_id}")
    parts.append(" ".join(str(msg).split()))
    parts.extend(f"{k}={_kv(v)}" for k, v in extra.items())
    print(" ".join(parts), flush=True)
