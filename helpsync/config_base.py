# helpsync/config_base.py
# configuration loading for the help request sync layer.
# Copyright (c) 2025-2026 CrossWatch / Cenodude (https://github.com/cenodude/CrossWatch)
from __future__ import annotations

import copy
import json
import os
import secrets
import threading
import time
from pathlib import Path
from typing import Any, Dict

# ------------------------------------------------------------
# Base dir resolution
# ------------------------------------------------------------
def CONFIG_BASE() -> Path:
    """
    Determine the base directory for config files.

    Priority:
      1) $CONFIG_BASE if set
      2) /config (when running in container that mounts /config)
      3) Project root (one level up from this package)
    """
    env = os.getenv("CONFIG_BASE")
    if env:
        return Path(env)

    if Path("/app").exists():
        # In container images we mount /config as a writable volume
        return Path("/config")

    return Path(__file__).resolve().parents[1]


# Default config structure
DEFAULT_CFG: Dict[str, Any] = {
    # --- Remote service ------------------------------------------------------
    "remote": {
        "base_url": "",                                 # http(s)://host[:port] of the requests service (required)
        "timeout": 10.0,                                # HTTP timeout (seconds)
        "verify_ssl": True,                             # Verify TLS certificates
        "api_hits": False,                              # Emit api:hit events per HTTP call
    },

    # --- Sync behaviour ------------------------------------------------------
    "sync": {
        "undo_window_sec": 10,                          # How long a decline can be undone
        "refresh_after_delete_ms": 500,                 # Re-fetch this long after a confirmed delete; 0 = never
        "demo_mode": False,                             # Seed local-only demo requests around the user
    },

    # --- Runtime / Diagnostics ----------------------------------------------
    "runtime": {
        "debug": False,                                 # Extra verbose logging (debug level)
        "state_dir": "",                                # Optional override for state dir (defaults to CONFIG/state)
    },
}


# ------------------------------------------------------------
# Helpers: paths, IO, merging, normalization
# ------------------------------------------------------------
def _cfg_file() -> Path:
    return CONFIG_BASE() / "config.json"

def config_path() -> Path:
    return _cfg_file()


def _read_json(p: Path) -> Dict[str, Any]:
    with p.open("r", encoding="utf-8") as f:
        return json.load(f)


def _write_json_atomic(p: Path, data: Dict[str, Any]) -> None:
    p.parent.mkdir(parents=True, exist_ok=True)
    suffix = f".{time.time_ns()}.{os.getpid()}.{threading.get_ident()}.{secrets.token_hex(4)}.tmp"
    tmp = p.with_suffix(suffix)

    with tmp.open("w", encoding="utf-8", newline="\n") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
        f.write("\n")
    tmp.replace(p)


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    out = copy.deepcopy(base)
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _deep_merge(out[k], v)  # type: ignore[assignment]
        else:
            out[k] = v
    return out


def _as_bool(value: Any, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    s = str(value).strip().lower()
    if s in ("1", "true", "yes", "on"):
        return True
    if s in ("0", "false", "no", "off"):
        return False
    return default


def _as_number(value: Any, default: float, *, lo: float = 0.0) -> float:
    try:
        n = float(value)
    except (TypeError, ValueError):
        return default
    return max(lo, n)


def _normalize(cfg: Dict[str, Any]) -> Dict[str, Any]:
    remote = cfg.setdefault("remote", {})
    remote["base_url"] = str(remote.get("base_url") or "").strip().rstrip("/")
    remote["timeout"] = _as_number(remote.get("timeout"), 10.0, lo=0.5)
    remote["verify_ssl"] = _as_bool(remote.get("verify_ssl"), True)
    remote["api_hits"] = _as_bool(remote.get("api_hits"), False)

    sync = cfg.setdefault("sync", {})
    sync["undo_window_sec"] = _as_number(sync.get("undo_window_sec"), 10.0)
    sync["refresh_after_delete_ms"] = int(_as_number(sync.get("refresh_after_delete_ms"), 500))
    sync["demo_mode"] = _as_bool(sync.get("demo_mode"), False)

    rt = cfg.setdefault("runtime", {})
    rt["debug"] = _as_bool(rt.get("debug"), False)
    rt["state_dir"] = str(rt.get("state_dir") or "").strip()
    return cfg


# ------------------------------------------------------------
# Public API
# ------------------------------------------------------------
def load_config() -> Dict[str, Any]:
    """
    Read config.json merged over DEFAULT_CFG.
    A missing or unreadable file yields the defaults.
    """
    p = _cfg_file()
    user_cfg: Dict[str, Any] = {}
    if p.exists():
        try:
            user_cfg = _read_json(p)
        except Exception:
            user_cfg = {}
    if not isinstance(user_cfg, dict):
        user_cfg = {}

    return normalize_config(user_cfg)


def normalize_config(cfg: Dict[str, Any] | None) -> Dict[str, Any]:
    """Merge a possibly partial config over DEFAULT_CFG and coerce its values."""
    return _normalize(_deep_merge(DEFAULT_CFG, dict(cfg or {})))


def save_config(cfg: Dict[str, Any]) -> None:
    _write_json_atomic(_cfg_file(), normalize_config(cfg))


def state_dir(cfg: Dict[str, Any] | None = None) -> Path:
    rt = dict((cfg or {}).get("runtime") or {})
    override = str(rt.get("state_dir") or "").strip()
    if override:
        return Path(override)
    return CONFIG_BASE() / "state"
