# helpsync/identity.py
# per-installation user id.
# Copyright (c) 2025-2026 CrossWatch / Cenodude (https://github.com/cenodude/CrossWatch)
from __future__ import annotations

import uuid

from ._log import log
from .state_store import StateStore

__all__ = ["IdentityProvider", "new_user_id"]


def new_user_id() -> str:
    return "user_" + str(uuid.uuid4()).upper()[:6]


class IdentityProvider:
    """Stable user id for this installation.

    The first call generates an id and writes it to ``identity.json``; every
    later call, in this process or a later one, returns the same value. If the
    file cannot be written the id lives for this session only.
    """

    def __init__(self, store: StateStore):
        self.store = store
        self._cached: str | None = None

    def current_user_id(self) -> str:
        if self._cached:
            return self._cached

        data = self.store.read(self.store.identity, {})
        existing = data.get("user_id") if isinstance(data, dict) else None
        if isinstance(existing, str) and existing.strip():
            self._cached = existing.strip()
            return self._cached

        uid = new_user_id()
        try:
            self.store.write_atomic(self.store.identity, {"user_id": uid})
            log("IDENTITY", "user", "info", "generated user id", user_id=uid)
        except OSError as e:
            log("IDENTITY", "user", "warn", "cannot persist user id; using session id", user_id=uid, error=e)
        self._cached = uid
        return uid
