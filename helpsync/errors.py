# helpsync/errors.py
# error taxonomy shared by the gateway and the sync manager.
# Copyright (c) 2025-2026 CrossWatch / Cenodude (https://github.com/cenodude/CrossWatch)
from __future__ import annotations

__all__ = [
    "SyncError",
    "NetworkError",
    "RemoteStatusError",
    "DecodeError",
    "ValidationError",
    "ConfigError",
]


class SyncError(RuntimeError): ...
class ConfigError(SyncError): ...
class DecodeError(SyncError): ...
class ValidationError(SyncError, ValueError): ...


class NetworkError(SyncError):
    def __init__(self, message: str, *, method: str | None = None, url: str | None = None):
        super().__init__(message)
        self.method = method
        self.url = url


class RemoteStatusError(NetworkError):
    def __init__(self, status_code: int, *, method: str | None = None, url: str | None = None, body: str = ""):
        super().__init__(f"HTTP {status_code} for {method or '?'} {url or '?'}", method=method, url=url)
        self.status_code = int(status_code)
        self.body = body[:200]
