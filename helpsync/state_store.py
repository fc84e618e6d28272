# helpsync/state_store.py
# local state files (identity, declined requests).
# Copyright (c) 2025-2026 CrossWatch / Cenodude (https://github.com/cenodude/CrossWatch)
from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any


@dataclass
class StateStore:
    base_path: Path

    def __post_init__(self) -> None:
        self.base_path = Path(self.base_path)

    @property
    def identity(self) -> Path:
        return self.base_path / "identity.json"

    @property
    def declined(self) -> Path:
        return self.base_path / "declined.json"

    def read(self, p: Path, default: Any) -> Any:
        if not p.exists():
            return default
        try:
            return json.loads(p.read_text("utf-8"))
        except Exception:
            return default

    def write_atomic(self, p: Path, data: Any) -> None:
        # raises OSError; callers decide whether persistence is optional
        p.parent.mkdir(parents=True, exist_ok=True)
        tmp = p.with_suffix(p.suffix + f".{os.getpid()}.tmp")
        try:
            tmp.write_text(json.dumps(data, ensure_ascii=False, indent=2), "utf-8")
            tmp.replace(p)
        finally:
            if tmp.exists():
                tmp.unlink()
