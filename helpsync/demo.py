# helpsync/demo.py
# local-only sample requests for demos and first launch.
# Copyright (c) 2025-2026 CrossWatch / Cenodude (https://github.com/cenodude/CrossWatch)
from __future__ import annotations

from .models import Coordinate, HelpRequest

__all__ = ["DEMO_CREATOR_ID", "demo_requests"]

DEMO_CREATOR_ID = "demo_neighbor"

# sample ids are demo-<position> and stable across seeds
# title, details, tip, lat offset, lng offset
_SAMPLES: tuple[tuple[str, str, float | None, float, float], ...] = (
    ("Groceries from the corner store", "Bread, milk and eggs. Back hurts today.", 10.0, 0.0008, -0.0012),
    ("Shovel the front walk", "About 20 feet of sidewalk before the mail comes.", 15.0, -0.0011, 0.0006),
    ("Set up a new phone", "Need help moving contacts and photos.", None, 0.0004, 0.0015),
)


def demo_requests(center: Coordinate, *, creator_id: str = DEMO_CREATOR_ID) -> list[HelpRequest]:
    out: list[HelpRequest] = []
    for n, (title, details, tip, dlat, dlng) in enumerate(_SAMPLES, start=1):
        lat = max(-90.0, min(90.0, center.lat + dlat))
        lng = max(-180.0, min(180.0, center.lng + dlng))
        out.append(
            HelpRequest(
                id=f"demo-{n}",
                title=title,
                details=details,
                location=Coordinate(lat, lng),
                creator_id=creator_id,
                tip_amount=tip,
                is_demo=True,
            )
        )
    return out
