# helpsync/models.py
# help request value objects.
# Copyright (c) 2025-2026 CrossWatch / Cenodude (https://github.com/cenodude/CrossWatch)
from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Any, NamedTuple

from .errors import ValidationError

__all__ = ["Coordinate", "HelpRequest", "HelpRequestDraft", "RATING_MIN", "RATING_MAX", "DEFAULT_TITLE"]

RATING_MIN = 1
RATING_MAX = 5
DEFAULT_TITLE = "Help needed"


class Coordinate(NamedTuple):
    lat: float
    lng: float

    def validate(self) -> "Coordinate":
        try:
            lat, lng = float(self.lat), float(self.lng)
        except (TypeError, ValueError):
            raise ValidationError(f"location is not numeric: {tuple(self)!r}") from None
        if not (math.isfinite(lat) and math.isfinite(lng)):
            raise ValidationError("location must be finite")
        if not -90.0 <= lat <= 90.0:
            raise ValidationError(f"latitude out of range: {lat}")
        if not -180.0 <= lng <= 180.0:
            raise ValidationError(f"longitude out of range: {lng}")
        return Coordinate(lat, lng)

    @classmethod
    def of(cls, value: Any) -> "Coordinate":
        """Build and validate a coordinate from a (lat, lng) pair."""
        try:
            lat, lng = value
        except (TypeError, ValueError):
            raise ValidationError(f"location must be a (lat, lng) pair: {value!r}") from None
        return cls(lat, lng).validate()


def valid_rating(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and RATING_MIN <= value <= RATING_MAX


@dataclass(frozen=True, eq=False)
class HelpRequest:
    """A help request as held in the local collection.

    Identity is the ``id`` alone: two records with the same id compare equal
    and hash the same even when their fields diverge. Use ``same_fields`` to
    compare field values.
    """

    id: str
    title: str
    details: str
    location: Coordinate
    creator_id: str
    is_active: bool = True
    tip_amount: float | None = None
    helper_name: str | None = None
    rating: int | None = None
    accepted_by: str | None = None
    is_demo: bool = False

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, HelpRequest):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def same_fields(self, other: "HelpRequest") -> bool:
        return self._fields() == other._fields()

    def _fields(self) -> tuple[Any, ...]:
        return (
            self.id, self.title, self.details, tuple(self.location), self.creator_id,
            self.is_active, self.tip_amount, self.helper_name, self.rating,
            self.accepted_by, self.is_demo,
        )

    @property
    def is_completed(self) -> bool:
        return not self.is_active and self.helper_name is not None

    def completed(self, helper_name: str, rating: int) -> "HelpRequest":
        return replace(self, is_active=False, helper_name=helper_name, rating=rating, accepted_by=None)

    def accepted(self, helper: str) -> "HelpRequest":
        return replace(self, accepted_by=helper)


@dataclass(frozen=True)
class HelpRequestDraft:
    title: str
    details: str
    location: Coordinate
    creator_id: str
    tip_amount: float | None = None

    @classmethod
    def build(
        cls,
        title: str,
        details: str,
        *,
        location: Coordinate | tuple[float, float] | None,
        creator_id: str,
        tip_amount: float | None = None,
    ) -> "HelpRequestDraft":
        if location is None:
            raise ValidationError("location is unavailable")
        loc = Coordinate.of(location)
        if tip_amount is not None:
            try:
                tip = float(tip_amount)
            except (TypeError, ValueError):
                raise ValidationError(f"tip amount is not a number: {tip_amount!r}") from None
            if not math.isfinite(tip) or tip < 0:
                raise ValidationError(f"tip amount must be non-negative: {tip_amount!r}")
            tip_amount = tip
        t = (title or "").strip() or DEFAULT_TITLE
        return cls(title=t, details=details or "", location=loc, creator_id=creator_id, tip_amount=tip_amount)
