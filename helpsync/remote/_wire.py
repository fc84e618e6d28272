# helpsync/remote/_wire.py
# wire payloads for the requests service.
# Copyright (c) 2025-2026 CrossWatch / Cenodude (https://github.com/cenodude/CrossWatch)
from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, ValidationError as PydanticValidationError, field_validator

from ..errors import DecodeError
from ..models import Coordinate, HelpRequest, HelpRequestDraft, valid_rating

__all__ = ["HelpRequestIn", "MUTABLE_FIELDS", "decode_item", "decode_list", "encode_draft"]

MUTABLE_FIELDS: frozenset[str] = frozenset(
    {"title", "details", "tipAmount", "isActive", "helperName", "rating"}
)


def _lenient(v: Any, kind: type) -> Any:
    # optional fields of the wrong type read as absent
    if v is None or isinstance(v, bool):
        return None
    if kind is float and isinstance(v, (int, float)):
        return float(v)
    if kind is int and isinstance(v, int):
        return v
    if kind is int and isinstance(v, float) and v.is_integer():
        return int(v)
    if kind is str and isinstance(v, str):
        return v
    return None


class HelpRequestIn(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    title: str
    details: str = ""
    tipAmount: Optional[float] = None
    lat: float
    lng: float
    isActive: bool
    helperName: Optional[str] = None
    rating: Optional[int] = None
    creatorId: str = "unknown"

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_str(cls, v: Any) -> Any:
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        if isinstance(v, str) and not v.strip():
            raise ValueError("empty id")
        return v

    @field_validator("tipAmount", mode="before")
    @classmethod
    def _tip(cls, v: Any) -> Any:
        tip = _lenient(v, float)
        return tip if tip is None or tip >= 0 else None

    @field_validator("rating", mode="before")
    @classmethod
    def _rating(cls, v: Any) -> Any:
        return _lenient(v, int)

    @field_validator("helperName", mode="before")
    @classmethod
    def _helper(cls, v: Any) -> Any:
        return _lenient(v, str)

    @field_validator("creatorId", mode="before")
    @classmethod
    def _creator(cls, v: Any) -> Any:
        return _lenient(v, str) or "unknown"

    def to_model(self) -> HelpRequest:
        helper = self.helperName or None
        rating = self.rating if valid_rating(self.rating) else None
        if self.isActive:
            # an active record's helper is whoever accepted it
            return HelpRequest(
                id=self.id,
                title=self.title,
                details=self.details,
                location=Coordinate(self.lat, self.lng),
                creator_id=self.creatorId,
                is_active=True,
                tip_amount=self.tipAmount,
                accepted_by=helper,
            )
        return HelpRequest(
            id=self.id,
            title=self.title,
            details=self.details,
            location=Coordinate(self.lat, self.lng),
            creator_id=self.creatorId,
            is_active=False,
            tip_amount=self.tipAmount,
            helper_name=helper,
            rating=rating if helper else None,
        )


def decode_item(raw: Any) -> HelpRequest:
    if not isinstance(raw, Mapping):
        raise DecodeError(f"expected a request object, got {type(raw).__name__}")
    try:
        return HelpRequestIn.model_validate(dict(raw)).to_model()
    except PydanticValidationError as e:
        raise DecodeError(f"malformed request payload: {e.error_count()} error(s): {e.errors()[0].get('msg')}") from e


def decode_list(raw: Any) -> list[HelpRequest]:
    if not isinstance(raw, list):
        raise DecodeError(f"expected a list of requests, got {type(raw).__name__}")
    out: dict[str, HelpRequest] = {}
    for it in raw:
        item = decode_item(it)
        out[item.id] = item
    return list(out.values())


def encode_draft(draft: HelpRequestDraft) -> dict[str, Any]:
    body: dict[str, Any] = {
        "title": draft.title,
        "details": draft.details,
        "lat": draft.location.lat,
        "lng": draft.location.lng,
        "creatorId": draft.creator_id,
    }
    if draft.tip_amount is not None:
        body["tipAmount"] = draft.tip_amount
    return body
