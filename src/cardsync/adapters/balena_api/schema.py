"""Pydantic models describing user-directory webhook payloads."""

from __future__ import annotations

from datetime import datetime  # noqa: TC003
from typing import Literal

from pydantic import BaseModel, ConfigDict, field_validator

from cardsync.domain.model import EventKind


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class BalenaBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class UserPayload(BalenaBaseModel):
    id: int | str
    username: str
    email: str | None = None
    company: str | None = None
    first_name: str | None = None
    last_name: str | None = None

    _normalize_optional = field_validator(
        "email", "company", "first_name", "last_name", mode="before"
    )(_blank_to_none)

    @field_validator("username", mode="before")
    @classmethod
    def _strip_username(cls, value: object) -> object:
        return value.strip() if isinstance(value, str) else value


class ResourceEvent(BalenaBaseModel):
    """Envelope of one resource change."""

    timestamp: datetime
    resource: str
    source: str | None = None
    type: Literal["create", "update", "delete"]
    payload: dict[str, object]

    @property
    def kind(self) -> EventKind:
        return EventKind(self.type)
