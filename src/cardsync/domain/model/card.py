"""Canonical card snapshots.

A :class:`Card` is an immutable snapshot of one internal entity. Reconciliation
never edits a snapshot it looked up; every change produces a new card through
:meth:`Card.evolve` or :meth:`Card.with_data`.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from .timestamps import parse_timestamp

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import datetime

MIRRORS_KEY = "mirrors"
TRANSLATE_DATE_KEY = "translateDate"
TRANSLATE_SEQUENCE_KEY = "translateSequence"
ORIGIN_KEY = "origin"


def _thaw(value: Any) -> Any:
    if isinstance(value, MappingProxyType | dict):
        return {key: _thaw(item) for key, item in value.items()}
    if isinstance(value, list | tuple):
        return [_thaw(item) for item in value]
    return copy.copy(value)


@dataclass(frozen=True, slots=True, kw_only=True)
class Card:
    slug: str
    type: str
    id: str | None = None
    name: str | None = None
    active: bool = True
    tags: tuple[str, ...] = ()
    data: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "tags", tuple(self.tags))
        object.__setattr__(self, "data", MappingProxyType(_thaw(self.data)))

    @property
    def mirrors(self) -> tuple[str, ...]:
        return tuple(self.data.get(MIRRORS_KEY) or ())

    @property
    def translate_date(self) -> datetime | None:
        return parse_timestamp(self.data.get(TRANSLATE_DATE_KEY))

    @property
    def translate_sequence(self) -> int | None:
        value = self.data.get(TRANSLATE_SEQUENCE_KEY)
        return value if isinstance(value, int) else None

    def data_dict(self) -> dict[str, Any]:
        """Return a mutable deep copy of ``data``."""

        return _thaw(self.data)

    def evolve(self, **changes: Any) -> Card:
        return replace(self, **changes)

    def with_data(self, data: Mapping[str, Any]) -> Card:
        return replace(self, data=data)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "slug": self.slug,
            "type": self.type,
            "active": self.active,
            "tags": list(self.tags),
            "data": self.data_dict(),
        }
        if self.id is not None:
            payload["id"] = self.id
        if self.name is not None:
            payload["name"] = self.name
        return payload

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> Card:
        return cls(
            id=payload.get("id"),
            slug=payload["slug"],
            type=payload["type"],
            name=payload.get("name"),
            active=payload.get("active", True),
            tags=tuple(payload.get("tags") or ()),
            data=payload.get("data") or {},
        )
