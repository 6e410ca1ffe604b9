"""Inbound events and the mutation instructions translation produces."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import StrEnum
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import datetime

    from .actor import ActorId
    from .card import Card


class EventKind(StrEnum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True, slots=True, kw_only=True)
class ExternalEvent:
    """Raw inbound webhook, one per delivery.

    ``payload`` is either the raw body or an already decoded JSON document.
    ``sequence`` is the ingestion order assigned by the receiver and breaks ties
    between events carrying the same timestamp. ``slug`` names the stored
    external-event card the delivery was recorded as, if any.
    """

    source: str
    headers: Mapping[str, str] = field(default_factory=dict)
    payload: Any = None
    timestamp: datetime | None = None
    sequence: int | None = None
    slug: str | None = None

    def __post_init__(self) -> None:
        lowered = {key.lower(): value for key, value in self.headers.items()}
        object.__setattr__(self, "headers", MappingProxyType(lowered))

    def header(self, name: str) -> str | None:
        return self.headers.get(name.lower())

    @property
    def raw_body(self) -> bytes:
        if isinstance(self.payload, bytes):
            return self.payload
        if isinstance(self.payload, str):
            return self.payload.encode("utf-8")
        return json.dumps(self.payload, separators=(",", ":")).encode("utf-8")

    def json(self) -> Any:
        """Return the payload decoded as JSON; raises ``ValueError`` if it is not."""

        if isinstance(self.payload, bytes | str):
            return json.loads(self.payload)
        return self.payload


@dataclass(frozen=True, slots=True, kw_only=True)
class MutationInstruction:
    """Upsert ``card`` as of ``time``, attributed to ``actor``."""

    time: datetime
    actor: ActorId
    card: Card
