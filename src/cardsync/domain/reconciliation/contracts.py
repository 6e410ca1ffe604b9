"""Inputs and outputs of identity reconciliation."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from cardsync.domain.model import Card, EventKind

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import datetime

    from cardsync.domain.merge import FieldPath


class IdentityState(StrEnum):
    """Lifecycle of one local identity with respect to one remote."""

    UNKNOWN = "unknown"
    TRACKED_BY_MIRROR = "tracked-by-mirror"
    TRACKED_BY_SLUG = "tracked-by-slug"
    UNIFIED = "unified-into-other"
    INACTIVE = "inactive"

    @property
    def is_terminal(self) -> bool:
        return self in {IdentityState.UNIFIED, IdentityState.INACTIVE}


@dataclass(frozen=True, slots=True, kw_only=True)
class IdentityClaim:
    """What one decoded event asserts about one remote identity.

    ``fields`` holds the event's values keyed by card paths such as
    ``("data", "email")``; only paths listed in ``mutable_fields`` are merged.
    ``defaults`` are written after merging when a path ended up absent, and
    ``placeholders`` are values treated as absent while merging.
    """

    card_type: str
    slug: str
    base_url: str
    mirror: str
    kind: EventKind
    timestamp: datetime
    sequence: int | None = None
    fields: Mapping[FieldPath, Any] = field(default_factory=dict)
    mutable_fields: tuple[FieldPath, ...] = ()
    defaults: Mapping[FieldPath, Any] = field(default_factory=dict)
    placeholders: Mapping[FieldPath, Any] = field(default_factory=dict)
    skeleton: Card | None = None
    active: bool = True

    def new_card(self) -> Card:
        return self.skeleton or Card(slug=self.slug, type=self.card_type)


@dataclass(frozen=True, slots=True, kw_only=True)
class ReconciliationPlan:
    """Desired states computed for one claim; ``target`` is ``None`` for a no-op."""

    target: Card | None = None
    donor: Card | None = None
    target_state: IdentityState = IdentityState.UNKNOWN
    donor_state: IdentityState | None = None
    reason: str | None = None

    @property
    def is_noop(self) -> bool:
        return self.target is None

    def cards(self) -> tuple[Card, ...]:
        return tuple(card for card in (self.target, self.donor) if card is not None)
