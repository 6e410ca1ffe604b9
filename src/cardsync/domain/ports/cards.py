"""Ports for reading and writing canonical cards."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from datetime import datetime

    from cardsync.domain.model import ActorId, Card


@runtime_checkable
class CardLookup(Protocol):
    """Read side used by translation."""

    async def get_element_by_mirror_id(self, card_type: str, mirror: str) -> Card | None:
        """Return the active card of ``card_type`` whose mirrors contain ``mirror``."""
        ...

    async def get_element_by_slug(self, card_type: str, slug: str) -> Card | None:
        """Return the card with ``slug`` regardless of its ``active`` flag."""
        ...


@runtime_checkable
class CardStore(CardLookup, Protocol):
    """Durable store applying mutation instructions one card at a time."""

    async def upsert(self, card: Card, *, timestamp: datetime, actor: ActorId) -> Card: ...


__all__ = ["CardLookup", "CardStore"]
