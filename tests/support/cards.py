"""In-memory card store and actor directory for tests."""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from cardsync.domain.model import ActorDescriptor, ActorId, Card

if TYPE_CHECKING:
    from datetime import datetime


class InMemoryCardStore:
    """Card store keyed by slug; an active card claiming a mirror takes it over."""

    def __init__(self, cards: list[Card] | None = None) -> None:
        self.cards: dict[str, Card] = {}
        self._mirror_owner: dict[str, str] = {}
        self.history: list[tuple[Card, datetime | None, ActorId | None]] = []
        for card in cards or []:
            self._store(card)

    def _store(self, card: Card) -> Card:
        existing = self.cards.get(card.slug)
        card_id = existing.id if existing is not None else card.id or str(uuid.uuid4())
        stored = card.evolve(id=card_id)
        self.cards[card.slug] = stored
        for mirror in [key for key, slug in self._mirror_owner.items() if slug == card.slug]:
            del self._mirror_owner[mirror]
        if stored.active:
            for mirror in stored.mirrors:
                self._mirror_owner[mirror] = card.slug
        return stored

    def add(self, card: Card) -> Card:
        return self._store(card)

    def get(self, slug: str) -> Card:
        return self.cards[slug]

    async def get_element_by_mirror_id(self, card_type: str, mirror: str) -> Card | None:
        slug = self._mirror_owner.get(mirror)
        if slug is None:
            return None
        card = self.cards[slug]
        if card.type != card_type or not card.active:
            return None
        return card

    async def get_element_by_slug(self, card_type: str, slug: str) -> Card | None:
        card = self.cards.get(slug)
        if card is None or card.type != card_type:
            return None
        return card

    async def upsert(self, card: Card, *, timestamp: datetime, actor: ActorId) -> Card:
        stored = self._store(card)
        self.history.append((stored, timestamp, actor))
        return stored


class InMemoryActorDirectory:
    def __init__(self, known: tuple[str, ...] = ("admin",)) -> None:
        self.actors: dict[str, ActorId] = {
            handle: ActorId(f"actor-{handle}") for handle in known
        }
        self.calls: list[tuple[str, bool]] = []

    async def get_actor_id(
        self, descriptor: ActorDescriptor, *, create: bool = True
    ) -> ActorId | None:
        handle = descriptor.normalized_handle()
        self.calls.append((handle, create))
        actor = self.actors.get(handle)
        if actor is None and create:
            actor = ActorId(f"actor-{handle}")
            self.actors[handle] = actor
        return actor
