"""Card store and actor directory backed by SQLAlchemy sessions.

The ports are async; these implementations run their (short, local) queries
synchronously inside the coroutine.
"""

from __future__ import annotations

import uuid
from logging import getLogger
from typing import TYPE_CHECKING, Any

from sqlalchemy import delete, insert, select, update

from cardsync.domain.model import ActorId, Card, ensure_utc

from .tables import actors_table, card_mirrors_table, cards_table

if TYPE_CHECKING:
    from datetime import datetime

    from sqlalchemy.engine import Row
    from sqlalchemy.orm import Session, sessionmaker

    from cardsync.domain.model import ActorDescriptor

log = getLogger(__name__)


def _parse_uuid(value: str | None) -> uuid.UUID | None:
    if value is None:
        return None
    try:
        return uuid.UUID(value)
    except ValueError:
        return None


def _row_to_card(row: Row[Any]) -> Card:
    return Card(
        id=str(row.id),
        slug=row.slug,
        type=row.type,
        name=row.name,
        active=row.active,
        tags=tuple(row.tags or ()),
        data=row.data or {},
    )


class SqlAlchemyCardStore:
    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self.session_factory = session_factory

    async def get_element_by_mirror_id(self, card_type: str, mirror: str) -> Card | None:
        stmt = (
            select(cards_table)
            .join(card_mirrors_table, card_mirrors_table.c.card_id == cards_table.c.id)
            .where(card_mirrors_table.c.mirror == mirror)
            .where(cards_table.c.type == card_type)
            .where(cards_table.c.active.is_(True))
        )
        with self.session_factory() as session:
            row = session.execute(stmt).first()
        return _row_to_card(row) if row is not None else None

    async def get_element_by_slug(self, card_type: str, slug: str) -> Card | None:
        stmt = select(cards_table).where(cards_table.c.slug == slug)
        with self.session_factory() as session:
            row = session.execute(stmt).first()
        if row is None or row.type != card_type:
            return None
        return _row_to_card(row)

    async def upsert(self, card: Card, *, timestamp: datetime, actor: ActorId) -> Card:
        """Insert or update ``card`` by slug and move its mirror claims to it."""

        moment = ensure_utc(timestamp)
        values = {
            "type": card.type,
            "name": card.name,
            "active": card.active,
            "tags": list(card.tags),
            "data": card.data_dict(),
            "updated_at": moment,
            "updated_by": str(actor),
        }
        with self.session_factory() as session, session.begin():
            existing = session.execute(
                select(cards_table.c.id).where(cards_table.c.slug == card.slug)
            ).scalar_one_or_none()
            if existing is None:
                card_id = _parse_uuid(card.id) or uuid.uuid4()
                session.execute(
                    insert(cards_table).values(
                        id=card_id, slug=card.slug, created_at=moment, **values
                    )
                )
            else:
                card_id = existing
                session.execute(
                    update(cards_table).where(cards_table.c.id == card_id).values(**values)
                )
            self._claim_mirrors(session, card_id, card)
            row = session.execute(select(cards_table).where(cards_table.c.id == card_id)).one()
        return _row_to_card(row)

    def _claim_mirrors(self, session: Session, card_id: uuid.UUID, card: Card) -> None:
        session.execute(delete(card_mirrors_table).where(card_mirrors_table.c.card_id == card_id))
        if not card.active:
            return
        for mirror in dict.fromkeys(card.mirrors):
            previous = session.execute(
                select(card_mirrors_table.c.card_id).where(card_mirrors_table.c.mirror == mirror)
            ).scalar_one_or_none()
            if previous is not None:
                session.execute(
                    delete(card_mirrors_table).where(card_mirrors_table.c.mirror == mirror)
                )
                log.warning("Mirror %s moved from card %s to %s", mirror, previous, card.slug)
            session.execute(insert(card_mirrors_table).values(mirror=mirror, card_id=card_id))

    async def get_oauth_token(self, actor: ActorId, source: str) -> str | None:
        stmt = select(actors_table.c.oauth).where(actors_table.c.id == uuid.UUID(actor))
        with self.session_factory() as session:
            oauth = session.execute(stmt).scalar_one_or_none()
        token = (oauth or {}).get(source)
        return token if isinstance(token, str) else None


class SqlAlchemyActorDirectory:
    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self.session_factory = session_factory

    async def get_actor_id(
        self, descriptor: ActorDescriptor, *, create: bool = True
    ) -> ActorId | None:
        handle = descriptor.normalized_handle()
        with self.session_factory() as session, session.begin():
            actor_id = session.execute(
                select(actors_table.c.id).where(actors_table.c.handle == handle)
            ).scalar_one_or_none()
            if actor_id is None:
                if not create:
                    return None
                actor_id = uuid.uuid4()
                session.execute(
                    insert(actors_table).values(
                        id=actor_id,
                        handle=handle,
                        name=descriptor.name,
                        email=descriptor.email,
                        oauth={},
                    )
                )
                log.info("Created actor %s", handle)
        return ActorId(str(actor_id))

    def set_oauth_token(self, actor: ActorId, source: str, token: str) -> None:
        with self.session_factory() as session, session.begin():
            oauth = session.execute(
                select(actors_table.c.oauth).where(actors_table.c.id == uuid.UUID(actor))
            ).scalar_one()
            session.execute(
                update(actors_table)
                .where(actors_table.c.id == uuid.UUID(actor))
                .values(oauth={**(oauth or {}), source: token})
            )
