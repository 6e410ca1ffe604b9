from __future__ import annotations

import asyncio
from datetime import UTC, datetime

from sqlalchemy.orm import Session, sessionmaker  # noqa: TC002

from cardsync.adapters.sqlalchemy import SqlAlchemyActorDirectory, SqlAlchemyCardStore
from cardsync.domain.model import ActorDescriptor, ActorId, Card
from cardsync.domain.ports import ActorDirectory, CardStore

T0 = datetime(2024, 3, 1, 12, tzinfo=UTC)
ACTOR = ActorId("00000000-0000-0000-0000-000000000001")
MIRROR = "https://api.balena-cloud.com/v5/user(124)"


def _card(slug: str, *, mirrors: list[str] | None = None, active: bool = True) -> Card:
    return Card(slug=slug, type="user", active=active, data={"mirrors": mirrors or []})


def test_adapters_satisfy_ports(session_factory: sessionmaker[Session]) -> None:
    assert isinstance(SqlAlchemyCardStore(session_factory), CardStore)
    assert isinstance(SqlAlchemyActorDirectory(session_factory), ActorDirectory)


def test_upsert_inserts_then_updates_by_slug(session_factory: sessionmaker[Session]) -> None:
    store = SqlAlchemyCardStore(session_factory)

    async def run() -> tuple[Card, Card, Card | None]:
        created = await store.upsert(_card("user-jane"), timestamp=T0, actor=ACTOR)
        updated = await store.upsert(
            _card("user-jane").evolve(name="Jane", tags=("vip",)), timestamp=T0, actor=ACTOR
        )
        return created, updated, await store.get_element_by_slug("user", "user-jane")

    created, updated, fetched = asyncio.run(run())

    assert created.id is not None
    assert updated.id == created.id
    assert fetched == updated
    assert fetched.name == "Jane"
    assert fetched.tags == ("vip",)


def test_slug_lookup_checks_type(session_factory: sessionmaker[Session]) -> None:
    store = SqlAlchemyCardStore(session_factory)
    asyncio.run(store.upsert(_card("user-jane"), timestamp=T0, actor=ACTOR))

    assert asyncio.run(store.get_element_by_slug("contact", "user-jane")) is None
    assert asyncio.run(store.get_element_by_slug("user", "user-missing")) is None


def test_mirror_claim_moves_to_latest_card(session_factory: sessionmaker[Session]) -> None:
    store = SqlAlchemyCardStore(session_factory)

    async def run() -> Card | None:
        await store.upsert(_card("user-a", mirrors=[MIRROR]), timestamp=T0, actor=ACTOR)
        await store.upsert(_card("user-b", mirrors=[MIRROR]), timestamp=T0, actor=ACTOR)
        return await store.get_element_by_mirror_id("user", MIRROR)

    owner = asyncio.run(run())

    assert owner is not None
    assert owner.slug == "user-b"


def test_inactive_cards_are_not_found_by_mirror(session_factory: sessionmaker[Session]) -> None:
    store = SqlAlchemyCardStore(session_factory)

    async def run() -> tuple[Card | None, Card | None]:
        await store.upsert(_card("user-a", mirrors=[MIRROR]), timestamp=T0, actor=ACTOR)
        await store.upsert(
            _card("user-a", mirrors=[MIRROR], active=False), timestamp=T0, actor=ACTOR
        )
        return (
            await store.get_element_by_mirror_id("user", MIRROR),
            await store.get_element_by_slug("user", "user-a"),
        )

    by_mirror, by_slug = asyncio.run(run())

    assert by_mirror is None
    assert by_slug is not None
    assert by_slug.active is False


def test_actor_directory_creates_only_when_allowed(
    session_factory: sessionmaker[Session],
) -> None:
    directory = SqlAlchemyActorDirectory(session_factory)

    async def run() -> tuple[ActorId | None, ActorId | None, ActorId | None]:
        missing = await directory.get_actor_id(ActorDescriptor(handle="admin"), create=False)
        created = await directory.get_actor_id(ActorDescriptor(handle="Admin", name="Admin"))
        again = await directory.get_actor_id(ActorDescriptor(handle="admin"), create=False)
        return missing, created, again

    missing, created, again = asyncio.run(run())

    assert missing is None
    assert created is not None
    assert again == created


def test_oauth_tokens_are_stored_per_source(session_factory: sessionmaker[Session]) -> None:
    directory = SqlAlchemyActorDirectory(session_factory)
    store = SqlAlchemyCardStore(session_factory)
    actor = asyncio.run(directory.get_actor_id(ActorDescriptor(handle="jane")))
    assert actor is not None

    directory.set_oauth_token(actor, "outreach", "oauth-token")

    assert asyncio.run(store.get_oauth_token(actor, "outreach")) == "oauth-token"
    assert asyncio.run(store.get_oauth_token(actor, "typeform")) is None
