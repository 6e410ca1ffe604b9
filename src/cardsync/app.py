"""Application orchestration entry points."""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Any

from cardsync.adapters.http_resilience import ResilientClient
from cardsync.adapters.registry import admit_event, get_integration
from cardsync.adapters.remote import HttpRemoteRequester, static_token
from cardsync.adapters.sqlalchemy import (
    SqlAlchemyActorDirectory,
    SqlAlchemyCardStore,
    startup,
)
from cardsync.config import (
    DEFAULT_ACTOR_VAR,
    get_integration_token,
    get_resilience_config,
    get_sync_config,
    require_env_vars,
)
from cardsync.domain.actors import ActorResolver
from cardsync.domain.errors import SyncError, UnsupportedEventError
from cardsync.domain.integration import IntegrationContext
from cardsync.domain.model import ExternalEvent, parse_timestamp
from cardsync.domain.pipeline import mirror_card, translate_external_event

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping
    from pathlib import Path

    from cardsync.adapters.remote import ClientFactory, TokenProvider
    from cardsync.domain.model import ActorId, Card
    from cardsync.domain.ports import ActorDirectory, CardStore, RemoteRequester

log = getLogger(__name__)

# Sources whose remote calls run with the acting user's own OAuth token.
PER_ACTOR_AUTH_SOURCES = frozenset({"outreach"})

type RemoteFactory = Callable[[str], RemoteRequester | None]


@dataclass(frozen=True, slots=True)
class ImportResult:
    event: ExternalEvent
    cards: tuple[Card, ...] = ()
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def load_events(path: Path, *, source: str | None = None) -> list[ExternalEvent]:
    """Read recorded deliveries, one JSON object per line.

    Each line holds ``headers`` and either ``payload`` (decoded JSON) or ``body``
    (the raw string), plus optional ``source``, ``timestamp`` and ``sequence``.
    Lines without a sequence are numbered in file order.
    """

    events: list[ExternalEvent] = []
    with path.open(encoding="utf-8") as handle:
        for index, line in enumerate(handle):
            if not line.strip():
                continue
            record: dict[str, Any] = json.loads(line)
            payload = record["body"].encode("utf-8") if "body" in record else record.get("payload")
            event_source = source or record.get("source")
            if not event_source:
                raise ValueError(f"{path}:{index + 1} names no source")
            events.append(
                ExternalEvent(
                    source=event_source,
                    headers=record.get("headers") or {},
                    payload=payload,
                    timestamp=parse_timestamp(record.get("timestamp")),
                    sequence=record.get("sequence", index),
                    slug=record.get("slug"),
                )
            )
    return events


def build_token_provider(source: str, store: SqlAlchemyCardStore) -> TokenProvider:
    if source in PER_ACTOR_AUTH_SOURCES:

        async def provide(actor: ActorId) -> str | None:
            return await store.get_oauth_token(actor, source)

        return provide
    token = get_integration_token(source)
    return static_token(getattr(token, "api", None))


def http_remote_factory(
    store: SqlAlchemyCardStore, *, client_factory: ClientFactory = ResilientClient
) -> RemoteFactory:
    def factory(source: str) -> RemoteRequester:
        return HttpRemoteRequester(
            get_resilience_config(source),
            token_provider=build_token_provider(source, store),
            client_factory=client_factory,
        )

    return factory


async def import_events(
    events: Iterable[ExternalEvent],
    *,
    store: CardStore,
    actors: ActorDirectory,
    remote_factory: RemoteFactory | None = None,
    tokens: Mapping[str, object] | None = None,
    default_actor: str | None = None,
) -> list[ImportResult]:
    """Translate and import each event on its own; a failure is recorded, not raised."""

    results: list[ImportResult] = []
    for event in events:
        remote = remote_factory(event.source) if remote_factory is not None else None
        try:
            integration_cls = get_integration(event.source)
            if integration_cls is None:
                raise UnsupportedEventError(f"Unknown source {event.source!r}")  # noqa: TRY301
            token = tokens.get(event.source) if tokens is not None else None
            context = IntegrationContext(
                cards=store, actors=actors, remote=remote, default_actor=default_actor
            )
            cards = await translate_external_event(
                integration_cls, event, context=context, store=store, token=token
            )
            results.append(ImportResult(event=event, cards=tuple(cards)))
        except Exception as exc:  # noqa: BLE001
            log.exception("Failed to import %s event %s", event.source, event.sequence)
            results.append(ImportResult(event=event, error=exc))
        finally:
            if isinstance(remote, HttpRemoteRequester):
                await remote.aclose()
    return results


def translate_events_file(path: Path, *, source: str | None = None) -> list[ImportResult]:
    """Import recorded deliveries into the configured database."""

    factory = startup()
    store = SqlAlchemyCardStore(factory)
    events = load_events(path, source=source)
    sources = {event.source for event in events}
    log.info("Importing %s event(s) from %s", len(events), ", ".join(sorted(sources)) or "-")
    results = asyncio.run(
        import_events(
            events,
            store=store,
            actors=SqlAlchemyActorDirectory(factory),
            remote_factory=http_remote_factory(store),
            tokens={name: get_integration_token(name) for name in sources},
            default_actor=get_sync_config().default_actor,
        )
    )
    failed = sum(1 for result in results if not result.ok)
    log.info("Finished import: ok=%s, failed=%s", len(results) - failed, failed)
    return results


def verify_event_file(source: str, path: Path, headers: Mapping[str, str]) -> None:
    """Raise ``EventValidationError`` if the raw body in ``path`` would be rejected."""

    admit_event(source, get_integration_token(source), path.read_bytes(), headers)
    log.info("%s event in %s is valid", source, path)


async def mirror_stored_card(
    source: str,
    slug: str,
    card_type: str,
    *,
    store: CardStore,
    actors: ActorDirectory,
    remote: RemoteRequester | None,
    default_actor: str | None,
    token: object = None,
) -> list[Card]:
    integration_cls = get_integration(source)
    if integration_cls is None:
        raise UnsupportedEventError(f"Unknown source {source!r}")
    card = await store.get_element_by_slug(card_type, slug)
    if card is None:
        raise SyncError(f"No {card_type} card with slug {slug!r}")
    actor = await ActorResolver(actors).resolve_default(default_actor)
    context = IntegrationContext(
        cards=store, actors=actors, remote=remote, default_actor=default_actor
    )
    return await mirror_card(
        integration_cls, card, actor=actor, context=context, store=store, token=token
    )


def mirror_card_by_slug(source: str, slug: str, *, card_type: str = "contact") -> list[Card]:
    """Write one stored card back to ``source`` as the default actor."""

    default_actor = require_env_vars((DEFAULT_ACTOR_VAR,))[DEFAULT_ACTOR_VAR]
    factory = startup()
    store = SqlAlchemyCardStore(factory)
    remote = http_remote_factory(store)(source)

    async def run() -> list[Card]:
        try:
            return await mirror_stored_card(
                source,
                slug,
                card_type,
                store=store,
                actors=SqlAlchemyActorDirectory(factory),
                remote=remote,
                default_actor=default_actor,
                token=get_integration_token(source),
            )
        finally:
            if isinstance(remote, HttpRemoteRequester):
                await remote.aclose()

    cards = asyncio.run(run())
    log.info("Mirrored %s to %s; %s card(s) updated", slug, source, len(cards))
    return cards
