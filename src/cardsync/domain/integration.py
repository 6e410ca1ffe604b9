"""The contract every remote-service adapter implements."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Any, ClassVar

from pydantic import ValidationError

from cardsync.domain.actors import ActorResolver
from cardsync.domain.cache import LookupCache
from cardsync.domain.errors import RemoteRequestError, UnsupportedEventError
from cardsync.domain.ports import RemoteRequest
from cardsync.domain.reconciliation import EntityReconciler

if TYPE_CHECKING:
    from collections.abc import Mapping
    from types import TracebackType

    from cardsync.domain.model import ActorId, Card, ExternalEvent, MutationInstruction
    from cardsync.domain.ports import ActorDirectory, CardLookup, RemoteRequester

log = getLogger(__name__)


@dataclass(slots=True, kw_only=True)
class IntegrationContext:
    """Collaborators an adapter may use while translating or mirroring."""

    cards: CardLookup
    actors: ActorDirectory
    remote: RemoteRequester | None = None
    default_actor: str | None = None


class Integration[TokenT](ABC):
    """One adapter per remote service.

    Subclasses implement :meth:`translate_event`; :meth:`translate` wraps it so
    payloads that cannot be parsed, and events the adapter does not handle,
    come back as an empty instruction list. Import-only adapters keep the
    default :meth:`mirror`.
    """

    slug: ClassVar[str]
    base_url: ClassVar[str]

    def __init__(
        self,
        *,
        context: IntegrationContext,
        token: TokenT | None = None,
        cache: LookupCache[str, object] | None = None,
    ) -> None:
        self.context = context
        self.token = token
        self.cache: LookupCache[str, object] = cache if cache is not None else LookupCache()
        self.actors = ActorResolver(context.actors)
        self.reconciler = EntityReconciler(
            context.cards, self.actors, default_actor=context.default_actor
        )

    async def initialize(self) -> None:
        return None

    async def destroy(self) -> None:
        self.cache.clear()

    async def __aenter__(self) -> Integration[TokenT]:
        await self.initialize()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.destroy()

    async def translate(self, event: ExternalEvent) -> list[MutationInstruction]:
        try:
            return await self.translate_event(event)
        except UnsupportedEventError as exc:
            log.debug("Skipping %s event: %s", self.slug, exc)
        except (ValidationError, ValueError) as exc:
            log.debug("Skipping unparseable %s event: %s", self.slug, exc)
        return []

    @abstractmethod
    async def translate_event(self, event: ExternalEvent) -> list[MutationInstruction]:
        """Translate one admitted event; may raise ``UnsupportedEventError``."""

    async def fetch(
        self,
        url: str,
        *,
        cache_key: str | None = None,
        actor: ActorId | None = None,
    ) -> Any:
        """GET ``url`` for enrichment; 200 responses are cached under ``cache_key``."""

        if cache_key is not None:
            cached = self.cache.get(cache_key)
            if cached is not None:
                return cached
        remote = self.context.remote
        if remote is None:
            raise RemoteRequestError(f"{self.slug} has no remote requester")
        actor_id = actor if actor is not None else await self.reconciler.resolve_actor()
        response = await remote.request(actor_id, RemoteRequest(method="GET", url=url))
        if response.code != 200:
            raise RemoteRequestError(
                f"GET {url} returned {response.code}", code=response.code, body=response.body
            )
        if cache_key is not None:
            self.cache.put(cache_key, response.body)
        return response.body

    async def mirror(self, card: Card, *, actor: ActorId) -> list[MutationInstruction]:  # noqa: ARG002
        return []

    @staticmethod
    @abstractmethod
    def is_event_valid(token: object, raw_body: bytes, headers: Mapping[str, str]) -> bool:
        """Boundary predicate run before an event is admitted."""
