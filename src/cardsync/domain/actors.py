"""Actor resolution with a per-instance memo keyed by handle."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from cardsync.domain.errors import NoDefaultActorError, SyncError
from cardsync.domain.model import ActorDescriptor, ActorId

if TYPE_CHECKING:
    from cardsync.domain.ports import ActorDirectory

log = getLogger(__name__)


class ActorResolver:
    def __init__(self, directory: ActorDirectory) -> None:
        self._directory = directory
        self._by_handle: dict[str, ActorId] = {}

    async def resolve(self, descriptor: ActorDescriptor) -> ActorId:
        """Find or create the actor for ``descriptor``."""

        key = descriptor.normalized_handle()
        cached = self._by_handle.get(key)
        if cached is not None:
            return cached
        actor = await self._directory.get_actor_id(descriptor, create=True)
        if actor is None:
            raise SyncError(f"Actor {descriptor.handle!r} could not be resolved")
        self._by_handle[key] = actor
        return actor

    async def resolve_default(self, handle: str | None) -> ActorId:
        """Resolve the configured default actor, which must already exist."""

        if not handle:
            raise NoDefaultActorError(None)
        key = handle.strip().lower()
        cached = self._by_handle.get(key)
        if cached is not None:
            return cached
        actor = await self._directory.get_actor_id(ActorDescriptor(handle=handle), create=False)
        if actor is None:
            raise NoDefaultActorError(handle)
        log.debug("Resolved default actor %s -> %s", handle, actor)
        self._by_handle[key] = actor
        return actor

    def forget(self) -> None:
        self._by_handle.clear()
