"""Port for the actor directory."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from cardsync.domain.model import ActorDescriptor, ActorId


@runtime_checkable
class ActorDirectory(Protocol):
    async def get_actor_id(
        self, descriptor: ActorDescriptor, *, create: bool = True
    ) -> ActorId | None:
        """Look up the actor for ``descriptor.handle``, creating it when allowed."""
        ...


__all__ = ["ActorDirectory"]
