"""Actor identities attributed to mutations."""

from __future__ import annotations

from dataclasses import dataclass
from typing import NewType

ActorId = NewType("ActorId", str)


@dataclass(frozen=True, slots=True, kw_only=True)
class ActorDescriptor:
    """External identity used to find or create an internal actor."""

    handle: str
    name: str | None = None
    email: str | None = None

    def normalized_handle(self) -> str:
        return self.handle.strip().lower()
