"""Port for authenticated calls to a remote service on behalf of an actor."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Literal, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping

    from cardsync.domain.model import ActorId

type HttpMethod = Literal["GET", "POST", "PATCH", "PUT", "DELETE"]


@dataclass(frozen=True, slots=True, kw_only=True)
class RemoteRequest:
    method: HttpMethod
    url: str
    json: Any = None
    params: Mapping[str, str] | None = None
    headers: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True, kw_only=True)
class RemoteResponse:
    code: int
    body: Any = None


@runtime_checkable
class RemoteRequester(Protocol):
    async def request(self, actor: ActorId, request: RemoteRequest) -> RemoteResponse:
        """Send ``request`` with ``actor``'s credentials.

        Raises ``RemoteAuthError`` when the actor holds no usable authorization.
        Other statuses are returned as-is for the caller to judge.
        """
        ...


__all__ = ["HttpMethod", "RemoteRequest", "RemoteRequester", "RemoteResponse"]
