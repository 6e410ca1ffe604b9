"""HTTP implementation of the ``RemoteRequester`` port."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

from cardsync.adapters.http_resilience import ResilientClient
from cardsync.domain.errors import RemoteAuthError
from cardsync.domain.ports import RemoteRequest, RemoteResponse

if TYPE_CHECKING:
    import httpx

    from cardsync.config import ResilienceConfig
    from cardsync.domain.model import ActorId


TokenProvider = Callable[["ActorId"], Awaitable[str | None]]
ClientFactory = Callable[["ResilienceConfig"], ResilientClient]


def static_token(token: str | None) -> TokenProvider:
    """Token provider answering every actor with the same service token."""

    async def provide(_actor: ActorId) -> str | None:
        return token

    return provide


def _decode_body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


class HttpRemoteRequester:
    """Send requests as an actor using a bearer token from ``token_provider``."""

    def __init__(
        self,
        resilience: ResilienceConfig,
        *,
        token_provider: TokenProvider,
        client_factory: ClientFactory = ResilientClient,
    ) -> None:
        self.resilience = resilience
        self._token_provider = token_provider
        self._client_factory = client_factory
        self._client: ResilientClient | None = None

    async def request(self, actor: ActorId, request: RemoteRequest) -> RemoteResponse:
        token = await self._token_provider(actor)
        if not token:
            raise RemoteAuthError(f"Actor {actor} has no {self.resilience.name} authorization")

        if self._client is None:
            self._client = self._client_factory(self.resilience)
        headers = {"Authorization": f"Bearer {token}", **request.headers}
        response = await self._client.request(
            request.method,
            request.url,
            json=request.json,
            params=dict(request.params) if request.params else None,
            headers=headers,
        )
        if response.status_code == 401:
            raise RemoteAuthError(
                f"{self.resilience.name} rejected the authorization of actor {actor}"
            )
        return RemoteResponse(code=response.status_code, body=_decode_body(response))

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
