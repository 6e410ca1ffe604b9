"""Configuration types for resilient HTTP clients talking to remote services."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

import httpx

if TYPE_CHECKING:
    from collections.abc import Mapping

ResponseHook = Callable[[httpx.Response], Awaitable[None] | None]
ShouldCacheHook = Callable[[object], bool]

# Writes are not idempotent on every remote, so POST is left out.
_RETRYABLE_METHODS = frozenset({"DELETE", "GET", "HEAD", "OPTIONS", "PATCH", "PUT"})


class RetryablePayloadError(httpx.HTTPError):
    """Raised by response hooks when a payload-level condition should trigger a retry."""

    def __init__(self, message: str, *, response: httpx.Response) -> None:
        super().__init__(message)
        self.response = response


@dataclass(slots=True, frozen=True)
class RetryPolicy:
    total: int = 3
    backoff_factor: float = 0.5
    max_backoff_wait: float = 30.0
    respect_retry_after_header: bool = True
    allowed_methods: frozenset[str] = _RETRYABLE_METHODS
    status_forcelist: frozenset[int] = field(
        default_factory=lambda: frozenset({429, 500, 502, 503, 504})
    )
    retry_on_exceptions: tuple[type[httpx.HTTPError], ...] = (
        httpx.TimeoutException,
        httpx.NetworkError,
        httpx.RemoteProtocolError,
        RetryablePayloadError,
    )
    backoff_jitter: float = 1.0


@dataclass(slots=True, frozen=True)
class RateLimit:
    max_calls: int
    per_seconds: float


@dataclass(slots=True, frozen=True)
class CacheConfig:
    enabled: bool = True
    backend: Literal["sqlite", "memory"] = "memory"
    sqlite_path: str | None = None
    default_ttl_seconds: float | None = None
    refresh_ttl_on_access: bool = True
    should_cache: ShouldCacheHook | None = None


@dataclass(slots=True, frozen=True)
class ResilienceConfig:
    name: str
    base_url: str | None = None
    timeout_seconds: float = 20.0
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    ratelimit: RateLimit | None = None
    cache: CacheConfig | None = None
    response_hooks: tuple[ResponseHook, ...] = field(default_factory=tuple)
    default_headers: Mapping[str, str] | None = None


# Per-remote defaults; the published limits of each service are well above these.
SERVICE_RESILIENCE: dict[str, ResilienceConfig] = {
    "balena-api": ResilienceConfig(
        name="balena-api",
        base_url="https://api.balena-cloud.com",
        ratelimit=RateLimit(max_calls=10, per_seconds=1.0),
    ),
    "flowdock": ResilienceConfig(
        name="flowdock",
        base_url="https://api.flowdock.com",
        ratelimit=RateLimit(max_calls=5, per_seconds=1.0),
        cache=CacheConfig(backend="memory", default_ttl_seconds=300.0),
    ),
    "outreach": ResilienceConfig(
        name="outreach",
        base_url="https://api.outreach.io",
        ratelimit=RateLimit(max_calls=10, per_seconds=1.0),
        default_headers={"Content-Type": "application/vnd.api+json"},
    ),
    "typeform": ResilienceConfig(
        name="typeform",
        base_url="https://api.typeform.com",
        ratelimit=RateLimit(max_calls=2, per_seconds=1.0),
        cache=CacheConfig(backend="memory", default_ttl_seconds=600.0),
    ),
}


def get_resilience_config(source: str) -> ResilienceConfig:
    try:
        return SERVICE_RESILIENCE[source]
    except KeyError:
        return ResilienceConfig(name=source)
