"""Domain port definitions for adapters."""

from __future__ import annotations

from .actors import ActorDirectory
from .cards import CardLookup, CardStore
from .remote import HttpMethod, RemoteRequest, RemoteRequester, RemoteResponse

__all__ = [
    "ActorDirectory",
    "CardLookup",
    "CardStore",
    "HttpMethod",
    "RemoteRequest",
    "RemoteRequester",
    "RemoteResponse",
]
