"""Bounded lookup cache owned by one adapter instance."""

from __future__ import annotations

from collections import OrderedDict
from logging import getLogger
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

log = getLogger(__name__)

DEFAULT_CACHE_SIZE = 1000


class LookupCache[K, V]:
    """Least-recently-used cache for enrichment results.

    Entries are advisory: a miss costs one more remote call, nothing else.
    """

    def __init__(self, max_size: int = DEFAULT_CACHE_SIZE) -> None:
        if max_size <= 0:
            raise ValueError("max_size must be positive")
        self._entries: OrderedDict[K, V] = OrderedDict()
        self._max_size = max_size

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def get(self, key: K) -> V | None:
        if key not in self._entries:
            return None
        self._entries.move_to_end(key)
        return self._entries[key]

    def put(self, key: K, value: V) -> None:
        self._entries[key] = value
        self._entries.move_to_end(key)
        while len(self._entries) > self._max_size:
            evicted, _ = self._entries.popitem(last=False)
            log.debug("Lookup cache eviction: %s", evicted)

    async def get_or_load(self, key: K, loader: Callable[[], Awaitable[V]]) -> V:
        cached = self.get(key)
        if cached is not None:
            return cached
        value = await loader()
        self.put(key, value)
        return value

    def clear(self) -> None:
        self._entries.clear()
