from __future__ import annotations

import threading
from typing import Awaitable, Callable, Generic, Hashable, TypeVar

from ..domain.models import TokenInfo
from ..ports.rpc import ChainReader

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class SharedCache(Generic[K, V]):
    """
    Append-only mapping shared by every call on one fetcher instance.

    The lock covers a single read or a single insert, never the fetch in between,
    and a threading.Lock (not asyncio.Lock) because each call runs on its own
    event loop. Two callers missing the same key both fetch; the last insert wins.
    Values are immutable per key, so both writes are identical.
    """

    def __init__(self) -> None:
        self._data: dict[K, V] = {}
        self._lock = threading.Lock()

    def get(self, key: K) -> V | None:
        with self._lock:
            return self._data.get(key)

    def put(self, key: K, value: V) -> None:
        with self._lock:
            self._data[key] = value

    async def get_or_fetch(self, key: K, fetch: Callable[[], Awaitable[V]]) -> V:
        hit = self.get(key)
        if hit is not None:
            return hit
        value = await fetch()
        self.put(key, value)
        return value

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._data


class BlockTimestampCache(SharedCache[int, int]):
    async def timestamp(self, reader: ChainReader, block_number: int) -> int:
        async def fetch() -> int:
            return (await reader.get_block(block_number)).timestamp
        return await self.get_or_fetch(block_number, fetch)


class TokenInfoCache(SharedCache[str, TokenInfo]):
    """Keyed by checksum address."""
