# fetcher.py
from __future__ import annotations

import asyncio
from dataclasses import replace
from typing import Any, Awaitable, Callable, Sequence, TypeVar

from .adapters.rpc_httpx import HttpxChainReader
from .application.caches import BlockTimestampCache, TokenInfoCache
from .application.use_cases import PoolEventService
from .config import Settings, get_settings
from .domain.value_types import TokenPair
from .ports.rpc import ChainReader

T = TypeVar("T")

ReaderFactory = Callable[[Settings], ChainReader]


def _httpx_reader(settings: Settings) -> ChainReader:
    return HttpxChainReader(settings.rpc_url, timeout_s=settings.timeout_s, max_connections=settings.max_connections)


class UniswapFetcher:
    """
    Synchronous entry point for host applications.

    Every call runs to completion on its own event loop with a freshly opened
    reader; the block-timestamp and token-info caches live as long as this
    object and are shared by all calls, including calls from several threads.
    """

    def __init__(
        self,
        rpc_url: str | None = None,
        *,
        settings: Settings | None = None,
        reader_factory: ReaderFactory = _httpx_reader,
    ) -> None:
        base = settings or get_settings()
        if rpc_url is not None:
            base = replace(base, rpc_url=rpc_url)
        self.settings = base
        self.reader_factory = reader_factory
        self.block_cache = BlockTimestampCache()
        self.token_cache = TokenInfoCache()

    def _service(self, reader: ChainReader) -> PoolEventService:
        s = self.settings
        return PoolEventService(
            reader,
            block_cache=self.block_cache,
            token_cache=self.token_cache,
            factory_address=s.factory_address,
            batch_size=s.batch_size,
            sample_blocks=s.sample_blocks,
        )

    def _run(self, op: Callable[[PoolEventService], Awaitable[T]]) -> T:
        async def main() -> T:
            reader = self.reader_factory(self.settings)
            try:
                return await op(self._service(reader))
            finally:
                aclose = getattr(reader, "aclose", None)
                if aclose is not None:
                    await aclose()
        return asyncio.run(main())

    # ──────────────────────────────
    # Public operations
    # ──────────────────────────────

    def get_pool_events_by_token_pairs(self, token_pairs: Sequence[TokenPair], from_block: int, to_block: int) -> dict[str, Any]:
        return self._run(lambda svc: svc.get_pool_events_by_token_pairs(token_pairs, from_block, to_block))

    def get_pool_events_by_pool_addresses(self, pool_addresses: Sequence[str], from_block: int, to_block: int) -> dict[str, Any]:
        return self._run(lambda svc: svc.get_pool_events_by_pool_addresses(pool_addresses, from_block, to_block))

    def get_signals_by_pool_address(self, pool_address: str, timestamp: int, interval: int) -> dict[str, str]:
        return self._run(lambda svc: svc.get_signals_by_pool_address(pool_address, timestamp, interval))

    def get_block_number_range(self, start_timestamp: int, end_timestamp: int) -> tuple[int, int]:
        return self._run(lambda svc: svc.get_block_number_range(start_timestamp, end_timestamp))

    def fetch_pool_data(self, token_pairs: Sequence[TokenPair], start_timestamp: int, end_timestamp: int) -> dict[str, Any]:
        return self._run(lambda svc: svc.fetch_pool_data(token_pairs, start_timestamp, end_timestamp))

    def get_pool_created_events_between_two_timestamps(self, start_timestamp: int, end_timestamp: int) -> list[dict[str, Any]]:
        return self._run(lambda svc: svc.get_pool_created_events_between_two_timestamps(start_timestamp, end_timestamp))

    def get_all_tokens(self, start_timestamp: int, end_timestamp: int) -> set[str]:
        return self._run(lambda svc: svc.get_all_tokens(start_timestamp, end_timestamp))

    def get_all_token_pairs(self, start_timestamp: int, end_timestamp: int) -> list[tuple[str, str, int, str]]:
        return self._run(lambda svc: svc.get_all_token_pairs(start_timestamp, end_timestamp))

    def get_recent_pool_events(self, pool_address: str, start_timestamp: int) -> dict[str, Any]:
        return self._run(lambda svc: svc.get_recent_pool_events(pool_address, start_timestamp))

    def get_timestamp_by_block_number(self, block_number: int) -> int:
        return self._run(lambda svc: svc.get_timestamp_by_block_number(block_number))

    def get_pool_price_ratios(self, pool_address: str, start_timestamp: int, end_timestamp: int, interval: int) -> list[dict[str, object]]:
        return self._run(lambda svc: svc.get_pool_price_ratios(pool_address, start_timestamp, end_timestamp, interval))
