from __future__ import annotations

import logging
import time
from typing import Any, Callable, Sequence

from ..domain.decoding import (
    BURN_T0, MINT_T0, POOL_CREATED_T0, POOL_EVENT_TOPICS, SWAP_T0,
    decode_pool_created, decode_pool_event,
)
from ..domain.errors import InvalidInputError, MissingDataError
from ..domain.models import BlockRange, EventLog, PoolCreated, Swap
from ..domain.value_types import Address, TokenPair
from ..ports.rpc import ChainReader
from . import price_ratios as pr
from .addresses import checksum, checksum_all, normalize_pairs
from .block_time import NUM_BLOCKS, BlockTimeResolver
from .caches import BlockTimestampCache, TokenInfoCache
from .events import decode_logs
from .log_fetcher import BATCH_SIZE, fetch_logs
from .pools import FACTORY_ADDRESS, get_pool_info, resolve_pool_addresses
from .serialization import events_result, token_record
from .signals import aggregate_signals
from .token_info import TokenInfoResolver

logger = logging.getLogger(__name__)

SIGNAL_TOPICS = (SWAP_T0, MINT_T0, BURN_T0)


def _block_number(v: int, what: str) -> int:
    if not isinstance(v, int) or v < 0:
        raise InvalidInputError(f"{what} must be a non-negative block number, got {v!r}")
    return v


class PoolEventService:
    """
    All public operations, async, over one ChainReader.

    The two caches are passed in so that a long-lived owner (UniswapFetcher) can
    keep them across calls while the reader itself is opened per call.
    """

    def __init__(
        self,
        reader: ChainReader,
        *,
        block_cache: BlockTimestampCache | None = None,
        token_cache: TokenInfoCache | None = None,
        factory_address: str = FACTORY_ADDRESS,
        batch_size: int = BATCH_SIZE,
        sample_blocks: int = NUM_BLOCKS,
        now: Callable[[], float] = time.time,
    ) -> None:
        if batch_size <= 0:
            raise InvalidInputError(f"batch_size must be positive, got {batch_size}")
        self.reader = reader
        self.block_cache = block_cache if block_cache is not None else BlockTimestampCache()
        self.token_cache = token_cache if token_cache is not None else TokenInfoCache()
        self.factory = checksum(factory_address)
        self.batch_size = batch_size
        self.blocks = BlockTimeResolver(reader, self.block_cache, sample_blocks=sample_blocks, now=now)
        self.tokens = TokenInfoResolver(reader, self.token_cache)

    async def _fetch(self, addresses: Sequence[str], topic0s: Sequence[str], rng: BlockRange) -> list[EventLog]:
        return await fetch_logs(self.reader, addresses=addresses, topic0s=topic0s,
                                from_block=rng.start, to_block=rng.end, step=self.batch_size)

    # ──────────────────────────────
    # Pool events
    # ──────────────────────────────

    async def get_pool_events_by_pool_addresses(self, pool_addresses: Sequence[str], from_block: int, to_block: int) -> dict[str, Any]:
        pools = checksum_all(pool_addresses)
        rng = BlockRange(_block_number(from_block, "from_block"), _block_number(to_block, "to_block"))
        logs = await self._fetch(pools, POOL_EVENT_TOPICS, rng)
        logger.info("fetched pool events from_block=%d to_block=%d", rng.start, rng.end)
        return events_result(await decode_logs(self.reader, self.block_cache, logs))

    async def get_pool_events_by_token_pairs(self, token_pairs: Sequence[TokenPair], from_block: int, to_block: int) -> dict[str, Any]:
        pairs = normalize_pairs(token_pairs)
        _block_number(from_block, "from_block"); _block_number(to_block, "to_block")
        pools = await resolve_pool_addresses(self.reader, self.factory, pairs)
        return await self.get_pool_events_by_pool_addresses(pools, from_block, to_block)

    async def fetch_pool_data(self, token_pairs: Sequence[TokenPair], start_timestamp: int, end_timestamp: int) -> dict[str, Any]:
        pairs = normalize_pairs(token_pairs)
        rng = await self.get_block_number_range(start_timestamp, end_timestamp)
        return await self.get_pool_events_by_token_pairs(pairs, rng[0], rng[1])

    async def get_recent_pool_events(self, pool_address: str, start_timestamp: int) -> dict[str, Any]:
        pool = checksum(pool_address)
        logger.info("Fetching recent pool events for pool %s starting from timestamp %d", pool, start_timestamp)
        avg = await self.blocks.average_block_time()
        start_block = await self.blocks.block_at_timestamp(start_timestamp, avg)
        head = await self.reader.block_number()
        logs = await self._fetch([pool], POOL_EVENT_TOPICS, BlockRange(start_block, head))
        result = events_result(await decode_logs(self.reader, self.block_cache, logs))
        logger.info("Completed fetching recent pool events for pool %s (%d events)", pool, len(result["data"]))
        return result

    # ──────────────────────────────
    # Time <-> blocks
    # ──────────────────────────────

    async def get_block_number_range(self, start_timestamp: int, end_timestamp: int) -> tuple[int, int]:
        rng = await self.blocks.block_range_for_timestamps(start_timestamp, end_timestamp)
        return rng.start, rng.end

    async def get_timestamp_by_block_number(self, block_number: int) -> int:
        return await self.block_cache.timestamp(self.reader, _block_number(block_number, "block_number"))

    # ──────────────────────────────
    # Signals / price ratios
    # ──────────────────────────────

    async def get_signals_by_pool_address(self, pool_address: str, timestamp: int, interval: int) -> dict[str, str]:
        """`interval` is a span in blocks after the block at `timestamp`."""
        pool = checksum(pool_address)
        if interval < 0:
            raise InvalidInputError(f"interval must be non-negative, got {interval}")
        avg = await self.blocks.average_block_time()
        start_block = await self.blocks.block_at_timestamp(timestamp, avg)
        logs = await self._fetch([pool], SIGNAL_TOPICS, BlockRange(start_block, start_block + interval))
        return aggregate_signals(await decode_logs(self.reader, self.block_cache, logs))

    async def get_pool_price_ratios(self, pool_address: str, start_timestamp: int, end_timestamp: int, interval: int) -> list[dict[str, object]]:
        pool = checksum(pool_address)
        buckets = pr.seed_buckets(start_timestamp, end_timestamp, interval)
        rng = await self.blocks.block_range_for_timestamps(start_timestamp, end_timestamp)

        info = await get_pool_info(self.reader, pool)
        decimals0 = (await self.tokens.get(info.token0)).decimals
        decimals1 = (await self.tokens.get(info.token1)).decimals

        logs = await self._fetch([pool], [SWAP_T0], rng)
        decoded = await decode_logs(self.reader, self.block_cache, logs)
        swaps = [(d.timestamp, pr.price_ratio(d.event.sqrt_price_x96, decimals0, decimals1))
                 for d in decoded if isinstance(d.event, Swap)]
        if pr.apply_swaps(buckets, swaps, interval):
            logger.debug("added the partial bucket above %d", end_timestamp)

        carry = 0.0
        if buckets and buckets[min(buckets)] == 0.0:
            carry = await self._lookback_ratio(pool, rng.start, decimals0, decimals1)
        return pr.to_records(pr.forward_fill(buckets, carry))

    async def _lookback_ratio(self, pool: Address, start_block: int, decimals0: int, decimals1: int) -> float:
        """Most recent swap in the batch width of blocks before `start_block`; 0.0 if there is none."""
        if start_block == 0:
            return 0.0
        lo = max(0, start_block - self.batch_size)
        hi = start_block - 1
        logs = await self.reader.get_logs([pool], [SWAP_T0], lo, hi)
        carry = 0.0
        for log in logs:
            ev = decode_pool_event(log)
            if isinstance(ev, Swap):
                carry = pr.price_ratio(ev.sqrt_price_x96, decimals0, decimals1)
        if carry == 0.0:
            logger.info("no swap for %s in blocks %d..%d; leading buckets stay at 0", pool, lo, hi)
        return carry

    # ──────────────────────────────
    # Factory: pool creation
    # ──────────────────────────────

    async def _pool_created(self, start_timestamp: int, end_timestamp: int) -> list[tuple[EventLog, PoolCreated]]:
        rng = await self.blocks.block_range_for_timestamps(start_timestamp, end_timestamp)
        logs = await self._fetch([self.factory], [POOL_CREATED_T0], rng)
        out: list[tuple[EventLog, PoolCreated]] = []
        for log in logs:
            ev = decode_pool_created(log)
            if ev is not None:
                out.append((log, ev))
        return out

    async def get_pool_created_events_between_two_timestamps(self, start_timestamp: int, end_timestamp: int) -> list[dict[str, Any]]:
        logger.info("Fetching pool created events between %d and %d", start_timestamp, end_timestamp)
        records: list[dict[str, Any]] = []
        for log, ev in await self._pool_created(start_timestamp, end_timestamp):
            if log.block_number is None:
                raise MissingDataError(f"Missing block number in PoolCreated log {log.tx_hash}")
            token0 = await self.tokens.get_or_placeholder(ev.token0)
            token1 = await self.tokens.get_or_placeholder(ev.token1)
            records.append({
                "token0": token_record(ev.token0, token0),
                "token1": token_record(ev.token1, token1),
                "fee": ev.fee,
                "tick_spacing": ev.tick_spacing,
                "pool_address": ev.pool,
                "block_number": log.block_number,
            })
        logger.info("Completed fetching pool created events (%d pools)", len(records))
        return records

    async def get_all_tokens(self, start_timestamp: int, end_timestamp: int) -> set[str]:
        logger.info("Fetching all tokens between %d and %d", start_timestamp, end_timestamp)
        tokens: set[str] = set()
        for _, ev in await self._pool_created(start_timestamp, end_timestamp):
            tokens.add(ev.token0)
            tokens.add(ev.token1)
        logger.info("Fetched %d unique tokens", len(tokens))
        return tokens

    async def get_all_token_pairs(self, start_timestamp: int, end_timestamp: int) -> list[tuple[str, str, int, str]]:
        return [(ev.token0, ev.token1, ev.fee, ev.pool) for _, ev in await self._pool_created(start_timestamp, end_timestamp)]
