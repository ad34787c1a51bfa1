from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable

from ..domain.errors import InvalidInputError
from ..domain.models import BlockRange
from ..ports.rpc import ChainReader
from .caches import BlockTimestampCache

logger = logging.getLogger(__name__)

NUM_BLOCKS = 100  # blocks sampled for the average block time


class BlockTimeResolver:
    """Wall-clock timestamps -> block numbers: average-time seed, then exact binary search."""

    def __init__(
        self,
        reader: ChainReader,
        cache: BlockTimestampCache,
        *,
        sample_blocks: int = NUM_BLOCKS,
        now: Callable[[], float] = time.time,
    ) -> None:
        self.reader = reader
        self.cache = cache
        self.sample_blocks = sample_blocks
        self.now = now

    async def _ts(self, block_number: int) -> int:
        return await self.cache.timestamp(self.reader, block_number)

    async def average_block_time(self) -> int:
        latest = await self.reader.get_block("latest")
        n = min(self.sample_blocks, latest.number)
        if n <= 0:
            return 0
        prior = await asyncio.gather(*(self._ts(latest.number - i) for i in range(1, n + 1)))
        timestamps = [latest.timestamp, *prior]
        diffs = [timestamps[i - 1] - timestamps[i] for i in range(1, len(timestamps))]
        return sum(diffs) // len(diffs)

    async def block_at_timestamp(self, target: int, average_block_time: int) -> int:
        """Lowest block whose timestamp is >= target (target clamped to the head's timestamp)."""
        latest = await self.reader.get_block("latest")
        target = min(target, latest.timestamp)
        estimate = latest.number - (latest.timestamp - target) // max(1, average_block_time)

        low, high = 0, latest.number
        mid = min(max(estimate, low), high)
        steps = 0
        while low < high:
            steps += 1
            if await self._ts(mid) < target:
                low = mid + 1
            else:
                high = mid
            mid = (low + high) // 2
        logger.debug("block_at_timestamp(%d): block %d after %d steps (seed %d)", target, low, steps, estimate)
        return low

    async def block_range_for_timestamps(self, start_timestamp: int, end_timestamp: int) -> BlockRange:
        current = int(self.now())
        if start_timestamp > current or end_timestamp > current:
            raise InvalidInputError("Given date time is in the future")

        avg = await self.average_block_time()

        # start past the head gives an empty range (start = head + 1 > end = head)
        head = (await self.reader.get_block("latest")).number
        start_block = await self.block_at_timestamp(start_timestamp, avg)
        while start_block <= head and await self._ts(start_block) < start_timestamp:
            start_block += 1

        end_block = await self.block_at_timestamp(end_timestamp, avg)
        while end_block > 0 and await self._ts(end_block) > end_timestamp:
            end_block -= 1

        logger.info("timestamps %d..%d -> blocks %d..%d (avg block time %ds)",
                    start_timestamp, end_timestamp, start_block, end_block, avg)
        return BlockRange(start_block, end_block)
