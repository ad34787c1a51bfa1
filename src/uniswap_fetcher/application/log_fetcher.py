from __future__ import annotations

import logging
from typing import Sequence

from ..domain.models import EventLog
from ..ports.rpc import ChainReader
from .planning import plan_chunks

logger = logging.getLogger(__name__)

BATCH_SIZE = 10_000  # blocks per eth_getLogs request


async def fetch_logs(
    reader: ChainReader,
    *,
    addresses: Sequence[str],
    topic0s: Sequence[str],
    from_block: int,
    to_block: int,
    step: int = BATCH_SIZE,
) -> list[EventLog]:
    """
    One eth_getLogs per chunk, strictly sequential so the node sees a single
    in-flight range at a time. Logs are returned in chunk order as received.
    """
    chunks = plan_chunks(from_block, to_block, step)
    logs: list[EventLog] = []
    for ch in chunks:
        got = await reader.get_logs(list(addresses), list(topic0s), ch.start, ch.end)
        logger.debug("chunk %d-%d: %d logs", ch.start, ch.end, len(got))
        logs.extend(got)
    logger.info("fetched %d logs over %d chunk(s) from_block=%s to_block=%s",
                len(logs), len(chunks), from_block, to_block)
    return logs
