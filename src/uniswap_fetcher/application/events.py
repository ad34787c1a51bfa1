from __future__ import annotations

import logging
from typing import Iterable

from eth_utils import to_checksum_address

from ..domain.decoding import decode_pool_event
from ..domain.errors import MissingDataError
from ..domain.models import DecodedEvent, EventLog
from ..domain.value_types import Address
from ..ports.rpc import ChainReader
from .caches import BlockTimestampCache

logger = logging.getLogger(__name__)


async def decode_logs(
    reader: ChainReader,
    cache: BlockTimestampCache,
    logs: Iterable[EventLog],
) -> list[DecodedEvent]:
    """
    Decode pool logs in order and attach block timestamps.
    Unknown signatures are skipped; decode errors and missing block/tx data propagate.
    """
    out: list[DecodedEvent] = []
    skipped = 0
    for log in logs:
        event = decode_pool_event(log)
        if event is None:
            skipped += 1
            continue
        if log.tx_hash is None:
            raise MissingDataError(f"Missing transaction hash in log from {log.address}")
        if log.block_number is None:
            raise MissingDataError(f"Missing block number in log {log.tx_hash}")
        ts = await cache.timestamp(reader, log.block_number)
        out.append(DecodedEvent(
            event=event,
            tx_hash=log.tx_hash,
            block_number=log.block_number,
            timestamp=ts,
            pool_address=Address(to_checksum_address(log.address)),
        ))
    if skipped:
        logger.info("skipped %d log(s) with unknown signatures", skipped)
    return out
