from __future__ import annotations

import asyncio
import logging
from typing import Any, Sequence

from eth_abi.exceptions import DecodingError
from eth_utils import to_checksum_address

from ..domain import calls
from ..domain.errors import MissingDataError
from ..domain.models import PoolInfo
from ..domain.value_types import Address
from ..ports.rpc import ChainReader

logger = logging.getLogger(__name__)

FACTORY_ADDRESS = "0x1F98431c8aD98523631AE4a59f267346ea31F984"  # Uniswap V3 factory (mainnet)


async def _view(reader: ChainReader, to: str, fn: calls.ContractFunction, *args: object) -> Any:
    raw = await reader.call(to, fn.encode(*args))
    try:
        return fn.decode(raw)[0]
    except DecodingError as e:
        raise MissingDataError(f"{fn.signature} on {to} returned unusable data: {e}", method="eth_call") from e


async def get_pool_address(reader: ChainReader, factory: str, token0: str, token1: str, fee: int) -> Address:
    pool = await _view(reader, factory, calls.GET_POOL, token0, token1, fee)
    return Address(to_checksum_address(pool))


async def resolve_pool_addresses(
    reader: ChainReader,
    factory: str,
    pairs: Sequence[tuple[str, str, int]],
) -> list[Address]:
    """One getPool task per pair, all awaited; the first failure propagates."""
    pools = await asyncio.gather(*(get_pool_address(reader, factory, t0, t1, fee) for t0, t1, fee in pairs))
    logger.info("resolved pool addresses: %s", pools)
    return list(pools)


async def get_pool_info(reader: ChainReader, pool: str) -> PoolInfo:
    token0 = await _view(reader, pool, calls.TOKEN0)
    token1 = await _view(reader, pool, calls.TOKEN1)
    fee = await _view(reader, pool, calls.FEE)
    tick_spacing = await _view(reader, pool, calls.TICK_SPACING)
    return PoolInfo(
        token0=Address(to_checksum_address(token0)),
        token1=Address(to_checksum_address(token1)),
        fee=int(fee),
        tick_spacing=int(tick_spacing),
    )
