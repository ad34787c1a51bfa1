from __future__ import annotations

import asyncio

import pytest

from uniswap_fetcher.application.serialization import data_hash
from uniswap_fetcher.application.use_cases import PoolEventService
from uniswap_fetcher.domain.errors import InvalidInputError, RPCError

from fakes import (
    BLOCK_TIME, BROKEN, GENESIS_TS, MKR, POOL, POOL_B, USDC, WETH, FakeChainReader, erc20_calls,
    get_pool_call, mint_log, pool_created_log, swap_log, uniform_timestamps, unknown_log,
)

NOW = 2_000_000_000


def _service(logs=(), contract_calls=None):
    reader = FakeChainReader(uniform_timestamps(), logs, contract_calls)
    return reader, PoolEventService(reader, now=lambda: NOW)


# ──────────────────────────────
# Pool events
# ──────────────────────────────

def test_events_by_pool_address_shape_and_order():
    reader, svc = _service([swap_log(3, amount0=-5), unknown_log(4), mint_log(6, 77)])

    result = asyncio.run(svc.get_pool_events_by_pool_addresses([POOL.lower()], 0, 10))

    assert [r["event"]["type"] for r in result["data"]] == ["swap", "mint"]
    first = result["data"][0]
    assert first["block_number"] == 3
    assert first["timestamp"] == GENESIS_TS + 3 * BLOCK_TIME
    assert first["pool_address"] == POOL
    assert first["transaction_hash"] == f"{3:064x}"
    assert first["event"]["data"]["amount0"] == "-5"
    assert result["overall_data_hash"] == data_hash(result["data"])


def test_hash_is_stable_across_calls():
    _, svc = _service([swap_log(3), mint_log(6, 77)])
    a = asyncio.run(svc.get_pool_events_by_pool_addresses([POOL], 0, 10))
    b = asyncio.run(svc.get_pool_events_by_pool_addresses([POOL], 0, 10))
    assert a == b


def test_invalid_pool_address_fails_before_io():
    reader, svc = _service()
    with pytest.raises(InvalidInputError):
        asyncio.run(svc.get_pool_events_by_pool_addresses(["0xnot-an-address"], 0, 10))
    assert reader.log_requests == [] and reader.block_requests == []


def test_negative_block_is_rejected():
    _, svc = _service()
    with pytest.raises(InvalidInputError):
        asyncio.run(svc.get_pool_events_by_pool_addresses([POOL], -1, 10))


def test_token_pairs_resolve_through_factory():
    calls = {**get_pool_call(USDC, WETH, 3000, POOL), **get_pool_call(WETH, MKR, 500, POOL_B)}
    logs = [swap_log(5, pool=POOL), mint_log(6, 10, pool=POOL_B), swap_log(7, pool=WETH)]
    reader, svc = _service(logs, calls)

    result = asyncio.run(svc.get_pool_events_by_token_pairs([(USDC.lower(), WETH, 3000), (WETH, MKR, 500)], 0, 10))

    assert [r["pool_address"] for r in result["data"]] == [POOL, POOL_B]
    assert reader.log_requests[0][0] == (POOL, POOL_B)


def test_unknown_pair_propagates_rpc_failure():
    reader, svc = _service()
    with pytest.raises(RPCError):
        asyncio.run(svc.get_pool_events_by_token_pairs([(USDC, WETH, 3000)], 0, 10))
    assert reader.log_requests == []


def test_invalid_fee_tier_is_rejected():
    _, svc = _service()
    with pytest.raises(InvalidInputError):
        asyncio.run(svc.get_pool_events_by_token_pairs([(USDC, WETH, 1 << 24)], 0, 10))


def test_fetch_pool_data_maps_timestamps_to_blocks():
    reader, svc = _service([swap_log(9), swap_log(10), swap_log(21)], get_pool_call(USDC, WETH, 3000, POOL))

    result = asyncio.run(svc.fetch_pool_data([(USDC, WETH, 3000)], GENESIS_TS + 10 * BLOCK_TIME, GENESIS_TS + 20 * BLOCK_TIME))

    assert [r["block_number"] for r in result["data"]] == [10]
    assert reader.log_requests[-1][2:] == (10, 20)


def test_recent_events_run_to_head():
    reader, svc = _service([swap_log(985), swap_log(995), swap_log(1000)])
    result = asyncio.run(svc.get_recent_pool_events(POOL, GENESIS_TS + 990 * BLOCK_TIME))
    assert [r["block_number"] for r in result["data"]] == [995, 1000]
    assert reader.log_requests[-1][2:] == (990, 1000)


# ──────────────────────────────
# Time <-> blocks
# ──────────────────────────────

def test_block_number_range():
    _, svc = _service()
    assert asyncio.run(svc.get_block_number_range(GENESIS_TS + 1, GENESIS_TS + 120)) == (1, 10)


def test_timestamp_by_block_number_is_cached():
    reader, svc = _service()
    assert asyncio.run(svc.get_timestamp_by_block_number(7)) == GENESIS_TS + 7 * BLOCK_TIME
    assert asyncio.run(svc.get_timestamp_by_block_number(7)) == GENESIS_TS + 7 * BLOCK_TIME
    assert reader.block_requests == [7]


# ──────────────────────────────
# Factory
# ──────────────────────────────

@pytest.fixture
def factory_service():
    logs = [
        pool_created_log(5, USDC, WETH, 3000, 60, POOL),
        pool_created_log(7, WETH, BROKEN, 500, 10, POOL_B),
        pool_created_log(50, MKR, WETH, 100, 1, POOL),
    ]
    calls = {**erc20_calls(USDC, "USD Coin", "USDC", 6), **erc20_calls(WETH, "Wrapped Ether", "WETH", 18)}
    return _service(logs, calls)


def test_pool_created_records_with_token_metadata(factory_service):
    _, svc = factory_service
    records = asyncio.run(svc.get_pool_created_events_between_two_timestamps(GENESIS_TS, GENESIS_TS + 120))

    assert records[0] == {
        "token0": {"address": USDC, "name": "USD Coin", "symbol": "USDC", "decimals": 6},
        "token1": {"address": WETH, "name": "Wrapped Ether", "symbol": "WETH", "decimals": 18},
        "fee": 3000,
        "tick_spacing": 60,
        "pool_address": POOL,
        "block_number": 5,
    }
    assert records[1]["token1"] == {"address": BROKEN, "name": "", "symbol": "", "decimals": 0}
    assert len(records) == 2


def test_all_tokens(factory_service):
    _, svc = factory_service
    assert asyncio.run(svc.get_all_tokens(GENESIS_TS, GENESIS_TS + 120)) == {USDC, WETH, BROKEN}


def test_all_token_pairs(factory_service):
    reader, svc = factory_service
    pairs = asyncio.run(svc.get_all_token_pairs(GENESIS_TS, GENESIS_TS + 120))
    assert pairs == [(USDC, WETH, 3000, POOL), (WETH, BROKEN, 500, POOL_B)]
    assert reader.call_requests == []


def test_window_after_the_head_block_has_no_events():
    reader, svc = _service([swap_log(1000)], get_pool_call(USDC, WETH, 3000, POOL))
    head_ts = GENESIS_TS + 1000 * BLOCK_TIME
    result = asyncio.run(svc.fetch_pool_data([(USDC, WETH, 3000)], head_ts + 1, head_ts + 6))
    assert result["data"] == []
    assert reader.log_requests == []
