from __future__ import annotations

import asyncio

from uniswap_fetcher.application.signals import SignalAccumulator, aggregate_signals, swap_price
from uniswap_fetcher.application.use_cases import PoolEventService
from uniswap_fetcher.domain.decoding import BURN_T0, MINT_T0, SWAP_T0
from uniswap_fetcher.domain.models import Burn, Collect, Mint, Swap

from fakes import (
    ALICE, BLOCK_TIME, BOB, GENESIS_TS, POOL, FakeChainReader, burn_log, collect_log, mint_log,
    swap_log, uniform_timestamps,
)

Q96 = 1 << 96


def test_swap_price_is_exact_for_representable_values():
    assert swap_price(Q96) == 1.0
    assert swap_price(3 * Q96) == 9.0
    assert swap_price(Q96 // 2) == 0.25


def test_no_events_gives_zero_signals():
    assert aggregate_signals([]) == {"price": "0", "volume": "0", "liquidity": "0"}


def test_accumulator_rules():
    acc = SignalAccumulator()
    acc.add(Swap(ALICE, BOB, -100, 250, Q96, 1, 0))
    acc.add(Swap(ALICE, BOB, 40, -60, 2 * Q96, 1, 0))
    acc.add(Mint(ALICE, ALICE, -60, 60, (1 << 127) + 1, 0, 0))
    acc.add(Burn(ALICE, -60, 60, 1, 0, 0))
    acc.add(Collect(ALICE, BOB, -60, 60, 999, 999))
    assert acc.to_dict() == {"price": "2.5", "volume": "450", "liquidity": str(1 << 127)}


def test_net_liquidity_can_go_negative():
    acc = SignalAccumulator()
    acc.add(Burn(ALICE, -60, 60, 10, 0, 0))
    assert acc.to_dict()["liquidity"] == "-10"


def test_signals_for_pool_window():
    logs = [
        swap_log(10, amount0=1000, amount1=-2000, sqrt_price_x96=Q96),
        mint_log(11, 500),
        swap_log(12, amount0=-1500, amount1=1500, sqrt_price_x96=2 * Q96),
        collect_log(12),
        burn_log(13, 200),
        swap_log(20, sqrt_price_x96=10 * Q96),
    ]
    reader = FakeChainReader(uniform_timestamps(100), logs)
    svc = PoolEventService(reader, now=lambda: 2_000_000_000)

    got = asyncio.run(svc.get_signals_by_pool_address(POOL, GENESIS_TS + 10 * BLOCK_TIME, 5))

    assert got == {"price": "2.5", "volume": "6000", "liquidity": "300"}
    _, topics, fb, tb = reader.log_requests[-1]
    assert (fb, tb) == (10, 15)
    assert set(topics) == {SWAP_T0, MINT_T0, BURN_T0}
