"""
Swap prices folded into a fixed-interval series of token1-per-token0 ratios.

Buckets are keyed by the interval boundary *above* a timestamp, so a bucket
labelled T holds the last swap seen in (T - interval, T]. Every bucket from
bucket(start) through `end` exists in the output, plus the bucket above `end` when
a swap landed in that last partial interval. Empty buckets carry the
previous bucket's ratio forward. The very first bucket can only be seeded from a single
lookback window before the range (see PoolEventService.get_pool_price_ratios);
if that window had no swap, leading buckets stay at "0".
"""
from __future__ import annotations

from fractions import Fraction
from typing import Iterable

from ..domain.errors import InvalidInputError
from .serialization import format_float
from .signals import Q192


def bucket_of(timestamp: int, interval: int) -> int:
    return (timestamp // interval + 1) * interval


def seed_buckets(start_timestamp: int, end_timestamp: int, interval: int) -> dict[int, float]:
    if interval <= 0:
        raise InvalidInputError(f"interval must be positive, got {interval}")
    buckets: dict[int, float] = {}
    t = bucket_of(start_timestamp, interval)
    while t <= end_timestamp:
        buckets[t] = 0.0
        t += interval
    return buckets


def price_ratio(sqrt_price_x96: int, decimals0: int, decimals1: int) -> float:
    """(sqrtPriceX96 / 2**96)**2 * 10**decimals0 / 10**decimals1 as one exact rational, rounded once."""
    return float(Fraction(sqrt_price_x96 * sqrt_price_x96 * 10**decimals0, Q192 * 10**decimals1))


def apply_swaps(buckets: dict[int, float], swaps: Iterable[tuple[int, float]], interval: int) -> int:
    """
    Write (timestamp, ratio) pairs into their buckets in order, last one wins.
    A swap in the partial interval after the last seeded bucket adds that bucket.
    Returns how many buckets were added.
    """
    added = 0
    for ts, ratio in swaps:
        b = bucket_of(ts, interval)
        if b not in buckets:
            added += 1
        buckets[b] = ratio
    return added


def forward_fill(buckets: dict[int, float], carry: float = 0.0) -> list[tuple[int, float]]:
    out: list[tuple[int, float]] = []
    for ts in sorted(buckets):
        v = buckets[ts]
        if v == 0.0:
            v = carry
        carry = v
        out.append((ts, v))
    return out


def to_records(series: list[tuple[int, float]]) -> list[dict[str, object]]:
    return [{"timestamp": ts, "price_ratio": format_float(v)} for ts, v in series]
