from __future__ import annotations

from dataclasses import dataclass
from fractions import Fraction
from typing import Iterable

from ..domain.models import Burn, DecodedEvent, Mint, PoolEvent, Swap
from .serialization import format_float

Q192 = 1 << 192


def swap_price(sqrt_price_x96: int) -> float:
    """(sqrtPriceX96 / 2**96) ** 2, exact until the single final rounding."""
    return float(Fraction(sqrt_price_x96 * sqrt_price_x96, Q192))


@dataclass(slots=True)
class SignalAccumulator:
    price_sum: float = 0.0
    swap_count: int = 0
    volume: int = 0
    liquidity: int = 0

    def add(self, ev: PoolEvent) -> None:
        if isinstance(ev, Swap):
            self.price_sum += swap_price(ev.sqrt_price_x96)
            self.swap_count += 1
            self.volume += abs(ev.amount0) + abs(ev.amount1)
        elif isinstance(ev, Mint):
            self.liquidity += ev.amount
        elif isinstance(ev, Burn):
            self.liquidity -= ev.amount

    @property
    def price(self) -> float:
        return self.price_sum / self.swap_count if self.swap_count else 0.0

    def to_dict(self) -> dict[str, str]:
        return {
            "price": format_float(self.price),
            "volume": str(self.volume),
            "liquidity": str(self.liquidity),
        }


def aggregate_signals(events: Iterable[DecodedEvent]) -> dict[str, str]:
    acc = SignalAccumulator()
    for d in events:
        acc.add(d.event)
    return acc.to_dict()
