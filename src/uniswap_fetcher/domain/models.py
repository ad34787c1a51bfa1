from __future__ import annotations
from dataclasses import dataclass
from typing import ClassVar, Union
from .value_types import Address, EventKind

@dataclass(slots=True, frozen=True)
class BlockRange:
    start: int
    end: int
    def span(self) -> int: return max(0, self.end - self.start + 1)

@dataclass(slots=True, frozen=True)
class BlockHeader:
    number: int
    timestamp: int

@dataclass(slots=True, frozen=True)
class EventLog:
    address: str                       # lowercased hex with 0x
    topics: tuple[str, ...]            # all topics, lowercased with 0x
    data_hex: str                      # hex with 0x (or "0x")
    block_number: int | None           # None for pending logs
    tx_hash: str | None                # lowercased hex with 0x
    log_index: int = 0

    @property
    def topic0(self) -> str | None:
        return self.topics[0] if self.topics else None

    def data(self) -> bytes:
        h = self.data_hex[2:] if self.data_hex[:2].lower() == "0x" else self.data_hex
        return bytes.fromhex(h) if h else b""

@dataclass(slots=True, frozen=True)
class TokenInfo:
    name: str
    symbol: str
    decimals: int

    @classmethod
    def placeholder(cls) -> "TokenInfo":
        return cls(name="", symbol="", decimals=0)

@dataclass(slots=True, frozen=True)
class PoolInfo:
    token0: Address
    token1: Address
    fee: int
    tick_spacing: int


# ──────────────────────────────
# Pool / factory events
# ──────────────────────────────

@dataclass(slots=True, frozen=True)
class Swap:
    sender: Address
    to: Address
    amount0: int
    amount1: int
    sqrt_price_x96: int
    liquidity: int
    tick: int
    kind: ClassVar[EventKind] = "swap"

@dataclass(slots=True, frozen=True)
class Mint:
    sender: Address
    owner: Address
    tick_lower: int
    tick_upper: int
    amount: int
    amount0: int
    amount1: int
    kind: ClassVar[EventKind] = "mint"

@dataclass(slots=True, frozen=True)
class Burn:
    owner: Address
    tick_lower: int
    tick_upper: int
    amount: int
    amount0: int
    amount1: int
    kind: ClassVar[EventKind] = "burn"

@dataclass(slots=True, frozen=True)
class Collect:
    owner: Address
    recipient: Address
    tick_lower: int
    tick_upper: int
    amount0: int
    amount1: int
    kind: ClassVar[EventKind] = "collect"

@dataclass(slots=True, frozen=True)
class PoolCreated:
    token0: Address
    token1: Address
    fee: int
    tick_spacing: int
    pool: Address

PoolEvent = Union[Swap, Mint, Burn, Collect]

@dataclass(slots=True, frozen=True)
class DecodedEvent:
    event: PoolEvent
    tx_hash: str                       # lowercased hex with 0x
    block_number: int
    timestamp: int
    pool_address: Address
