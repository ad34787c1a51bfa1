from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from eth_utils import to_checksum_address

from .errors import EventDecodeError
from .models import Burn, Collect, EventLog, Mint, PoolCreated, PoolEvent, Swap
from .value_types import Address

logger = logging.getLogger(__name__)


# Topic0 constants (lowercase, with "0x")
SWAP_T0         = "0xc42079f94a6350d7e6235f29174924f928cc2ac818eb64fed8004e115fbcca67"
MINT_T0         = "0x7a53080ba414158be7ec69b987b5fb7d07dee101fe85488f0853ae16239d0bde"
BURN_T0         = "0x0c396cd989a39f4459b5fa1aed6a9a8dcdbc45908acfd67e028cd568da98982c"
COLLECT_T0      = "0x70935338e69775456a85ddef226c395fb668b63fa0115f5f20610b388e6ca9c0"
POOL_CREATED_T0 = "0x783cca1c0412dd0d695e784568c96da2e9c22ff989357a2e8b1d9b2b4e6b7118"


# --------- 32B word slicing ---------------------------------------------------

def _word(b: bytes, i: int) -> bytes: o = i*32; return b[o:o+32]

def _topic_bytes(t: str) -> bytes:
    h = t[2:] if t[:2].lower() == "0x" else t
    try:
        b = bytes.fromhex(h)
    except ValueError as e:
        raise EventDecodeError(f"topic {t!r} is not hex") from e
    if len(b) != 32:
        raise EventDecodeError(f"topic is {len(b)} bytes, expected 32")
    return b

def _addr_from_word(w: bytes) -> Address:
    if any(w[:12]):
        raise EventDecodeError(f"dirty high bytes in address word 0x{w.hex()}")
    return Address(to_checksum_address("0x" + w[-20:].hex()))

def _uint(bits: int) -> Callable[[bytes], int]:
    def dec(w: bytes) -> int:
        v = int.from_bytes(w, "big")
        if v >> bits:
            raise EventDecodeError(f"value does not fit uint{bits}")
        return v
    return dec

def _int(bits: int) -> Callable[[bytes], int]:
    lo, hi = -(1 << (bits - 1)), (1 << (bits - 1))
    def dec(w: bytes) -> int:
        v = int.from_bytes(w, "big", signed=True)
        if not lo <= v < hi:
            raise EventDecodeError(f"value does not fit int{bits}")
        return v
    return dec

_WORD_DECODERS: dict[str, Callable[[bytes], object]] = {
    "address": _addr_from_word,
    "uint24":  _uint(24),
    "uint128": _uint(128),
    "uint160": _uint(160),
    "uint256": _uint(256),
    "int24":   _int(24),
    "int256":  _int(256),
}


# --------- signature table ----------------------------------------------------

@dataclass(slots=True, frozen=True)
class EventSchema:
    """Layout of one event: indexed fields come from topics[1:], the rest from data words."""
    name: str
    topic0: str
    indexed: tuple[tuple[str, str], ...]
    data: tuple[tuple[str, str], ...]
    build: Callable[..., object]

    def decode(self, topics: tuple[str, ...], data: bytes) -> object:
        if len(topics) != 1 + len(self.indexed):
            raise EventDecodeError(
                f"{self.name}: expected {1 + len(self.indexed)} topics, got {len(topics)}")
        if len(data) != 32 * len(self.data):
            raise EventDecodeError(
                f"{self.name}: expected {32 * len(self.data)} data bytes, got {len(data)}")
        fields: dict[str, object] = {}
        for (name, typ), t in zip(self.indexed, topics[1:]):
            fields[name] = _WORD_DECODERS[typ](_topic_bytes(t))
        for i, (name, typ) in enumerate(self.data):
            fields[name] = _WORD_DECODERS[typ](_word(data, i))
        return self.build(**fields)


SWAP = EventSchema(
    "Swap", SWAP_T0,
    indexed=(("sender", "address"), ("to", "address")),
    data=(("amount0", "int256"), ("amount1", "int256"), ("sqrt_price_x96", "uint160"),
          ("liquidity", "uint128"), ("tick", "int24")),
    build=Swap,
)
MINT = EventSchema(
    "Mint", MINT_T0,
    indexed=(("owner", "address"), ("tick_lower", "int24"), ("tick_upper", "int24")),
    data=(("sender", "address"), ("amount", "uint128"), ("amount0", "uint256"), ("amount1", "uint256")),
    build=Mint,
)
BURN = EventSchema(
    "Burn", BURN_T0,
    indexed=(("owner", "address"), ("tick_lower", "int24"), ("tick_upper", "int24")),
    data=(("amount", "uint128"), ("amount0", "uint256"), ("amount1", "uint256")),
    build=Burn,
)
COLLECT = EventSchema(
    "Collect", COLLECT_T0,
    indexed=(("owner", "address"), ("tick_lower", "int24"), ("tick_upper", "int24")),
    data=(("recipient", "address"), ("amount0", "uint128"), ("amount1", "uint128")),
    build=Collect,
)
POOL_CREATED = EventSchema(
    "PoolCreated", POOL_CREATED_T0,
    indexed=(("token0", "address"), ("token1", "address"), ("fee", "uint24")),
    data=(("tick_spacing", "int24"), ("pool", "address")),
    build=PoolCreated,
)

POOL_EVENT_SCHEMAS: dict[str, EventSchema] = {s.topic0: s for s in (SWAP, MINT, BURN, COLLECT)}
POOL_EVENT_TOPICS: tuple[str, ...] = tuple(POOL_EVENT_SCHEMAS)


# ---------------------------- public API --------------------------------------

def decode_pool_event(log: EventLog) -> Optional[PoolEvent]:
    """
    Decode a pool log into Swap/Mint/Burn/Collect.
    Unknown topic0 -> None (logged, skipped). Known topic0 with a bad layout -> EventDecodeError.
    """
    t0 = (log.topic0 or "").lower()
    schema = POOL_EVENT_SCHEMAS.get(t0)
    if schema is None:
        logger.warning("Unknown event signature %s in tx %s (block %s); skipping",
                       t0 or "<none>", log.tx_hash, log.block_number)
        return None
    return schema.decode(log.topics, log.data())  # type: ignore[return-value]

def decode_pool_created(log: EventLog) -> Optional[PoolCreated]:
    t0 = (log.topic0 or "").lower()
    if t0 != POOL_CREATED_T0:
        logger.warning("Unexpected factory log %s in tx %s; skipping", t0 or "<none>", log.tx_hash)
        return None
    return POOL_CREATED.decode(log.topics, log.data())  # type: ignore[return-value]
