from __future__ import annotations

import hashlib
import json
from dataclasses import fields
from decimal import Decimal
from typing import Any, Iterable

from ..domain.models import DecodedEvent, PoolEvent, TokenInfo

# Fields that are always small enough for a JSON number; everything else numeric is a decimal string
_SMALL_INT_FIELDS = frozenset({"tick", "tick_lower", "tick_upper", "fee", "tick_spacing"})


def format_float(x: float) -> str:
    """Plain positional notation, shortest round-trip digits, no trailing '.0' (0.0 -> '0')."""
    s = format(Decimal(repr(float(x))), "f")
    if "." in s:
        s = s.rstrip("0").rstrip(".")
    return "0" if s in ("-0", "") else s


def event_fields(ev: PoolEvent) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for f in fields(ev):
        v = getattr(ev, f.name)
        if isinstance(v, int) and f.name not in _SMALL_INT_FIELDS:
            v = str(v)
        out[f.name] = v
    return out


def decoded_event_record(d: DecodedEvent) -> dict[str, Any]:
    tx = d.tx_hash[2:] if d.tx_hash.startswith("0x") else d.tx_hash
    return {
        "event": {"type": d.event.kind, "data": event_fields(d.event)},
        "transaction_hash": tx.lower(),
        "block_number": d.block_number,
        "timestamp": d.timestamp,
        "pool_address": d.pool_address,
    }


def data_hash(data: list[dict[str, Any]]) -> str:
    """SHA-256 over the compact, key-sorted JSON text; stable across repeated calls."""
    text = json.dumps(data, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(text.encode()).hexdigest()


def events_result(events: Iterable[DecodedEvent]) -> dict[str, Any]:
    data = [decoded_event_record(d) for d in events]
    return {"data": data, "overall_data_hash": data_hash(data)}


def token_record(address: str, info: TokenInfo) -> dict[str, Any]:
    return {"address": address, "name": info.name, "symbol": info.symbol, "decimals": info.decimals}
