from __future__ import annotations
import os
from typing import Any, Iterable
import pyarrow as pa
import pyarrow.parquet as pq

# One row per serialized event record; variant fields absent from a given event are null.
EVENTS_SCHEMA = pa.schema([
    pa.field("block_number",     pa.int64()),
    pa.field("timestamp",        pa.int64()),
    pa.field("transaction_hash", pa.large_string()),
    pa.field("pool_address",     pa.large_string()),
    pa.field("event",            pa.large_string()),
    pa.field("sender",           pa.large_string()),
    pa.field("to",               pa.large_string()),
    pa.field("owner",            pa.large_string()),
    pa.field("recipient",        pa.large_string()),
    pa.field("tick_lower",       pa.int32()),
    pa.field("tick_upper",       pa.int32()),
    pa.field("tick",             pa.int32()),
    pa.field("amount",           pa.large_string()),     # big ints as strings
    pa.field("amount0",          pa.large_string()),
    pa.field("amount1",          pa.large_string()),
    pa.field("sqrt_price_x96",   pa.large_string()),
    pa.field("liquidity",        pa.large_string()),
])

COLS = [f.name for f in EVENTS_SCHEMA]
_TOP_LEVEL = ("block_number", "timestamp", "transaction_hash", "pool_address")

def events_to_table(records: Iterable[dict[str, Any]]) -> pa.Table:
    cols: dict[str, list] = {name: [] for name in COLS}
    for rec in records:
        data = rec["event"]["data"]
        for name in COLS:
            if name in _TOP_LEVEL:
                cols[name].append(rec[name])
            elif name == "event":
                cols[name].append(rec["event"]["type"])
            else:
                cols[name].append(data.get(name))
    table = pa.Table.from_pydict(cols, schema=EVENTS_SCHEMA)
    if len(table) == 0:
        return table
    return table.sort_by([("block_number", "ascending"), ("transaction_hash", "ascending")])

def write_events_parquet(path: str, records: Iterable[dict[str, Any]], codec: str = "zstd") -> int:
    """Write the `data` list of an events result; returns the row count."""
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    table = events_to_table(records)
    tmp = path + ".tmp"
    pq.write_table(table, tmp, compression=codec)
    os.replace(tmp, path)
    return len(table)
