from __future__ import annotations

import asyncio

import pyarrow.parquet as pq

from uniswap_fetcher.adapters.parquet_sink import EVENTS_SCHEMA, events_to_table, write_events_parquet
from uniswap_fetcher.application.use_cases import PoolEventService

from fakes import ALICE, POOL, FakeChainReader, collect_log, mint_log, swap_log, uniform_timestamps


def _records():
    logs = [mint_log(9, 1 << 100), swap_log(3, amount0=-(1 << 200), tick=-5), collect_log(5)]
    svc = PoolEventService(FakeChainReader(uniform_timestamps(20), logs))
    return asyncio.run(svc.get_pool_events_by_pool_addresses([POOL], 0, 19))["data"]


def test_table_rows_are_sorted_with_nulls_for_absent_fields():
    table = events_to_table(_records())
    assert table.schema == EVENTS_SCHEMA
    rows = table.to_pylist()
    assert [r["block_number"] for r in rows] == [3, 5, 9]
    assert [r["event"] for r in rows] == ["swap", "collect", "mint"]
    assert rows[0]["amount0"] == str(-(1 << 200)) and rows[0]["tick"] == -5 and rows[0]["owner"] is None
    assert rows[2]["amount"] == str(1 << 100) and rows[2]["owner"] == ALICE and rows[2]["tick"] is None


def test_write_and_read_back(tmp_path):
    path = str(tmp_path / "out" / "events.parquet")
    assert write_events_parquet(path, _records()) == 3
    table = pq.read_table(path)
    assert table.num_rows == 3
    assert not (tmp_path / "out" / "events.parquet.tmp").exists()


def test_empty_result_writes_empty_file(tmp_path):
    path = str(tmp_path / "empty.parquet")
    assert write_events_parquet(path, []) == 0
    assert pq.read_table(path).schema.names == EVENTS_SCHEMA.names
