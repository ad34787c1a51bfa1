from __future__ import annotations

import asyncio

import pytest

from uniswap_fetcher.application.log_fetcher import fetch_logs
from uniswap_fetcher.application.planning import plan_chunks
from uniswap_fetcher.domain.decoding import POOL_EVENT_TOPICS
from uniswap_fetcher.domain.errors import InvalidInputError
from uniswap_fetcher.domain.models import BlockRange

from fakes import POOL, FakeChainReader, swap_log, uniform_timestamps


def test_plan_chunks_covers_range_without_overlap():
    chunks = plan_chunks(0, 25_000, 10_000)
    assert chunks == [BlockRange(0, 9_999), BlockRange(10_000, 19_999), BlockRange(20_000, 25_000)]


def test_plan_chunks_single_block_and_empty():
    assert plan_chunks(7, 7, 10_000) == [BlockRange(7, 7)]
    assert plan_chunks(8, 7, 10_000) == []


@pytest.mark.parametrize("start,end,step", [(0, 0, 1), (5, 104, 10), (3, 1000, 7), (100, 99_999, 10_000)])
def test_plan_chunks_is_contiguous_and_bounded(start, end, step):
    chunks = plan_chunks(start, end, step)
    assert chunks[0].start == start and chunks[-1].end == end
    for a, b in zip(chunks, chunks[1:]):
        assert b.start == a.end + 1
    assert all(0 < c.span() <= step for c in chunks)


def test_plan_chunks_rejects_non_positive_step():
    with pytest.raises(InvalidInputError):
        plan_chunks(0, 10, 0)


def test_fetch_logs_queries_each_chunk_once_in_order():
    logs = [swap_log(b) for b in (3, 10, 11, 25, 40, 41)]
    reader = FakeChainReader(uniform_timestamps(50), logs)

    got = asyncio.run(fetch_logs(reader, addresses=[POOL], topic0s=POOL_EVENT_TOPICS,
                                 from_block=10, to_block=40, step=10))

    assert [l.block_number for l in got] == [10, 11, 25, 40]
    assert all(10 <= l.block_number <= 40 for l in got)
    assert [(fb, tb) for _, _, fb, tb in reader.log_requests] == [(10, 19), (20, 29), (30, 39), (40, 40)]


def test_fetch_logs_empty_range_makes_no_request():
    reader = FakeChainReader(uniform_timestamps(10), [swap_log(1)])
    got = asyncio.run(fetch_logs(reader, addresses=[POOL], topic0s=POOL_EVENT_TOPICS, from_block=5, to_block=4))
    assert got == []
    assert reader.log_requests == []
