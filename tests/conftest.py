from __future__ import annotations

import pytest

from fakes import FakeChainReader, uniform_timestamps


@pytest.fixture
def chain() -> FakeChainReader:
    """1001 blocks, 12s apart, no logs, no contracts."""
    return FakeChainReader(uniform_timestamps())
