from __future__ import annotations

import pytest

from uniswap_fetcher.config import Settings, get_settings
from uniswap_fetcher.domain.errors import InvalidInputError

_VARS = ("RPC_URL", "FACTORY_ADDRESS", "BATCH_SIZE", "SAMPLE_BLOCKS", "TIMEOUT_S", "MAX_CONNECTIONS")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in _VARS:
        monkeypatch.delenv("UNISWAP_FETCHER_" + name, raising=False)


def test_defaults():
    assert get_settings() == Settings()
    assert Settings().batch_size == 10_000 and Settings().sample_blocks == 100


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("UNISWAP_FETCHER_RPC_URL", "https://rpc.example")
    monkeypatch.setenv("UNISWAP_FETCHER_BATCH_SIZE", "2000")
    monkeypatch.setenv("UNISWAP_FETCHER_SAMPLE_BLOCKS", " 25 ")
    s = get_settings()
    assert (s.rpc_url, s.batch_size, s.sample_blocks) == ("https://rpc.example", 2000, 25)


def test_blank_value_falls_back_to_default(monkeypatch):
    monkeypatch.setenv("UNISWAP_FETCHER_BATCH_SIZE", "")
    assert get_settings().batch_size == 10_000


@pytest.mark.parametrize("raw", ["ten", "0", "-5"])
def test_bad_integer_is_rejected(monkeypatch, raw):
    monkeypatch.setenv("UNISWAP_FETCHER_BATCH_SIZE", raw)
    with pytest.raises(InvalidInputError, match="BATCH_SIZE"):
        get_settings()
