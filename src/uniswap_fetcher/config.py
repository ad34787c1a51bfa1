from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from .application.block_time import NUM_BLOCKS
from .application.log_fetcher import BATCH_SIZE
from .application.pools import FACTORY_ADDRESS
from .domain.errors import InvalidInputError


load_dotenv()

_PREFIX = "UNISWAP_FETCHER_"


def _env(name: str, default: str | None = None) -> str | None:
    return os.getenv(_PREFIX + name, default)


def _positive_int(name: str, default: int) -> int:
    raw = _env(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError as e:
        raise InvalidInputError(f"{_PREFIX}{name} must be an integer, got {raw!r}") from e
    if value <= 0:
        raise InvalidInputError(f"{_PREFIX}{name} must be positive, got {value}")
    return value


@dataclass(frozen=True)
class Settings:
    rpc_url: str = "http://localhost:8545"
    factory_address: str = FACTORY_ADDRESS
    batch_size: int = BATCH_SIZE
    sample_blocks: int = NUM_BLOCKS
    timeout_s: int = 20
    max_connections: int = 64


def get_settings() -> Settings:
    return Settings(
        rpc_url=_env("RPC_URL") or Settings.rpc_url,
        factory_address=_env("FACTORY_ADDRESS") or Settings.factory_address,
        batch_size=_positive_int("BATCH_SIZE", Settings.batch_size),
        sample_blocks=_positive_int("SAMPLE_BLOCKS", Settings.sample_blocks),
        timeout_s=_positive_int("TIMEOUT_S", Settings.timeout_s),
        max_connections=_positive_int("MAX_CONNECTIONS", Settings.max_connections),
    )
