from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from eth_abi.exceptions import DecodingError

from ..domain import calls
from ..domain.errors import RPCError, TokenInfoNotFoundError
from ..domain.models import TokenInfo
from ..ports.rpc import ChainReader
from .addresses import checksum
from .caches import TokenInfoCache

logger = logging.getLogger(__name__)


def _text(v: str) -> str: return v.rstrip("\x00")
def _bytes32_text(v: bytes) -> str: return calls.bytes32_to_text(v)
def _u8(v: int) -> int: return int(v) & 0xFF


@dataclass(slots=True, frozen=True)
class TokenSchema:
    """
    One token interface. `decimals` None means the interface has no decimals()
    and `fixed_decimals` is reported instead.
    """
    kind: str
    name: calls.ContractFunction
    symbol: calls.ContractFunction
    decimals: Optional[calls.ContractFunction]
    text: Callable[[object], str]
    narrow: Callable[[int], int] = int
    fixed_decimals: int = 0


TOKEN_SCHEMAS: tuple[TokenSchema, ...] = (
    TokenSchema("erc20", calls.NAME_STRING, calls.SYMBOL_STRING, calls.DECIMALS_UINT8, text=_text),
    TokenSchema("erc721", calls.NAME_STRING, calls.SYMBOL_STRING, None, text=_text, fixed_decimals=1),
    TokenSchema("dstoken", calls.NAME_BYTES32, calls.SYMBOL_BYTES32, calls.DECIMALS_UINT256,
                text=_bytes32_text, narrow=_u8),
)

# What makes a schema attempt "not this interface" rather than a bug
_SCHEMA_MISS = (RPCError, DecodingError, ValueError, OverflowError)


class TokenInfoResolver:
    def __init__(self, reader: ChainReader, cache: TokenInfoCache,
                 schemas: tuple[TokenSchema, ...] = TOKEN_SCHEMAS) -> None:
        self.reader = reader
        self.cache = cache
        self.schemas = schemas

    async def _call(self, address: str, fn: calls.ContractFunction) -> object:
        raw = await self.reader.call(address, fn.encode())
        return fn.decode(raw)[0]

    async def _try_schema(self, address: str, schema: TokenSchema) -> Optional[TokenInfo]:
        try:
            name = schema.text(await self._call(address, schema.name))
            symbol = schema.text(await self._call(address, schema.symbol))
            if schema.decimals is None:
                decimals = schema.fixed_decimals
            else:
                decimals = schema.narrow(await self._call(address, schema.decimals))  # type: ignore[arg-type]
        except _SCHEMA_MISS as e:
            logger.debug("%s: %s schema failed: %s", address, schema.kind, e)
            return None
        return TokenInfo(name=name, symbol=symbol, decimals=decimals)

    async def fetch(self, address: str) -> TokenInfo:
        """Query the chain, ignoring the cache. TokenInfoNotFoundError when every schema fails."""
        addr = checksum(address)
        for schema in self.schemas:
            info = await self._try_schema(addr, schema)
            if info is not None:
                return info
        raise TokenInfoNotFoundError(addr)

    async def get(self, address: str) -> TokenInfo:
        addr = checksum(address)
        return await self.cache.get_or_fetch(addr, lambda: self.fetch(addr))

    async def get_or_placeholder(self, address: str) -> TokenInfo:
        """For incidental lookups: a token we cannot read must not sink the whole batch."""
        try:
            return await self.get(address)
        except TokenInfoNotFoundError:
            logger.warning("token info not found for %s; using empty placeholder", address)
            return TokenInfo.placeholder()
