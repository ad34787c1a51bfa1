from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from eth_abi.abi import decode as abi_decode, encode as abi_encode
from eth_utils import function_signature_to_4byte_selector


@dataclass(slots=True, frozen=True)
class ContractFunction:
    """A view function: its canonical signature (selector source) and ABI return types."""
    signature: str
    returns: tuple[str, ...]

    @property
    def arg_types(self) -> list[str]:
        inner = self.signature[self.signature.index("(") + 1 : -1]
        return [t for t in inner.split(",") if t]

    def encode(self, *args: Any) -> str:
        sel = function_signature_to_4byte_selector(self.signature)
        body = abi_encode(self.arg_types, list(args)) if args else b""
        return "0x" + (sel + body).hex()

    def decode(self, data: bytes) -> tuple[Any, ...]:
        """Raises eth_abi DecodingError on empty/short/malformed return data."""
        return tuple(abi_decode(list(self.returns), data))


# Uniswap V3 factory / pool
GET_POOL     = ContractFunction("getPool(address,address,uint24)", ("address",))
TOKEN0       = ContractFunction("token0()", ("address",))
TOKEN1       = ContractFunction("token1()", ("address",))
FEE          = ContractFunction("fee()", ("uint24",))
TICK_SPACING = ContractFunction("tickSpacing()", ("int24",))

# Token interfaces: ERC-20 / ERC-721 share signatures; DSToken returns bytes32 and uint256
NAME_STRING      = ContractFunction("name()", ("string",))
SYMBOL_STRING    = ContractFunction("symbol()", ("string",))
DECIMALS_UINT8   = ContractFunction("decimals()", ("uint8",))
NAME_BYTES32     = ContractFunction("name()", ("bytes32",))
SYMBOL_BYTES32   = ContractFunction("symbol()", ("bytes32",))
DECIMALS_UINT256 = ContractFunction("decimals()", ("uint256",))


def bytes32_to_text(raw: bytes) -> str:
    """Fixed-size byte-string -> text, cut at the first NUL, lossy UTF-8."""
    return raw.split(b"\x00", 1)[0].decode("utf-8", errors="replace")
