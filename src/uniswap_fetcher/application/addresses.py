from __future__ import annotations
from typing import Iterable
from eth_utils import is_address, to_checksum_address
from ..domain.errors import InvalidInputError
from ..domain.value_types import Address, TokenPair

def checksum(address: str) -> Address:
    if not isinstance(address, str) or not is_address(address):
        raise InvalidInputError(f"Invalid address: {address!r}")
    return Address(to_checksum_address(address))

def checksum_all(addresses: Iterable[str]) -> list[Address]:
    return [checksum(a) for a in addresses]

def normalize_pairs(pairs: Iterable[TokenPair]) -> list[tuple[Address, Address, int]]:
    out: list[tuple[Address, Address, int]] = []
    for token0, token1, fee in pairs:
        if not isinstance(fee, int) or not 0 <= fee < (1 << 24):
            raise InvalidInputError(f"Invalid fee tier: {fee!r}")
        out.append((checksum(token0), checksum(token1), fee))
    return out
