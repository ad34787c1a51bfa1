from __future__ import annotations
from typing import NewType, Literal, Union

Address = NewType("Address", str)   # EIP-55 checksum, 0x-prefixed
BlockTag = Union[int, Literal["latest", "earliest"]]
EventKind = Literal["swap", "mint", "burn", "collect"]
TokenPair = tuple[str, str, int]    # (token0, token1, fee)
