from __future__ import annotations

from typing import Protocol, Sequence
from ..domain.models import BlockHeader, EventLog
from ..domain.value_types import BlockTag


class ChainReader(Protocol):
    """Port defining the contract for an Ethereum JSON-RPC read client."""

    async def block_number(self) -> int:
        """Return the latest block number as an integer."""

    async def get_block(self, block: BlockTag) -> BlockHeader:
        """Return number/timestamp for a block number or tag; MissingDataError if the node has none."""

    async def get_logs(
        self,
        addresses: Sequence[str],
        topic0s: Sequence[str],
        from_block: int,
        to_block: int,
    ) -> list[EventLog]:
        """Return logs for [from_block, to_block] inclusive, any address, any of topic0s."""

    async def call(self, to: str, data: str, block: BlockTag = "latest") -> bytes:
        """eth_call; return the raw return data. Reverts surface as RPCError."""
