from __future__ import annotations
import itertools
import logging
from typing import Any, Sequence

import httpx

from ..domain.errors import InvalidInputError, MissingDataError, RPCError
from ..domain.models import BlockHeader, EventLog
from ..domain.value_types import BlockTag
from ..ports.rpc import ChainReader

logger = logging.getLogger(__name__)

def _to_hex_block(x: BlockTag) -> str: return x if isinstance(x, str) else hex(int(x))
def _is_topic_hash(x: str) -> bool: return isinstance(x, str) and x.startswith("0x") and len(x)==66
def _hex_int(v: Any) -> int | None:
    if v is None: return None
    return int(v, 16) if isinstance(v, str) else int(v)

def _topics_param(topic0s: Sequence[str]) -> list[list[str]]:
    t0s = [str(t).strip().lower() for t in topic0s]
    if not all(_is_topic_hash(x) for x in t0s):
        raise InvalidInputError(f"Invalid topic0(s): {t0s}")
    return [t0s]

def _to_event_log(rl: dict[str, Any]) -> EventLog:
    topics = tuple((t if isinstance(t, str) else t.decode()).lower() for t in rl.get("topics", []))
    txh = rl.get("transactionHash")
    return EventLog(
        address=rl["address"].lower(),
        topics=topics,
        data_hex=str(rl.get("data") or "0x"),
        block_number=_hex_int(rl.get("blockNumber")),
        tx_hash=txh.lower() if txh else None,
        log_index=_hex_int(rl.get("logIndex")) or 0,
    )


class HttpxChainReader(ChainReader):
    """JSON-RPC over httpx. No retries: any transport/node error surfaces as RPCError."""

    def __init__(
        self,
        rpc_url: str,
        *,
        timeout_s: float = 20,
        max_connections: int = 64,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.rpc_url = rpc_url
        self._ids = itertools.count(1)
        self.client = httpx.AsyncClient(
            http2=transport is None,
            timeout=httpx.Timeout(timeout_s),
            limits=httpx.Limits(max_connections=max_connections, max_keepalive_connections=max(1, max_connections//2)),
            transport=transport,
        )

    async def __aenter__(self) -> "HttpxChainReader":
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()

    async def _request(self, method: str, params: list[Any]) -> Any:
        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}
        try:
            r = await self.client.post(self.rpc_url, json=payload)
            r.raise_for_status()
            data = r.json()
        except httpx.HTTPError as e:
            raise RPCError(f"{method} transport error: {e}", method=method) from e
        except ValueError as e:
            raise RPCError(f"{method} returned a non-JSON body", method=method) from e
        if "error" in data:
            err = data["error"]
            if isinstance(err, dict):
                code, msg = err.get("code"), err.get("message")
            else:
                code, msg = None, str(err)
            raise RPCError(f"{method} RPC error code={code} message={msg}", method=method, code=code)
        return data.get("result")

    async def block_number(self) -> int:
        return int(await self._request("eth_blockNumber", []), 16)

    async def get_block(self, block: BlockTag) -> BlockHeader:
        res = await self._request("eth_getBlockByNumber", [_to_hex_block(block), False])
        if not res:
            raise MissingDataError(f"Block {block} not found", method="eth_getBlockByNumber")
        number = _hex_int(res.get("number"))
        if number is None:
            raise MissingDataError(f"Block {block} has no number (pending?)", method="eth_getBlockByNumber")
        return BlockHeader(number=number, timestamp=_hex_int(res["timestamp"]) or 0)

    async def get_logs(self, addresses: Sequence[str], topic0s: Sequence[str], from_block: int, to_block: int) -> list[EventLog]:
        params = [{
            "address": [a.lower() for a in addresses],
            "fromBlock": _to_hex_block(from_block),
            "toBlock": _to_hex_block(to_block),
            "topics": _topics_param(topic0s),
        }]
        res = await self._request("eth_getLogs", params)
        logger.debug("eth_getLogs %s..%s -> %d logs", from_block, to_block, len(res or []))
        return [_to_event_log(rl) for rl in res or []]

    async def call(self, to: str, data: str, block: BlockTag = "latest") -> bytes:
        res = await self._request("eth_call", [{"to": to, "data": data}, _to_hex_block(block)])
        res = res or "0x"
        if not isinstance(res, str) or res[:2].lower() != "0x":
            raise RPCError(f"eth_call returned a non-hex result: {res!r}", method="eth_call")
        try:
            return bytes.fromhex(res[2:])
        except ValueError as e:
            raise RPCError(f"eth_call returned malformed hex: {res!r}", method="eth_call") from e
