from __future__ import annotations


class FetcherError(Exception):
    """Base class for every error raised by uniswap_fetcher."""


class InvalidInputError(FetcherError, ValueError):
    """Caller input rejected before any RPC traffic (bad address, future timestamp, ...)."""


class RPCError(FetcherError, RuntimeError):
    def __init__(self, message: str, *, method: str | None = None, code: int | None = None) -> None:
        super().__init__(message)
        self.method = method
        self.code = code


class MissingDataError(RPCError):
    """The node answered, but without a block / block number / tx hash we need."""


class EventDecodeError(FetcherError, ValueError):
    """A log matched a known signature but its topics/data do not fit the event layout."""


class TokenInfoNotFoundError(FetcherError, LookupError):
    def __init__(self, address: str) -> None:
        super().__init__(f"Token info not found for {address}")
        self.address = address
