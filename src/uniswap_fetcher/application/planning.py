from __future__ import annotations
from typing import Iterator
from ..domain.errors import InvalidInputError
from ..domain.models import BlockRange

def plan_chunks(start_block: int, end_block: int, step: int) -> list[BlockRange]:
    """Consecutive inclusive chunks of at most `step` blocks; empty when start > end."""
    if step <= 0:
        raise InvalidInputError(f"step must be positive, got {step}")
    return list(_iter_chunks(start_block, end_block, step))

def _iter_chunks(start_block: int, end_block: int, step: int) -> Iterator[BlockRange]:
    b = start_block
    while b <= end_block:
        fb, tb = b, min(end_block, b + step - 1)
        yield BlockRange(fb, tb)
        b = tb + 1
