"""Lending pool protocol — batched position requests."""
from typing import Protocol, Sequence

from ..models import Positions, Request


class LendingPool(Protocol):
    """Abstract interface for a collateral/debt lending pool."""

    async def submit(
        self, from_: str, spender: str, to: str, requests: Sequence[Request]
    ) -> Positions: ...

    async def get_positions(self, address: str) -> Positions: ...

    async def claim(self, from_: str, reserve_ids: Sequence[int], to: str) -> int: ...
