"""Token client protocol — fungible token balance and transfer."""
from typing import Protocol


class TokenClient(Protocol):
    """Abstract interface for a single fungible token."""

    @property
    def asset(self) -> str: ...

    async def balance(self, address: str) -> int: ...

    async def transfer(self, from_: str, to: str, amount: int) -> None: ...
