"""Token client backed by the in-process ledger."""
from __future__ import annotations

from ..context import Ledger


class LedgerToken:
    """Fungible token whose balances live in a ``Ledger``."""

    def __init__(self, ledger: Ledger, asset: str) -> None:
        self._ledger = ledger
        self._asset = asset

    @property
    def asset(self) -> str:
        return self._asset

    async def balance(self, address: str) -> int:
        return self._ledger.balance(self._asset, address)

    async def transfer(self, from_: str, to: str, amount: int) -> None:
        self._ledger.transfer(self._asset, from_, to, amount)
