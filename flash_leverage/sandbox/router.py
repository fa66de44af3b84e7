"""Constant-product (x*y=k) router over ledger-held pair reserves."""
from __future__ import annotations

import logging
from typing import Sequence

from ..context import Ledger
from ..errors import RouterError
from ..models import BPS_DENOMINATOR

logger = logging.getLogger(__name__)


def get_amount_out(amount_in: int, reserve_in: int, reserve_out: int, fee_bps: int) -> int:
    """Output for an exact input, fee taken from the input."""
    if amount_in <= 0:
        raise RouterError("insufficient input amount")
    if reserve_in <= 0 or reserve_out <= 0:
        raise RouterError("insufficient liquidity")
    amount_in_with_fee = amount_in * (BPS_DENOMINATOR - fee_bps)
    return (amount_in_with_fee * reserve_out) // (
        reserve_in * BPS_DENOMINATOR + amount_in_with_fee
    )


def get_amount_in(amount_out: int, reserve_in: int, reserve_out: int, fee_bps: int) -> int:
    """Input needed for an exact output, rounded up."""
    if amount_out <= 0:
        raise RouterError("insufficient output amount")
    if reserve_in <= 0 or amount_out >= reserve_out:
        raise RouterError("insufficient liquidity")
    numerator = reserve_in * amount_out * BPS_DENOMINATOR
    denominator = (reserve_out - amount_out) * (BPS_DENOMINATOR - fee_bps)
    return numerator // denominator + 1


class ConstantProductRouter:
    """Router stand-in; pair reserves are the pair address's ledger balances."""

    def __init__(self, ledger: Ledger, address: str, fee_bps: int = 30) -> None:
        self._ledger = ledger
        self.address = address
        self.fee_bps = fee_bps
        self._pairs: dict[frozenset[str], str] = {}

    def create_pair(
        self, asset_a: str, asset_b: str, amount_a: int, amount_b: int
    ) -> str:
        """Register a pair and seed its reserves."""
        a, b = sorted((asset_a, asset_b))
        pair = f"pair:{a}:{b}"
        self._pairs[frozenset((asset_a, asset_b))] = pair
        self._ledger.mint(asset_a, pair, amount_a)
        self._ledger.mint(asset_b, pair, amount_b)
        return pair

    def reserves(self, asset_in: str, asset_out: str) -> tuple[int, int]:
        pair = self._pair(asset_in, asset_out)
        return (
            self._ledger.balance(asset_in, pair),
            self._ledger.balance(asset_out, pair),
        )

    def _pair(self, asset_a: str, asset_b: str) -> str:
        try:
            return self._pairs[frozenset((asset_a, asset_b))]
        except KeyError:
            raise RouterError(f"no pair for {asset_a}/{asset_b}") from None

    def _check(self, path: Sequence[str], deadline: int) -> None:
        if len(path) != 2:
            raise RouterError("only two-asset paths are supported")
        if deadline < self._ledger.timestamp:
            raise RouterError(f"expired: deadline {deadline} < {self._ledger.timestamp}")

    # ------------------------------------------------------------------
    # SwapRouter protocol
    # ------------------------------------------------------------------

    async def router_pair_for(self, asset_a: str, asset_b: str) -> str:
        return self._pair(asset_a, asset_b)

    async def router_get_amounts_out(
        self, amount_in: int, path: Sequence[str]
    ) -> list[int]:
        return self._amounts_out(amount_in, path)

    async def router_get_amounts_in(
        self, amount_out: int, path: Sequence[str]
    ) -> list[int]:
        return self._amounts_in(amount_out, path)

    def _amounts_out(self, amount_in: int, path: Sequence[str]) -> list[int]:
        reserve_in, reserve_out = self.reserves(path[0], path[-1])
        return [amount_in, get_amount_out(amount_in, reserve_in, reserve_out, self.fee_bps)]

    def _amounts_in(self, amount_out: int, path: Sequence[str]) -> list[int]:
        reserve_in, reserve_out = self.reserves(path[0], path[-1])
        return [get_amount_in(amount_out, reserve_in, reserve_out, self.fee_bps), amount_out]

    async def swap_exact_tokens_for_tokens(
        self,
        sender: str,
        amount_in: int,
        amount_out_min: int,
        path: Sequence[str],
        to: str,
        deadline: int,
    ) -> list[int]:
        self._check(path, deadline)
        amounts = self._amounts_out(amount_in, path)
        if amounts[-1] < amount_out_min:
            raise RouterError(
                f"insufficient output amount: {amounts[-1]} < {amount_out_min}"
            )
        self._settle(sender, path, amounts, to)
        return amounts

    async def swap_tokens_for_exact_tokens(
        self,
        sender: str,
        amount_out: int,
        amount_in_max: int,
        path: Sequence[str],
        to: str,
        deadline: int,
    ) -> list[int]:
        self._check(path, deadline)
        amounts = self._amounts_in(amount_out, path)
        if amounts[0] > amount_in_max:
            raise RouterError(
                f"excessive input amount: {amounts[0]} > {amount_in_max}"
            )
        self._settle(sender, path, amounts, to)
        return amounts

    def _settle(
        self, sender: str, path: Sequence[str], amounts: list[int], to: str
    ) -> None:
        asset_in, asset_out = path[0], path[-1]
        pair = self._pair(asset_in, asset_out)
        self._ledger.transfer_from(asset_in, pair, sender, pair, amounts[0])
        self._ledger.transfer(asset_out, pair, to, amounts[-1])
        logger.debug(
            "Pair %s: %d %s in, %d %s out", pair, amounts[0], asset_in,
            amounts[-1], asset_out,
        )
