"""Soroswap router adapter — quoting and bounded swap execution."""
from __future__ import annotations

import logging

from ...context import TransactionContext
from ...errors import BadRequest, InvalidAmount
from ...interfaces.router import SwapRouter

logger = logging.getLogger(__name__)


class SoroswapAdapter:
    """Quote and execute two-asset swaps for the current contract.

    Swap bounds are structural: the router is asked for an exact amount with
    a hard cap (or floor), and the adapter then checks both what the router
    reported and what actually arrived. Anything outside the bound raises
    ``BadRequest``; there is no retry.
    """

    def __init__(
        self,
        router: SwapRouter,
        ctx: TransactionContext,
        deadline_seconds: int = 1,
    ) -> None:
        self._router = router
        self._ctx = ctx
        self._deadline_seconds = deadline_seconds

    @property
    def protocol_name(self) -> str:
        return "soroswap"

    def _deadline(self) -> int:
        return self._ctx.timestamp + self._deadline_seconds

    async def quote_amounts_out(self, amount_in: int, path: list[str]) -> list[int]:
        return await self._router.router_get_amounts_out(amount_in, path)

    async def quote_amounts_in(self, amount_out: int, path: list[str]) -> list[int]:
        return await self._router.router_get_amounts_in(amount_out, path)

    async def _authorize_pair(self, asset_in: str, asset_out: str, amount: int) -> str:
        pair = await self._router.router_pair_for(asset_in, asset_out)
        self._ctx.authorize_transfer(asset_in, pair, amount)
        return pair

    async def swap_exact_in(
        self, amount_in: int, min_out: int, path: list[str], to: str
    ) -> list[int]:
        """Sell exactly ``amount_in``; fail unless at least ``min_out`` arrives."""
        if amount_in <= 0:
            raise InvalidAmount(f"swap input must be positive, got {amount_in}")

        asset_in, asset_out = path[0], path[-1]
        pair = await self._authorize_pair(asset_in, asset_out, amount_in)
        try:
            out_token = self._ctx.token(asset_out)
            before = await out_token.balance(to)
            amounts = await self._router.swap_exact_tokens_for_tokens(
                self._ctx.current_contract, amount_in, min_out, path, to,
                self._deadline(),
            )
            received = await out_token.balance(to) - before

            reported = amounts[-1] if amounts else 0
            if reported < min_out or received < min_out:
                raise BadRequest(
                    f"swap delivered {min(reported, received)} {asset_out}, "
                    f"minimum was {min_out}"
                )
        finally:
            self._ctx.authorize_transfer(asset_in, pair, 0)

        logger.info(
            "Swapped %d %s for %d %s", amounts[0], asset_in, received, asset_out
        )
        return amounts

    async def swap_exact_out(
        self, amount_out: int, max_in: int, asset_in: str, asset_out: str, to: str
    ) -> int:
        """Buy exactly ``amount_out`` spending at most ``max_in``.

        Returns the input actually spent.
        """
        if amount_out <= 0:
            raise InvalidAmount(f"swap output must be positive, got {amount_out}")

        path = [asset_in, asset_out]
        pair = await self._authorize_pair(asset_in, asset_out, max_in)
        try:
            me = self._ctx.current_contract
            in_token = self._ctx.token(asset_in)
            out_token = self._ctx.token(asset_out)
            spent_before = await in_token.balance(me)
            received_before = await out_token.balance(to)

            amounts = await self._router.swap_tokens_for_exact_tokens(
                me, amount_out, max_in, path, to, self._deadline()
            )

            spent = spent_before - await in_token.balance(me)
            received = await out_token.balance(to) - received_before
            reported_in = amounts[0] if amounts else 0
            reported_out = amounts[-1] if amounts else 0

            if reported_out < amount_out or received < amount_out:
                raise BadRequest(
                    f"swap delivered {min(reported_out, received)} {asset_out}, "
                    f"exactly {amount_out} required"
                )
            if reported_in > max_in or spent > max_in:
                raise BadRequest(
                    f"swap spent {max(reported_in, spent)} {asset_in}, cap was {max_in}"
                )
        finally:
            # Unused authorization is revoked; unspent input stays with the contract.
            self._ctx.authorize_transfer(asset_in, pair, 0)

        logger.info(
            "Bought %d %s for %d %s (cap %d)",
            received, asset_out, spent, asset_in, max_in,
        )
        return spent
