"""Flash-loan leverage contract — leverage-up / delever orchestration."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from enum import Enum
from typing import Iterator

from ..config import LeverageConfig, StrategyConfig
from ..context import TransactionContext
from ..errors import BadRequest, InvalidAmount, Unauthorized
from ..interfaces.pool import LendingPool
from ..interfaces.router import SwapRouter
from ..models import FlashLoanEvent, Positions
from ..protocols.blend import BlendPoolAdapter
from ..protocols.soroswap import SoroswapAdapter
from .sizing import PositionSizer
from .slippage import check_i128, max_amount_in

logger = logging.getLogger(__name__)


class OperationState(Enum):
    RECEIVED = "received"
    DISPATCHED = "dispatched"
    SETTLED = "settled"
    REPAID = "repaid"


class Branch(Enum):
    LEVERAGE_UP = "leverage_up"
    DELEVERAGE = "deleverage"


class LeverageContract:
    """Flash-loan receiver that levers up or delevers a single pool position.

    A flash loan of the collateral asset levers up; a flash loan of the debt
    asset delevers. Each invocation runs inside ``ctx.atomic()``, so a
    failure at any step discards every state change made by the call and
    the exception reaches the flash-loan provider unchanged.
    """

    def __init__(
        self,
        config: LeverageConfig,
        pool: LendingPool,
        router: SwapRouter,
        strategy: StrategyConfig | None = None,
    ) -> None:
        self._config = config
        self._strategy = strategy or StrategyConfig()
        self._pool = pool
        self._router = router
        self._sizer = PositionSizer(config, self._strategy)
        self._busy = False

    @property
    def config(self) -> LeverageConfig:
        return self._config

    @property
    def strategy(self) -> StrategyConfig:
        return self._strategy

    @contextmanager
    def _exclusive(self) -> Iterator[None]:
        if self._busy:
            raise Unauthorized("re-entrant invocation refused")
        self._busy = True
        try:
            yield
        finally:
            self._busy = False

    def _adapters(
        self, ctx: TransactionContext
    ) -> tuple[BlendPoolAdapter, SoroswapAdapter]:
        pool = BlendPoolAdapter(self._pool, self._config, ctx)
        swaps = SoroswapAdapter(
            self._router, ctx, self._strategy.swap_deadline_seconds
        )
        return pool, swaps

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    async def exec_op(
        self,
        ctx: TransactionContext,
        caller: str,
        asset: str,
        amount: int,
        fee: int,
    ) -> None:
        """Flash-loan callback: act on ``amount`` of ``asset``, then repay.

        Ends by transferring exactly ``amount + fee`` of ``asset`` back to
        ``caller``.
        """
        event = FlashLoanEvent(caller=caller, asset=asset, amount=amount, fee=fee)
        with self._exclusive(), ctx.atomic():
            await self._handle(ctx, event)

    async def claim(self, ctx: TransactionContext, from_: str) -> int:
        """Claim pool emissions and forward them to ``from_``."""
        with self._exclusive(), ctx.atomic():
            ctx.require_auth(from_)
            ctx.require_auth(self._config.owner)

            me = ctx.current_contract
            pool, _ = self._adapters(ctx)
            claimed = await pool.claim(self._strategy.reward_reserve_ids, me)

            if claimed > 0:
                reward = ctx.token(self._config.reward_asset)
                await reward.transfer(me, from_, claimed)
                logger.info("Forwarded %d %s rewards to %s",
                            claimed, self._config.reward_asset, from_)
            return claimed

    async def get_positions(self, ctx: TransactionContext) -> Positions:
        pool, _ = self._adapters(ctx)
        return await pool.get_positions(ctx.current_contract)

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    def _classify(self, asset: str) -> Branch:
        if asset == self._config.collateral_asset:
            return Branch.LEVERAGE_UP
        if asset == self._config.debt_asset:
            return Branch.DELEVERAGE
        raise BadRequest(f"flash-loaned asset {asset} is neither collateral nor debt")

    async def _handle(self, ctx: TransactionContext, event: FlashLoanEvent) -> None:
        ctx.require_auth(event.caller)
        ctx.require_auth(self._config.owner)

        if event.amount <= 0:
            raise InvalidAmount(f"flash amount must be positive, got {event.amount}")
        if event.fee < 0:
            raise InvalidAmount(f"flash fee must be non-negative, got {event.fee}")
        logger.info(
            "%s: %d %s (fee %d) from %s",
            OperationState.RECEIVED.value, event.amount, event.asset,
            event.fee, event.caller,
        )

        branch = self._classify(event.asset)
        logger.info("%s: %s", OperationState.DISPATCHED.value, branch.value)

        pool, swaps = self._adapters(ctx)
        if branch is Branch.LEVERAGE_UP:
            await self._leverage_up(ctx, pool, swaps, event)
        else:
            await self._deleverage(ctx, pool, swaps, event)
        logger.info("%s: %s", OperationState.SETTLED.value, branch.value)

        await self._repay_flash_loan(ctx, event)
        logger.info(
            "%s: %d %s to %s",
            OperationState.REPAID.value, event.repayment, event.asset, event.caller,
        )

    async def _leverage_up(
        self,
        ctx: TransactionContext,
        pool: BlendPoolAdapter,
        swaps: SoroswapAdapter,
        event: FlashLoanEvent,
    ) -> None:
        cfg = self._config
        me = ctx.current_contract

        total_collateral = await ctx.token(cfg.collateral_asset).balance(me)
        await pool.deposit(total_collateral)

        max_borrow = self._sizer.max_borrow(total_collateral)
        if max_borrow <= 0:
            raise InvalidAmount(f"nothing to borrow against {total_collateral}")
        await pool.borrow(max_borrow, me)

        required_collateral = check_i128(event.amount + event.fee)
        spent = await swaps.swap_exact_out(
            required_collateral, max_borrow, cfg.debt_asset, cfg.collateral_asset, me
        )

        unspent = max_borrow - spent
        if unspent > 0:
            logger.info(
                "%d %s borrowed but not swapped, held by the contract",
                unspent, cfg.debt_asset,
            )

    async def _deleverage(
        self,
        ctx: TransactionContext,
        pool: BlendPoolAdapter,
        swaps: SoroswapAdapter,
        event: FlashLoanEvent,
    ) -> None:
        cfg = self._config
        me = ctx.current_contract

        positions = await pool.repay(event.amount)

        withdraw_amount = self._sizer.withdraw_amount(positions)
        if withdraw_amount > 0:
            await pool.withdraw(withdraw_amount, me)

        required_debt = check_i128(event.amount + event.fee)
        quote = await swaps.quote_amounts_in(
            required_debt, [cfg.collateral_asset, cfg.debt_asset]
        )
        collateral_to_swap = max_amount_in(quote[0], self._strategy.slippage_bps)

        await swaps.swap_exact_out(
            required_debt, collateral_to_swap, cfg.collateral_asset, cfg.debt_asset, me
        )

        collateral = ctx.token(cfg.collateral_asset)
        remaining = await collateral.balance(me)
        if remaining > 0:
            await collateral.transfer(me, cfg.owner, remaining)
            logger.info("Sent %d %s proceeds to owner", remaining, cfg.collateral_asset)

    async def _repay_flash_loan(
        self, ctx: TransactionContext, event: FlashLoanEvent
    ) -> None:
        token = ctx.token(event.asset)
        await token.transfer(ctx.current_contract, event.caller, event.repayment)
