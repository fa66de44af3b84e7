"""Blend pool adapter — typed single-request calls into the lending pool."""
from __future__ import annotations

import logging
from typing import Sequence

from ...config import LeverageConfig
from ...context import TransactionContext
from ...interfaces.pool import LendingPool
from ...models import Positions, Request, RequestType

logger = logging.getLogger(__name__)


class BlendPoolAdapter:
    """Submit collateral/debt requests on behalf of the current contract.

    Every mutating call submits exactly one request and returns the
    position snapshot the pool reports afterwards. Pool failures propagate
    unchanged.
    """

    def __init__(
        self, pool: LendingPool, config: LeverageConfig, ctx: TransactionContext
    ) -> None:
        self._pool = pool
        self._config = config
        self._self = ctx.current_contract

    @property
    def protocol_name(self) -> str:
        return "blend"

    async def _submit(
        self, request_type: RequestType, asset: str, amount: int, to: str
    ) -> Positions:
        request = Request(request_type=request_type, address=asset, amount=amount)
        logger.debug("Submitting %s %d %s to %s", request_type.name, amount, asset, to)
        return await self._pool.submit(self._self, self._self, to, [request])

    async def deposit(self, amount: int) -> Positions:
        """Supply collateral from the contract."""
        return await self._submit(
            RequestType.SUPPLY_COLLATERAL,
            self._config.collateral_asset,
            amount,
            self._self,
        )

    async def withdraw(self, amount: int, to: str) -> Positions:
        """Withdraw collateral to ``to``."""
        return await self._submit(
            RequestType.WITHDRAW_COLLATERAL,
            self._config.collateral_asset,
            amount,
            to,
        )

    async def borrow(self, amount: int, to: str) -> Positions:
        """Borrow the debt asset to ``to``."""
        return await self._submit(
            RequestType.BORROW, self._config.debt_asset, amount, to
        )

    async def repay(self, amount: int) -> Positions:
        """Repay debt from the contract's own balance."""
        return await self._submit(
            RequestType.REPAY, self._config.debt_asset, amount, self._self
        )

    async def get_positions(self, address: str) -> Positions:
        return await self._pool.get_positions(address)

    async def claim(self, reserve_ids: Sequence[int], to: str) -> int:
        """Claim accrued emissions for ``reserve_ids``; returns the amount."""
        return await self._pool.claim(self._self, list(reserve_ids), to)
