"""Flash-loan provider that enforces same-transaction repayment."""
from __future__ import annotations

import logging
from typing import Protocol

from ..context import Ledger, TransactionContext
from ..errors import InsufficientBalance, InvalidAmount
from ..models import BPS_DENOMINATOR
from ..services.slippage import mul_div

logger = logging.getLogger(__name__)


class FlashLoanReceiver(Protocol):
    async def exec_op(
        self,
        ctx: TransactionContext,
        caller: str,
        asset: str,
        amount: int,
        fee: int,
    ) -> None: ...


class FlashLender:
    """Advance funds, invoke the receiver, then verify principal + fee came back."""

    def __init__(self, ledger: Ledger, address: str, fee_bps: int = 5) -> None:
        self._ledger = ledger
        self.address = address
        self.fee_bps = fee_bps

    def fee_for(self, amount: int) -> int:
        return mul_div(amount, self.fee_bps, BPS_DENOMINATOR)

    async def flash_loan(
        self,
        receiver: FlashLoanReceiver,
        ctx: TransactionContext,
        asset: str,
        amount: int,
    ) -> int:
        """Lend ``amount`` of ``asset`` to the receiver for one callback.

        Returns the fee charged. Raises, with every balance restored, if the
        receiver fails or leaves the loan short.
        """
        if amount <= 0:
            raise InvalidAmount(f"flash amount must be positive, got {amount}")
        fee = self.fee_for(amount)

        with self._ledger.atomic():
            before = self._ledger.balance(asset, self.address)
            self._ledger.transfer(asset, self.address, ctx.current_contract, amount)

            await receiver.exec_op(ctx, self.address, asset, amount, fee)

            after = self._ledger.balance(asset, self.address)
            if after < before + fee:
                raise InsufficientBalance(
                    f"flash loan short: got back {after - before + amount}, "
                    f"owed {amount + fee}"
                )

        logger.info("Flash loan of %d %s repaid with fee %d", amount, asset, fee)
        return fee
