"""Position sizing for leverage-up borrows and delever withdrawals."""
from __future__ import annotations

import logging

from ..config import LeverageConfig, StrategyConfig
from ..models import BPS_DENOMINATOR, Positions
from .slippage import mul_div

logger = logging.getLogger(__name__)


def derive_borrow_bps(target_c_factor: int) -> int:
    """Borrow fraction that lands a fresh position exactly on ``target_c_factor``.

    A c-factor of 15000 (150%) allows borrowing 1/1.5 of collateral value,
    i.e. 6666 bps.
    """
    return BPS_DENOMINATOR * BPS_DENOMINATOR // target_c_factor


class PositionSizer:
    """Translate balances and positions into the next borrow/withdraw size.

    Collateral and debt are compared through the configured price ratio
    (debt units per collateral unit). With the default 1:1 ratio the results
    match the reference formulas exactly.
    """

    def __init__(self, config: LeverageConfig, strategy: StrategyConfig) -> None:
        self._config = config
        self._price_num = strategy.price_numerator
        self._price_den = strategy.price_denominator
        if strategy.borrow_bps is None:
            self._borrow_bps = derive_borrow_bps(config.target_c_factor)
        else:
            self._borrow_bps = strategy.borrow_bps

    @property
    def borrow_bps(self) -> int:
        return self._borrow_bps

    def _collateral_to_debt(self, amount: int) -> int:
        if self._price_num == self._price_den:
            return amount
        return mul_div(amount, self._price_num, self._price_den)

    def _debt_to_collateral(self, amount: int) -> int:
        if self._price_num == self._price_den:
            return amount
        return mul_div(amount, self._price_den, self._price_num)

    def max_borrow(self, total_collateral: int) -> int:
        """Debt to borrow against ``total_collateral`` deposited collateral."""
        borrow_value = mul_div(total_collateral, self._borrow_bps, BPS_DENOMINATOR)
        return self._collateral_to_debt(borrow_value)

    def required_collateral(self, remaining_debt: int) -> int:
        """Collateral that keeps ``remaining_debt`` at the target c-factor."""
        required_value = mul_div(
            remaining_debt, self._config.target_c_factor, BPS_DENOMINATOR
        )
        return self._debt_to_collateral(required_value)

    def withdraw_amount(self, positions: Positions) -> int:
        """Collateral that can leave the pool after a delever repayment."""
        remaining_debt = positions.liability_of(self._config.debt_asset)
        current_collateral = positions.supply_of(self._config.collateral_asset)

        if remaining_debt == 0:
            return current_collateral

        required = self.required_collateral(remaining_debt)
        logger.debug(
            "Remaining debt %d needs %d collateral, %d supplied",
            remaining_debt, required, current_collateral,
        )
        return max(0, current_collateral - required)
