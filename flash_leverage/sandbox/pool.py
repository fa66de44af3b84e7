"""In-process lending pool with a flat max-LTV rule and reward accrual."""
from __future__ import annotations

import copy
import logging
from collections import defaultdict
from typing import Any, Sequence

from ..context import Ledger
from ..errors import PoolError
from ..models import BPS_DENOMINATOR, Positions, Request, RequestType

logger = logging.getLogger(__name__)


class SandboxPool:
    """Lending pool stand-in.

    Every reserve is valued 1:1 against the others. An account stays healthy
    while ``total_liabilities * 10000 <= total_supply * max_ltv_bps``.
    Reserve ids are the indexes of ``reserves``.
    """

    def __init__(
        self,
        ledger: Ledger,
        address: str,
        reserves: Sequence[str],
        reward_asset: str,
        max_ltv_bps: int = 9000,
    ) -> None:
        self._ledger = ledger
        self.address = address
        self.reserves = tuple(reserves)
        self._reward_asset = reward_asset
        self._max_ltv_bps = max_ltv_bps
        self._supply: dict[str, dict[str, int]] = defaultdict(dict)
        self._liabilities: dict[str, dict[str, int]] = defaultdict(dict)
        self._emissions: dict[str, dict[int, int]] = defaultdict(dict)
        ledger.register(self)

    # ------------------------------------------------------------------
    # Rollback
    # ------------------------------------------------------------------

    def snapshot(self) -> Any:
        return copy.deepcopy((self._supply, self._liabilities, self._emissions))

    def restore(self, state: Any) -> None:
        self._supply, self._liabilities, self._emissions = copy.deepcopy(state)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _check_reserve(self, asset: str) -> None:
        if asset not in self.reserves:
            raise PoolError(f"invalid reserve {asset}")

    def _check_health(self, account: str) -> None:
        supplied = sum(self._supply[account].values())
        owed = sum(self._liabilities[account].values())
        if owed * BPS_DENOMINATOR > supplied * self._max_ltv_bps:
            raise PoolError(
                f"insufficient collateral: {owed} owed against {supplied} supplied"
            )

    def positions_of(self, account: str) -> Positions:
        return Positions(
            supply={a: v for a, v in self._supply[account].items() if v},
            liabilities={a: v for a, v in self._liabilities[account].items() if v},
        )

    def accrue(self, account: str, reserve_id: int, amount: int) -> None:
        """Credit ``amount`` of reward emissions to ``account`` on a reserve."""
        current = self._emissions[account].get(reserve_id, 0)
        self._emissions[account][reserve_id] = current + amount

    # ------------------------------------------------------------------
    # LendingPool protocol
    # ------------------------------------------------------------------

    async def submit(
        self, from_: str, spender: str, to: str, requests: Sequence[Request]
    ) -> Positions:
        for request in requests:
            self._apply(from_, spender, to, request)
        self._check_health(from_)
        return self.positions_of(from_)

    def _apply(self, from_: str, spender: str, to: str, request: Request) -> None:
        asset, amount = request.address, request.amount
        self._check_reserve(asset)
        if amount <= 0:
            raise PoolError(f"invalid amount {amount}")

        supply = self._supply[from_]
        debt = self._liabilities[from_]

        if request.request_type is RequestType.SUPPLY_COLLATERAL:
            self._ledger.transfer(asset, spender, self.address, amount)
            supply[asset] = supply.get(asset, 0) + amount
        elif request.request_type is RequestType.WITHDRAW_COLLATERAL:
            held = supply.get(asset, 0)
            if held < amount:
                raise PoolError(f"cannot withdraw {amount}, {held} supplied")
            supply[asset] = held - amount
            self._ledger.transfer(asset, self.address, to, amount)
        elif request.request_type is RequestType.BORROW:
            liquidity = self._ledger.balance(asset, self.address)
            if liquidity < amount:
                raise PoolError(f"insufficient liquidity: {liquidity} {asset}")
            debt[asset] = debt.get(asset, 0) + amount
            self._ledger.transfer(asset, self.address, to, amount)
        elif request.request_type is RequestType.REPAY:
            # Overpayment is not pulled.
            owed = debt.get(asset, 0)
            paid = min(owed, amount)
            self._ledger.transfer(asset, spender, self.address, paid)
            debt[asset] = owed - paid
        else:
            raise PoolError(f"unsupported request type {request.request_type}")

        logger.debug("%s %d %s for %s", request.request_type.name, amount, asset, from_)

    async def get_positions(self, address: str) -> Positions:
        return self.positions_of(address)

    async def claim(self, from_: str, reserve_ids: Sequence[int], to: str) -> int:
        claimed = 0
        for reserve_id in reserve_ids:
            if not 0 <= reserve_id < len(self.reserves):
                raise PoolError(f"invalid reserve id {reserve_id}")
            claimed += self._emissions[from_].pop(reserve_id, 0)
        if claimed > 0:
            self._ledger.mint(self._reward_asset, to, claimed)
        return claimed
