"""Data models — all frozen (immutable)."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum

I128_MIN = -(2**127)
I128_MAX = 2**127 - 1

BPS_DENOMINATOR = 10_000


class RequestType(IntEnum):
    """Pool request kinds, with the pool's wire values."""

    SUPPLY_COLLATERAL = 2
    WITHDRAW_COLLATERAL = 3
    BORROW = 4
    REPAY = 5


@dataclass(frozen=True)
class Request:
    """Single request submitted to the lending pool."""

    request_type: RequestType
    address: str
    amount: int


@dataclass(frozen=True)
class Positions:
    """Point-in-time view of an account's pool position, keyed by asset."""

    supply: dict[str, int] = field(default_factory=dict)
    liabilities: dict[str, int] = field(default_factory=dict)

    def supply_of(self, asset: str) -> int:
        return self.supply.get(asset, 0)

    def liability_of(self, asset: str) -> int:
        return self.liabilities.get(asset, 0)


@dataclass(frozen=True)
class FlashLoanEvent:
    """Inputs handed to the flash-loan callback."""

    caller: str
    asset: str
    amount: int
    fee: int

    @property
    def repayment(self) -> int:
        return self.amount + self.fee
