"""Integration tests for the deleverage branch against the sandbox."""
from __future__ import annotations

import dataclasses
from typing import Sequence

import pytest

from flash_leverage.errors import RouterError
from flash_leverage.sandbox import (
    CONTRACT_ADDRESS,
    LENDER_ADDRESS,
    ConstantProductRouter,
    Sandbox,
)
from flash_leverage.services.leverage import LeverageContract

from conftest import COLLATERAL, DEBT, OWNER, seed_position


class LowQuoteRouter(ConstantProductRouter):
    """Quotes ten units less input than a swap will actually need."""

    async def router_get_amounts_in(
        self, amount_out: int, path: Sequence[str]
    ) -> list[int]:
        amounts = await super().router_get_amounts_in(amount_out, path)
        return [amounts[0] - 10, amounts[1]]


class TestFullDeleverage:
    @pytest.mark.asyncio
    async def test_closes_position(self, sandbox: Sandbox) -> None:
        await sandbox.leverage_up(1_000_000, deposit=1_000_000)

        fee = await sandbox.delever(1_700_000)

        assert fee == 850
        positions = await sandbox.positions()
        assert positions.supply == {}
        assert positions.liabilities == {}

    @pytest.mark.asyncio
    async def test_proceeds_go_to_owner(self, sandbox: Sandbox) -> None:
        await sandbox.leverage_up(1_000_000, deposit=1_000_000)
        pair_before = sandbox.router.reserves(COLLATERAL, DEBT)[0]

        await sandbox.delever(1_700_000)

        spent = sandbox.router.reserves(COLLATERAL, DEBT)[0] - pair_before
        assert sandbox.balance(COLLATERAL, OWNER) == 2_000_000 - spent
        assert sandbox.balance(COLLATERAL, CONTRACT_ADDRESS) == 0

    @pytest.mark.asyncio
    async def test_lender_repaid_and_float_untouched(self, sandbox: Sandbox) -> None:
        await sandbox.leverage_up(1_000_000, deposit=1_000_000)
        float_debt = sandbox.balance(DEBT, CONTRACT_ADDRESS)
        lender_before = sandbox.balance(DEBT, LENDER_ADDRESS)

        await sandbox.delever(1_700_000)

        assert sandbox.balance(DEBT, LENDER_ADDRESS) == lender_before + 850
        assert sandbox.balance(DEBT, CONTRACT_ADDRESS) == float_debt


class TestPartialDeleverage:
    @pytest.mark.asyncio
    async def test_withdraws_down_to_target(self, sandbox: Sandbox) -> None:
        await seed_position(sandbox, supply=3_000_000, debt=1_000_000)

        fee = await sandbox.delever(500_000)

        assert fee == 250
        positions = await sandbox.positions()
        assert positions.liability_of(DEBT) == 500_000
        # 500_000 debt at a 1.5 collateral factor keeps 750_000 supplied.
        assert positions.supply_of(COLLATERAL) == 750_000

    @pytest.mark.asyncio
    async def test_owner_receives_remainder(self, sandbox: Sandbox) -> None:
        await seed_position(sandbox, supply=3_000_000, debt=1_000_000)
        owner_before = sandbox.balance(COLLATERAL, OWNER)
        pair_before = sandbox.router.reserves(COLLATERAL, DEBT)[0]

        await sandbox.delever(500_000)

        spent = sandbox.router.reserves(COLLATERAL, DEBT)[0] - pair_before
        assert sandbox.balance(COLLATERAL, OWNER) == owner_before + 2_250_000 - spent
        assert sandbox.balance(DEBT, CONTRACT_ADDRESS) == 1_000_000

    @pytest.mark.asyncio
    async def test_under_target_withdraws_nothing(self, sandbox: Sandbox) -> None:
        # Collateral stays in the wallet, so the swap is funded from it.
        await seed_position(sandbox, supply=1_000_000, debt=800_000)
        sandbox.ledger.mint(COLLATERAL, CONTRACT_ADDRESS, 10_000)

        await sandbox.delever(1000)

        positions = await sandbox.positions()
        assert positions.supply_of(COLLATERAL) == 1_000_000
        assert positions.liability_of(DEBT) == 799_000

    @pytest.mark.asyncio
    async def test_swap_over_slippage_cap_rolls_back(
        self, sandbox: Sandbox
    ) -> None:
        router = LowQuoteRouter(sandbox.ledger, "CLOW")
        router.create_pair(COLLATERAL, DEBT, 1_000_000_000, 1_000_000_000)
        strategy = dataclasses.replace(sandbox.config.strategy, slippage_bps=0)
        contract = LeverageContract(
            sandbox.config.leverage, sandbox.pool, router, strategy
        )
        await seed_position(sandbox, supply=3_000_000, debt=1_000_000)
        pool_before = sandbox.pool.snapshot()
        ledger_before = sandbox.ledger.snapshot()

        with pytest.raises(RouterError, match="excessive input"):
            await sandbox.lender.flash_loan(
                contract, sandbox.context(), DEBT, 500_000
            )

        assert sandbox.pool.snapshot() == pool_before
        assert sandbox.ledger.snapshot() == ledger_before
