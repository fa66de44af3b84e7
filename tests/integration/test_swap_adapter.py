"""Integration tests for the Soroswap adapter against the sandbox router."""
from __future__ import annotations

from typing import Sequence

import pytest

from flash_leverage.errors import BadRequest, InvalidAmount, RouterError
from flash_leverage.protocols.soroswap import SoroswapAdapter
from flash_leverage.sandbox import CONTRACT_ADDRESS, ConstantProductRouter, Sandbox

from conftest import COLLATERAL, DEBT


class SkimmingRouter(ConstantProductRouter):
    """Reports the quoted output of an exact-in swap but keeps a unit."""

    async def swap_exact_tokens_for_tokens(
        self,
        sender: str,
        amount_in: int,
        amount_out_min: int,
        path: Sequence[str],
        to: str,
        deadline: int,
    ) -> list[int]:
        amounts = await super().swap_exact_tokens_for_tokens(
            sender, amount_in, 0, path, to, deadline
        )
        self._ledger.transfer(path[-1], to, "skim", 1)
        return amounts


class OverReportingRouter(ConstantProductRouter):
    """Settles an exact-output swap but reports more input than the cap."""

    async def swap_tokens_for_exact_tokens(
        self,
        sender: str,
        amount_out: int,
        amount_in_max: int,
        path: Sequence[str],
        to: str,
        deadline: int,
    ) -> list[int]:
        amounts = await super().swap_tokens_for_exact_tokens(
            sender, amount_out, amount_in_max, path, to, deadline
        )
        return [amount_in_max + 1, amounts[-1]]


@pytest.fixture()
def swaps(sandbox: Sandbox) -> SoroswapAdapter:
    sandbox.ledger.mint(COLLATERAL, CONTRACT_ADDRESS, 100_000)
    return SoroswapAdapter(sandbox.router, sandbox.context(), deadline_seconds=1)


class TestQuotes:
    def test_protocol_name(self, swaps: SoroswapAdapter) -> None:
        assert swaps.protocol_name == "soroswap"

    @pytest.mark.asyncio
    async def test_quotes_are_consistent(self, swaps: SoroswapAdapter) -> None:
        out = await swaps.quote_amounts_out(10_000, [COLLATERAL, DEBT])
        back = await swaps.quote_amounts_in(out[1], [COLLATERAL, DEBT])
        assert out[0] == 10_000
        assert back[0] <= 10_000


class TestSwapExactOut:
    @pytest.mark.asyncio
    async def test_buys_exact_amount(
        self, sandbox: Sandbox, swaps: SoroswapAdapter
    ) -> None:
        quote = await swaps.quote_amounts_in(5000, [COLLATERAL, DEBT])

        spent = await swaps.swap_exact_out(5000, 6000, COLLATERAL, DEBT, CONTRACT_ADDRESS)

        assert spent == quote[0]
        assert sandbox.balance(DEBT, CONTRACT_ADDRESS) == 5000
        assert sandbox.balance(COLLATERAL, CONTRACT_ADDRESS) == 100_000 - spent

    @pytest.mark.asyncio
    async def test_revokes_unused_allowance(
        self, sandbox: Sandbox, swaps: SoroswapAdapter
    ) -> None:
        await swaps.swap_exact_out(5000, 6000, COLLATERAL, DEBT, CONTRACT_ADDRESS)
        pair = await sandbox.router.router_pair_for(COLLATERAL, DEBT)
        assert sandbox.ledger.allowance(COLLATERAL, CONTRACT_ADDRESS, pair) == 0

    @pytest.mark.asyncio
    async def test_cap_enforced_by_router(self, swaps: SoroswapAdapter) -> None:
        with pytest.raises(RouterError, match="excessive input"):
            await swaps.swap_exact_out(5000, 5000, COLLATERAL, DEBT, CONTRACT_ADDRESS)

    @pytest.mark.asyncio
    async def test_reported_input_over_cap_rejected(self, sandbox: Sandbox) -> None:
        router = OverReportingRouter(sandbox.ledger, "COVER")
        pair = router.create_pair(COLLATERAL, DEBT, 1_000_000_000, 1_000_000_000)
        sandbox.ledger.mint(COLLATERAL, CONTRACT_ADDRESS, 10_000)
        swaps = SoroswapAdapter(router, sandbox.context())

        with pytest.raises(BadRequest, match="cap was 6000"):
            await swaps.swap_exact_out(5000, 6000, COLLATERAL, DEBT, CONTRACT_ADDRESS)

        assert sandbox.ledger.allowance(COLLATERAL, CONTRACT_ADDRESS, pair) == 0

    @pytest.mark.asyncio
    async def test_router_failure_revokes_allowance(
        self, sandbox: Sandbox, swaps: SoroswapAdapter
    ) -> None:
        with pytest.raises(RouterError):
            await swaps.swap_exact_out(5000, 5000, COLLATERAL, DEBT, CONTRACT_ADDRESS)

        pair = await sandbox.router.router_pair_for(COLLATERAL, DEBT)
        assert sandbox.ledger.allowance(COLLATERAL, CONTRACT_ADDRESS, pair) == 0

    @pytest.mark.asyncio
    async def test_non_positive_output(self, swaps: SoroswapAdapter) -> None:
        with pytest.raises(InvalidAmount):
            await swaps.swap_exact_out(0, 100, COLLATERAL, DEBT, CONTRACT_ADDRESS)

    @pytest.mark.asyncio
    async def test_expired_deadline(self, sandbox: Sandbox) -> None:
        sandbox.ledger.mint(COLLATERAL, CONTRACT_ADDRESS, 10_000)
        swaps = SoroswapAdapter(sandbox.router, sandbox.context(), deadline_seconds=-1)
        with pytest.raises(RouterError, match="expired"):
            await swaps.swap_exact_out(100, 1000, COLLATERAL, DEBT, CONTRACT_ADDRESS)


class TestSwapExactIn:
    @pytest.mark.asyncio
    async def test_sells_exact_amount(
        self, sandbox: Sandbox, swaps: SoroswapAdapter
    ) -> None:
        amounts = await swaps.swap_exact_in(
            10_000, 9_900, [COLLATERAL, DEBT], CONTRACT_ADDRESS
        )

        assert amounts[0] == 10_000
        assert sandbox.balance(DEBT, CONTRACT_ADDRESS) == amounts[1]
        assert sandbox.balance(COLLATERAL, CONTRACT_ADDRESS) == 90_000

    @pytest.mark.asyncio
    async def test_floor_enforced_by_router(self, swaps: SoroswapAdapter) -> None:
        with pytest.raises(RouterError, match="insufficient output"):
            await swaps.swap_exact_in(10_000, 10_000, [COLLATERAL, DEBT], CONTRACT_ADDRESS)

    @pytest.mark.asyncio
    async def test_short_delivery_rejected(self, sandbox: Sandbox) -> None:
        router = SkimmingRouter(sandbox.ledger, "CSKIM")
        router.create_pair(COLLATERAL, DEBT, 1_000_000_000, 1_000_000_000)
        sandbox.ledger.mint(COLLATERAL, CONTRACT_ADDRESS, 10_000)
        swaps = SoroswapAdapter(router, sandbox.context())
        quote = await swaps.quote_amounts_out(10_000, [COLLATERAL, DEBT])

        with pytest.raises(BadRequest, match="minimum was"):
            await swaps.swap_exact_in(
                10_000, quote[1], [COLLATERAL, DEBT], CONTRACT_ADDRESS
            )

        pair = await router.router_pair_for(COLLATERAL, DEBT)
        assert sandbox.ledger.allowance(COLLATERAL, CONTRACT_ADDRESS, pair) == 0

    @pytest.mark.asyncio
    async def test_non_positive_input(self, swaps: SoroswapAdapter) -> None:
        with pytest.raises(InvalidAmount):
            await swaps.swap_exact_in(0, 0, [COLLATERAL, DEBT], CONTRACT_ADDRESS)
