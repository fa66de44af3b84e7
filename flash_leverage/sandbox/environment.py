"""Wire a complete in-process environment from configuration."""
from __future__ import annotations

import logging
from dataclasses import dataclass

from ..config import AppConfig
from ..context import Ledger, SignerSet, TransactionContext
from ..models import Positions
from ..services.leverage import LeverageContract
from .lender import FlashLender
from .pool import SandboxPool
from .router import ConstantProductRouter
from .token import LedgerToken

logger = logging.getLogger(__name__)

CONTRACT_ADDRESS = "leverage-contract"
LENDER_ADDRESS = "flash-lender"


@dataclass
class Sandbox:
    """Ledger, collaborators and contract sharing one rollback domain."""

    config: AppConfig
    ledger: Ledger
    pool: SandboxPool
    router: ConstantProductRouter
    lender: FlashLender
    contract: LeverageContract

    def context(self, *signers: str) -> TransactionContext:
        """Invocation context; the lender and owner sign unless told otherwise."""
        if not signers:
            signers = (self.lender.address, self.config.leverage.owner)
        return TransactionContext(
            ledger=self.ledger,
            current_contract=CONTRACT_ADDRESS,
            authorizer=SignerSet(signers),
            tokens=lambda asset: LedgerToken(self.ledger, asset),
        )

    def balance(self, asset: str, address: str) -> int:
        return self.ledger.balance(asset, address)

    async def positions(self) -> Positions:
        return await self.contract.get_positions(self.context())

    async def leverage_up(self, amount: int, deposit: int = 0) -> int:
        """Move ``deposit`` collateral from the owner, then flash-loan ``amount``."""
        lev = self.config.leverage
        with self.ledger.atomic():
            if deposit > 0:
                self.ledger.transfer(lev.collateral_asset, lev.owner, CONTRACT_ADDRESS, deposit)
            fee = await self.lender.flash_loan(
                self.contract, self.context(), lev.collateral_asset, amount
            )
        self.ledger.advance()
        return fee

    async def delever(self, amount: int) -> int:
        fee = await self.lender.flash_loan(
            self.contract, self.context(), self.config.leverage.debt_asset, amount
        )
        self.ledger.advance()
        return fee

    async def claim(self) -> int:
        owner = self.config.leverage.owner
        claimed = await self.contract.claim(self.context(owner), owner)
        self.ledger.advance()
        return claimed


def build_sandbox(config: AppConfig, timestamp: int = 0) -> Sandbox:
    """Seed pool liquidity, the swap pair, lender funds and the owner's wallet."""
    lev = config.leverage
    box = config.sandbox
    ledger = Ledger(timestamp=timestamp)

    pool = SandboxPool(
        ledger,
        lev.pool,
        reserves=(lev.collateral_asset, lev.debt_asset),
        reward_asset=lev.reward_asset,
        max_ltv_bps=box.max_ltv_bps,
    )
    ledger.mint(lev.collateral_asset, pool.address, box.pool_liquidity)
    ledger.mint(lev.debt_asset, pool.address, box.pool_liquidity)

    router = ConstantProductRouter(ledger, lev.swap_router, fee_bps=box.router_fee_bps)
    router.create_pair(lev.collateral_asset, lev.debt_asset, *box.pair_reserves)

    lender = FlashLender(ledger, LENDER_ADDRESS, fee_bps=box.flash_fee_bps)
    ledger.mint(lev.collateral_asset, lender.address, box.pool_liquidity)
    ledger.mint(lev.debt_asset, lender.address, box.pool_liquidity)

    ledger.mint(lev.collateral_asset, lev.owner, box.owner_deposit)

    contract = LeverageContract(lev, pool, router, config.strategy)
    logger.debug("Sandbox ready at ledger %d", ledger.sequence)
    return Sandbox(
        config=config,
        ledger=ledger,
        pool=pool,
        router=router,
        lender=lender,
        contract=contract,
    )
