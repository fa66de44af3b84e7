"""Shared test fixtures and sample data."""
from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from flash_leverage.config import (
    AppConfig,
    ChainConfig,
    LeverageConfig,
    SandboxConfig,
    StrategyConfig,
)
from flash_leverage.context import Ledger, SignerSet, TransactionContext
from flash_leverage.models import Request, RequestType
from flash_leverage.sandbox import CONTRACT_ADDRESS, LedgerToken, Sandbox, build_sandbox

OWNER = "GOWNER"
COLLATERAL = "USTRY"
DEBT = "OUSD"
REWARD = "BLND"


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def leverage_config() -> LeverageConfig:
    return LeverageConfig(
        owner=OWNER,
        pool="CPOOL",
        collateral_asset=COLLATERAL,
        debt_asset=DEBT,
        reward_asset=REWARD,
        swap_router="CROUTER",
        target_c_factor=15000,
    )


@pytest.fixture()
def strategy_config() -> StrategyConfig:
    return StrategyConfig()


@pytest.fixture()
def sandbox_config() -> SandboxConfig:
    return SandboxConfig(
        owner_deposit=1_000_000,
        pair_reserves=(1_000_000_000, 1_000_000_000),
        pool_liquidity=1_000_000_000,
        max_ltv_bps=9000,
        router_fee_bps=30,
        flash_fee_bps=5,
    )


@pytest.fixture()
def app_config(
    leverage_config: LeverageConfig,
    strategy_config: StrategyConfig,
    sandbox_config: SandboxConfig,
) -> AppConfig:
    return AppConfig(
        leverage=leverage_config,
        strategy=strategy_config,
        chain=ChainConfig(
            rpc_endpoints=("https://rpc1.example.com", "https://rpc2.example.com"),
            rpc_timeout=10,
        ),
        sandbox=sandbox_config,
    )


# ---------------------------------------------------------------------------
# Environment fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sandbox(app_config: AppConfig) -> Sandbox:
    return build_sandbox(app_config, timestamp=1_700_000_000)


@pytest.fixture()
def bare_context() -> TransactionContext:
    ledger = Ledger(timestamp=1_700_000_000, sequence=42)
    return TransactionContext(
        ledger=ledger,
        current_contract=CONTRACT_ADDRESS,
        authorizer=SignerSet([OWNER]),
        tokens=lambda asset: LedgerToken(ledger, asset),
    )


async def seed_position(sandbox: Sandbox, supply: int, debt: int) -> None:
    """Open a position for the contract directly against the pool."""
    sandbox.ledger.mint(COLLATERAL, CONTRACT_ADDRESS, supply)
    await sandbox.pool.submit(
        CONTRACT_ADDRESS,
        CONTRACT_ADDRESS,
        CONTRACT_ADDRESS,
        [
            Request(RequestType.SUPPLY_COLLATERAL, COLLATERAL, supply),
            Request(RequestType.BORROW, DEBT, debt),
        ],
    )


# ---------------------------------------------------------------------------
# Config YAML fixture
# ---------------------------------------------------------------------------

SAMPLE_YAML = textwrap.dedent("""\
    leverage:
      owner: GOWNER
      pool: CPOOL
      collateral_asset: USTRY
      debt_asset: OUSD
      reward_asset: BLND
      swap_router: CROUTER
      target_c_factor: 15000
    strategy:
      borrow_bps: 8000
      slippage_bps: 75
      swap_deadline_seconds: 30
      reward_reserve_ids: [0, 1, 2]
    chain:
      rpc_endpoints: ["https://rpc.example.com"]
      rpc_timeout: 10
    sandbox:
      owner_deposit: 5000
      pair_reserves: [100000, 200000]
      flash_fee_bps: 9
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file
