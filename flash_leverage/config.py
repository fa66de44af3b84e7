"""Configuration loader — reads config.yaml, interpolates env vars, validates."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LeverageConfig:
    """Immutable contract configuration, fixed at construction."""

    owner: str
    pool: str
    collateral_asset: str
    debt_asset: str
    reward_asset: str
    swap_router: str
    target_c_factor: int

    def __post_init__(self) -> None:
        if self.target_c_factor <= 0:
            raise ValueError(
                f"target_c_factor must be positive, got {self.target_c_factor}"
            )


@dataclass(frozen=True)
class StrategyConfig:
    """Tunable sizing and swap parameters.

    ``borrow_bps=None`` derives the borrow fraction from the target
    c-factor instead of using a fixed value.
    """

    borrow_bps: int | None = 8500
    price_numerator: int = 1
    price_denominator: int = 1
    slippage_bps: int = 50
    swap_deadline_seconds: int = 1
    reward_reserve_ids: tuple[int, ...] = (0, 1)


@dataclass(frozen=True)
class ChainConfig:
    rpc_endpoints: tuple[str, ...] = ()
    rpc_timeout: int = 30


@dataclass(frozen=True)
class SandboxConfig:
    """Initial state for the in-process simulation."""

    owner_deposit: int = 10_000_000_000
    pair_reserves: tuple[int, int] = (10_000_000_000_000, 10_000_000_000_000)
    pool_liquidity: int = 10_000_000_000_000
    max_ltv_bps: int = 9000
    router_fee_bps: int = 30
    flash_fee_bps: int = 5


@dataclass(frozen=True)
class AppConfig:
    leverage: LeverageConfig
    strategy: StrategyConfig = field(default_factory=StrategyConfig)
    chain: ChainConfig = field(default_factory=ChainConfig)
    sandbox: SandboxConfig = field(default_factory=SandboxConfig)


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------

_ADDRESS_FIELDS = (
    "owner",
    "pool",
    "collateral_asset",
    "debt_asset",
    "reward_asset",
    "swap_router",
)


def _build_leverage(raw: dict[str, Any]) -> LeverageConfig:
    missing = [name for name in _ADDRESS_FIELDS if not raw.get(name)]
    if missing:
        raise ValueError(f"Leverage config is missing: {', '.join(missing)}")
    if "target_c_factor" not in raw:
        raise ValueError("Leverage config is missing: target_c_factor")

    return LeverageConfig(
        owner=str(raw["owner"]),
        pool=str(raw["pool"]),
        collateral_asset=str(raw["collateral_asset"]),
        debt_asset=str(raw["debt_asset"]),
        reward_asset=str(raw["reward_asset"]),
        swap_router=str(raw["swap_router"]),
        target_c_factor=int(raw["target_c_factor"]),
    )


def _build_strategy(raw: dict[str, Any]) -> StrategyConfig:
    borrow_bps = raw.get("borrow_bps", 8500)
    return StrategyConfig(
        borrow_bps=None if borrow_bps is None else int(borrow_bps),
        price_numerator=int(raw.get("price_numerator", 1)),
        price_denominator=int(raw.get("price_denominator", 1)),
        slippage_bps=int(raw.get("slippage_bps", 50)),
        swap_deadline_seconds=int(raw.get("swap_deadline_seconds", 1)),
        reward_reserve_ids=tuple(
            int(i) for i in raw.get("reward_reserve_ids", [0, 1])
        ),
    )


def _build_chain(raw: dict[str, Any]) -> ChainConfig:
    return ChainConfig(
        rpc_endpoints=tuple(raw.get("rpc_endpoints", [])),
        rpc_timeout=int(raw.get("rpc_timeout", 30)),
    )


def _build_sandbox(raw: dict[str, Any]) -> SandboxConfig:
    defaults = SandboxConfig()
    reserves = raw.get("pair_reserves", list(defaults.pair_reserves))
    return SandboxConfig(
        owner_deposit=int(raw.get("owner_deposit", defaults.owner_deposit)),
        pair_reserves=(int(reserves[0]), int(reserves[1])),
        pool_liquidity=int(raw.get("pool_liquidity", defaults.pool_liquidity)),
        max_ltv_bps=int(raw.get("max_ltv_bps", defaults.max_ltv_bps)),
        router_fee_bps=int(raw.get("router_fee_bps", defaults.router_fee_bps)),
        flash_fee_bps=int(raw.get("flash_fee_bps", defaults.flash_fee_bps)),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root (one level up from this package).
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(__file__).resolve().parent.parent / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)

    cfg = AppConfig(
        leverage=_build_leverage(raw.get("leverage", {})),
        strategy=_build_strategy(raw.get("strategy", {})),
        chain=_build_chain(raw.get("chain", {})),
        sandbox=_build_sandbox(raw.get("sandbox", {})),
    )

    _validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    lev = cfg.leverage
    if lev.collateral_asset == lev.debt_asset:
        raise ValueError("collateral_asset and debt_asset must differ")

    strategy = cfg.strategy
    if strategy.borrow_bps is not None and strategy.borrow_bps <= 0:
        raise ValueError(f"borrow_bps must be positive, got {strategy.borrow_bps}")
    if strategy.price_numerator <= 0 or strategy.price_denominator <= 0:
        raise ValueError("price ratio terms must be positive")
    if not 0 <= strategy.slippage_bps < 10_000:
        raise ValueError(
            f"slippage_bps must be in [0, 10000), got {strategy.slippage_bps}"
        )
    if strategy.swap_deadline_seconds < 0:
        raise ValueError("swap_deadline_seconds must be non-negative")
