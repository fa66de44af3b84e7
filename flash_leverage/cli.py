"""Command-line interface for the flash-loan leverage engine."""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from .chains.soroban import SorobanClient
from .config import AppConfig, load_config
from .logging_setup import configure_logging
from .sandbox import CONTRACT_ADDRESS, Sandbox, build_sandbox

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="flash-leverage",
        description="Flash-loan leverage / delever engine",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml (default: config.yaml in project root)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    sub = parser.add_subparsers(dest="command")

    simulate = sub.add_parser(
        "simulate", help="Run leverage-up (and optionally delever) in the sandbox"
    )
    simulate.add_argument("amount", type=int, help="Collateral to flash-borrow")
    simulate.add_argument(
        "--deposit",
        type=int,
        default=None,
        help="Owner collateral moved to the contract first (default: sandbox.owner_deposit)",
    )
    simulate.add_argument(
        "--delever",
        type=int,
        default=None,
        help="Debt to flash-borrow and repay afterwards",
    )

    sub.add_parser("status", help="Check RPC endpoint health and latest ledger")

    return parser


def format_summary(sandbox: Sandbox, title: str) -> str:
    lev = sandbox.config.leverage
    positions = sandbox.pool.positions_of(CONTRACT_ADDRESS)
    supply = positions.supply_of(lev.collateral_asset)
    debt = positions.liability_of(lev.debt_asset)
    c_factor = f"{supply * 10_000 // debt} bps" if debt else "n/a"
    return (
        f"{title}\n"
        f"  Supplied collateral: {supply} {lev.collateral_asset}\n"
        f"  Outstanding debt:    {debt} {lev.debt_asset}\n"
        f"  C-factor:            {c_factor} (target {lev.target_c_factor} bps)\n"
        f"  Contract float:      "
        f"{sandbox.balance(lev.debt_asset, CONTRACT_ADDRESS)} {lev.debt_asset}\n"
        f"  Owner wallet:        "
        f"{sandbox.balance(lev.collateral_asset, lev.owner)} {lev.collateral_asset}"
    )


async def _simulate(config: AppConfig, args: argparse.Namespace) -> None:
    sandbox = build_sandbox(config)
    deposit = config.sandbox.owner_deposit if args.deposit is None else args.deposit

    fee = await sandbox.leverage_up(args.amount, deposit=deposit)
    print(format_summary(sandbox, f"Leverage-up of {args.amount} (fee {fee})"))

    if args.delever:
        fee = await sandbox.delever(args.delever)
        print(format_summary(sandbox, f"Delever of {args.delever} (fee {fee})"))


async def _status(config: AppConfig) -> None:
    client = SorobanClient(config.chain)
    health = await client.get_health()
    ledger = await client.get_latest_ledger()
    logger.info("RPC status: %s", health.get("status", "unknown"))
    logger.info(
        "Latest ledger %s (protocol %s)",
        ledger.get("sequence"), ledger.get("protocolVersion"),
    )


async def _run(args: argparse.Namespace) -> None:
    """Execute the selected command."""
    configure_logging(args.log_level)
    config = load_config(args.config)

    if args.command == "simulate":
        await _simulate(config, args)
    elif args.command == "status":
        await _status(config)
    else:
        build_parser().print_help()
        sys.exit(1)


def main() -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    asyncio.run(_run(args))


if __name__ == "__main__":
    main()
