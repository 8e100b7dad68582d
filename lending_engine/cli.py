"""Command-line interface for the lending engine."""
from __future__ import annotations

import argparse
import asyncio
import sys
from collections.abc import Callable

from .config import AppConfig, load_config
from .custody import InMemoryVault
from .errors import LendingError
from .logging_setup import configure_logging
from .services import HealthMonitor, LendingEngine
from .store import load_state, save_state


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="lending-engine",
        description="Collateralized lending and liquidation engine",
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

    p = sub.add_parser("init", help="Initialize the pool with the seed asset")
    p.add_argument("--caller", required=True)

    p = sub.add_parser("add-asset", help="Register an asset (admin)")
    p.add_argument("--caller", required=True)
    p.add_argument("symbol")
    p.add_argument("ltv_ratio", type=int)
    p.add_argument("liquidation_threshold", type=int)
    p.add_argument("pair_id")
    p.add_argument("initial_price", type=int)

    p = sub.add_parser("update-price", help="Post a price (admin)")
    p.add_argument("--caller", required=True)
    p.add_argument("symbol")
    p.add_argument("price", type=int)

    p = sub.add_parser("fund", help="Credit an external vault balance")
    p.add_argument("holder")
    p.add_argument("symbol")
    p.add_argument("amount", type=int)
    p.add_argument("--reserve", action="store_true", help="Credit the vault reserve instead")

    p = sub.add_parser("deposit", help="Deposit collateral")
    p.add_argument("user")
    p.add_argument("symbol")
    p.add_argument("amount", type=int)

    p = sub.add_parser("borrow", help="Borrow against collateral")
    p.add_argument("user")
    p.add_argument("symbol")
    p.add_argument("amount", type=int)

    p = sub.add_parser("liquidate", help="Liquidate an unhealthy position")
    p.add_argument("liquidator")
    p.add_argument("user")
    p.add_argument("debt_symbol")
    p.add_argument("collateral_symbol")
    p.add_argument("repay_amount", type=int)

    p = sub.add_parser("position", help="Show a user's position in one asset")
    p.add_argument("user")
    p.add_argument("symbol")

    p = sub.add_parser("asset", help="Show asset price and risk parameters")
    p.add_argument("symbol")

    p = sub.add_parser("health", help="Show liquidation info for a pair")
    p.add_argument("user")
    p.add_argument("debt_symbol")
    p.add_argument("collateral_symbol")

    sub.add_parser("check", help="Single health check with alerts")
    sub.add_parser("report", help="Generate daily pool report")

    monitor_parser = sub.add_parser("monitor", help="Continuous monitoring loop")
    monitor_parser.add_argument(
        "interval",
        nargs="?",
        type=int,
        default=None,
        help="Check interval in minutes (overrides config)",
    )

    return parser


def _run_engine_command(
    args: argparse.Namespace, engine: LendingEngine, vault: InMemoryVault
) -> bool:
    """Execute a synchronous command; returns True when state changed."""
    cmd = args.command
    if cmd == "init":
        engine.initialize(args.caller)
        vault.register_token(engine.config.seed_asset.symbol)
        print(f"initialized with seed asset {engine.config.seed_asset.symbol}")
        return True
    if cmd == "add-asset":
        added = engine.add_asset(
            args.caller,
            args.symbol,
            args.ltv_ratio,
            args.liquidation_threshold,
            args.pair_id,
            args.initial_price,
        )
        vault.register_token(args.symbol)
        print("added" if added else "already registered")
        return added
    if cmd == "update-price":
        updated = engine.update_asset_price(args.caller, args.symbol, args.price)
        print("updated" if updated else "unknown asset, ignored")
        return updated
    if cmd == "fund":
        if args.reserve:
            print(vault.seed_reserve(args.symbol, args.amount))
        else:
            print(vault.credit(args.holder, args.symbol, args.amount))
        return True
    if cmd == "deposit":
        print(engine.deposit(args.user, args.symbol, args.amount))
        return True
    if cmd == "borrow":
        print(engine.borrow(args.user, args.symbol, args.amount))
        return True
    if cmd == "liquidate":
        seized = engine.liquidate(
            args.liquidator,
            args.user,
            args.debt_symbol,
            args.collateral_symbol,
            args.repay_amount,
        )
        print(f"seized {seized} {args.collateral_symbol}")
        return True
    if cmd == "position":
        collateral, debt = engine.get_user_position(args.user, args.symbol)
        print(f"collateral={collateral} debt={debt}")
        return False
    if cmd == "asset":
        price, ltv, threshold = engine.get_asset_details(args.symbol)
        print(f"price={price} ltv={ltv} liquidation_threshold={threshold}")
        return False
    if cmd == "health":
        info = engine.get_liquidation_info(
            args.user, args.debt_symbol, args.collateral_symbol
        )
        print(
            f"health_factor={info.health_factor} liquidatable={info.liquidatable} "
            f"debt={info.debt_amount} collateral={info.collateral_amount}"
        )
        return False
    raise ValueError(f"Unknown command: {cmd}")


async def _run_monitor_command(
    args: argparse.Namespace,
    config: AppConfig,
    engine: LendingEngine,
    clock: Callable[[], int] | None = None,
) -> None:
    def reload() -> LendingEngine:
        return load_state(config.storage.state_path, config.engine, clock)[0]

    monitor = HealthMonitor(
        engine, config, reload=reload if args.command == "monitor" else None
    )
    if args.command == "check":
        await monitor.check_and_alert()
    elif args.command == "report":
        await monitor.generate_daily_report()
    elif args.command == "monitor":
        await monitor.run_continuous(args.interval)


def run(args: argparse.Namespace, clock: Callable[[], int] | None = None) -> int:
    """Execute the selected command and return the process exit status."""
    configure_logging(args.log_level)
    config = load_config(args.config)
    state_path = config.storage.state_path
    engine, vault = load_state(state_path, config.engine, clock)

    if args.command in ("check", "report", "monitor"):
        asyncio.run(_run_monitor_command(args, config, engine, clock))
        return 0

    try:
        changed = _run_engine_command(args, engine, vault)
    except LendingError as e:
        print(f"error: {e.code}: {e}", file=sys.stderr)
        return 2

    if changed:
        save_state(state_path, engine, vault)
    return 0


def main() -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    sys.exit(run(args))
