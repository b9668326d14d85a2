"""Command-line interface for the collateral engine."""
from __future__ import annotations

import argparse
import asyncio
import sys

from .config import AppConfig, load_config
from .constants import FEED_DECIMALS
from .deployment import build_oracle, deploy
from .errors import EngineError
from .interfaces.price_oracle import PriceOracle
from .logging_setup import configure_logging
from .oracles import PythOracle
from .scenario import ScenarioRunner, format_report, load_scenario, summarize


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="collateral-engine",
        description="Overcollateralized synthetic dollar engine",
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

    sub.add_parser("prices", help="Fetch and print collateral prices")

    run_parser = sub.add_parser("run", help="Replay a scenario file")
    run_parser.add_argument("scenario", help="Path to scenario YAML")

    return parser


async def _prepare_oracle(config: AppConfig) -> PriceOracle:
    oracle = build_oracle(config)
    if isinstance(oracle, PythOracle):
        await oracle.refresh(list(config.collateral.price_feeds))
    return oracle


def _print_prices(config: AppConfig, oracle: PriceOracle) -> None:
    for token, feed in zip(config.collateral.tokens, config.collateral.price_feeds):
        try:
            answer = oracle.latest_round_data(feed).answer
        except EngineError as e:
            print(f"{token} ({feed}): unavailable ({e})")
            continue
        print(f"{token} ({feed}): ${answer / 10**FEED_DECIMALS:,.4f}")


def _run_scenario(config: AppConfig, oracle: PriceOracle, scenario_path: str) -> int:
    deployment = deploy(config, oracle)
    runner = ScenarioRunner(deployment)
    results = runner.run(load_scenario(scenario_path))

    for result in results:
        mark = "✅" if result.ok else "❌"
        suffix = f" ({result.error})" if result.error else ""
        print(f"{mark} #{result.index} {result.op}{suffix}")
    print()
    for report in runner.reports():
        print(format_report(report))
        print()
    print(summarize(results))
    return 0 if all(r.ok for r in results) else 2


async def _run(args: argparse.Namespace) -> int:
    """Execute the selected command."""
    configure_logging(args.log_level)
    config = load_config(args.config)
    oracle = await _prepare_oracle(config)

    if args.command == "prices":
        _print_prices(config, oracle)
        return 0
    if args.command == "run":
        return _run_scenario(config, oracle, args.scenario)

    build_parser().print_help()
    return 1


def main() -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    sys.exit(asyncio.run(_run(args)))
