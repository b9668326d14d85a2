"""Replay YAML scenarios of user actions against a deployment."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable

import yaml

from .deployment import Deployment
from .errors import EngineError
from .models import PositionReport
from .oracles import ManualPriceOracle

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StepResult:
    index: int
    op: str
    ok: bool
    error: str = ""


def load_scenario(path: str | Path) -> list[dict[str, Any]]:
    """Read the ``steps`` list of a scenario file."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Scenario file not found: {path}")
    with open(path) as f:
        raw = yaml.safe_load(f) or {}
    steps = raw.get("steps", [])
    if not isinstance(steps, list):
        raise ValueError("Scenario 'steps' must be a list")
    return steps


def format_amount(amount: int, decimals: int = 18) -> str:
    return f"{amount / 10**decimals:,.4f}"


def format_report(report: PositionReport) -> str:
    lines = [
        f"━━ {report.account} ━━",
        f"Collateral: ${format_amount(report.collateral_value_usd)}",
        f"Minted: {format_amount(report.total_minted)}",
        f"Health Factor: {report.describe_health()}"
        + (" 🚨 LIQUIDATABLE" if report.is_liquidatable else ""),
    ]
    for holding in report.holdings:
        if holding.amount:
            lines.append(
                f"  - {holding.token}: {format_amount(holding.amount)}"
                f" (${format_amount(holding.usd_value)})"
            )
    return "\n".join(lines)


class ScenarioRunner:
    """Executes scenario steps one by one, recording success or failure."""

    def __init__(self, deployment: Deployment) -> None:
        self._deployment = deployment
        self._engine = deployment.engine
        self._handlers: dict[str, Callable[[dict[str, Any]], None]] = {
            "fund": self._fund,
            "approve": self._approve,
            "deposit": self._deposit,
            "mint": self._mint,
            "deposit_and_mint": self._deposit_and_mint,
            "burn": self._burn,
            "redeem": self._redeem,
            "redeem_for_synthetic": self._redeem_for_synthetic,
            "liquidate": self._liquidate,
            "set_price": self._set_price,
        }

    def run(self, steps: list[dict[str, Any]]) -> list[StepResult]:
        results: list[StepResult] = []
        for index, step in enumerate(steps, start=1):
            results.append(self.run_step(index, step))
        return results

    def run_step(self, index: int, step: dict[str, Any]) -> StepResult:
        op = step.get("op", "")
        handler = self._handlers.get(op)
        if handler is None:
            logger.warning("Step %d: unknown op '%s'", index, op)
            return StepResult(index, op, False, f"unknown op '{op}'")

        expected = step.get("expect_error")
        # malformed steps (missing fields, bad values) fail like engine errors
        try:
            handler(step)
        except (EngineError, KeyError, ValueError) as e:
            name = type(e).__name__
            if expected == name:
                logger.info("Step %d (%s) failed as expected: %s", index, op, name)
                return StepResult(index, op, True, name)
            logger.warning("Step %d (%s) failed: %s: %s", index, op, name, e)
            return StepResult(index, op, False, f"{name}: {e}")

        if expected:
            logger.warning("Step %d (%s) succeeded, expected %s", index, op, expected)
            return StepResult(index, op, False, f"expected {expected}")
        logger.info("Step %d (%s) ok", index, op)
        return StepResult(index, op, True)

    def reports(self) -> list[PositionReport]:
        return [self._engine.get_position_report(a) for a in self._engine.get_accounts()]

    # ------------------------------------------------------------------
    # Step handlers
    # ------------------------------------------------------------------

    def _fund(self, step: dict[str, Any]) -> None:
        token = self._deployment.token(step["token"])
        if token is self._deployment.synthetic:
            raise ValueError("Synthetic balances can only be minted through the engine")
        token.faucet(step["account"], int(step["amount"]))

    def _approve(self, step: dict[str, Any]) -> None:
        token = self._deployment.token(step["token"])
        spender = step.get("spender", self._engine.address)
        token.approve(step["account"], spender, int(step["amount"]))

    def _deposit(self, step: dict[str, Any]) -> None:
        self._engine.deposit_collateral(step["account"], step["token"], int(step["amount"]))

    def _mint(self, step: dict[str, Any]) -> None:
        self._engine.mint(step["account"], int(step["amount"]))

    def _deposit_and_mint(self, step: dict[str, Any]) -> None:
        self._engine.deposit_collateral_and_mint(
            step["account"], step["token"], int(step["collateral"]), int(step["mint"])
        )

    def _burn(self, step: dict[str, Any]) -> None:
        self._engine.burn(
            int(step["amount"]), step["account"], step.get("payer", step["account"])
        )

    def _redeem(self, step: dict[str, Any]) -> None:
        self._engine.redeem_collateral(
            step["account"], step["token"], int(step["amount"]), step.get("destination")
        )

    def _redeem_for_synthetic(self, step: dict[str, Any]) -> None:
        self._engine.redeem_collateral_for_synthetic(
            step["account"], step["token"], int(step["collateral"]), int(step["burn"])
        )

    def _liquidate(self, step: dict[str, Any]) -> None:
        self._engine.liquidate(
            step["liquidator"], step["token"], step["target"], int(step["debt_to_cover"])
        )

    def _set_price(self, step: dict[str, Any]) -> None:
        oracle = self._deployment.oracle
        if not isinstance(oracle, ManualPriceOracle):
            raise ValueError("set_price requires the static price oracle")
        oracle.set_price(step["feed"], int(step["price"]))


def summarize(results: list[StepResult]) -> str:
    failed = [r for r in results if not r.ok]
    return f"{len(results) - len(failed)}/{len(results)} steps ok" + (
        "" if not failed else "; failed: " + ", ".join(f"#{r.index} {r.op}" for r in failed)
    )

