"""Integration tests: replaying scenario files end to end."""
from __future__ import annotations

from pathlib import Path

import pytest

from collateral_engine.cli import main
from collateral_engine.config import PythConfig, load_config
from collateral_engine.constants import MAX_HEALTH_FACTOR
from collateral_engine.deployment import deploy
from collateral_engine.oracles import PythOracle
from collateral_engine.scenario import (
    ScenarioRunner,
    StepResult,
    format_report,
    load_scenario,
    summarize,
)

LIQUIDATION_SCENARIO = Path(__file__).resolve().parents[2] / "scenarios" / "liquidation.yaml"


@pytest.fixture()
def runner(sample_yaml_path: Path) -> ScenarioRunner:
    return ScenarioRunner(deploy(load_config(sample_yaml_path)))


class TestLoadScenario:
    def test_bundled_scenario(self) -> None:
        steps = load_scenario(LIQUIDATION_SCENARIO)
        assert steps[0]["op"] == "fund"
        assert steps[-1]["op"] == "liquidate"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_scenario(tmp_path / "missing.yaml")

    def test_steps_must_be_a_list(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("steps: {op: fund}\n")
        with pytest.raises(ValueError, match="must be a list"):
            load_scenario(path)


class TestScenarioRunner:
    def test_liquidation_scenario(self, runner: ScenarioRunner) -> None:
        results = runner.run(load_scenario(LIQUIDATION_SCENARIO))

        assert all(r.ok for r in results)
        assert results[6].error == "HealthFactorOkError"

        reports = {r.account: r for r in runner.reports()}
        assert list(reports) == ["alice", "bob"]
        assert reports["alice"].total_minted == 0
        assert reports["alice"].health_factor == MAX_HEALTH_FACTOR
        assert reports["alice"].holdings[0].amount == 3888888888888888890
        assert reports["bob"].total_minted == 100 * 10**18

    def test_engine_error_is_recorded(self, runner: ScenarioRunner) -> None:
        result = runner.run_step(1, {"op": "mint", "account": "alice", "amount": 1})
        assert not result.ok
        assert result.error.startswith("BreaksHealthFactorError")

    def test_unexpected_success_is_a_failure(self, runner: ScenarioRunner) -> None:
        runner.run_step(1, {"op": "fund", "account": "alice", "token": "WETH", "amount": 5})
        runner.run_step(2, {"op": "approve", "account": "alice", "token": "WETH", "amount": 5})
        result = runner.run_step(
            3,
            {
                "op": "deposit",
                "account": "alice",
                "token": "WETH",
                "amount": 5,
                "expect_error": "TransferFailedError",
            },
        )
        assert not result.ok
        assert result.error == "expected TransferFailedError"

    def test_unknown_op(self, runner: ScenarioRunner) -> None:
        result = runner.run_step(1, {"op": "teleport"})
        assert not result.ok
        assert result.error == "unknown op 'teleport'"

    def test_fund_synthetic_rejected(self, runner: ScenarioRunner) -> None:
        result = runner.run_step(
            1, {"op": "fund", "account": "alice", "token": "DSC", "amount": 1}
        )
        assert not result.ok
        assert "minted through the engine" in result.error

    def test_missing_field(self, runner: ScenarioRunner) -> None:
        result = runner.run_step(1, {"op": "mint", "account": "alice"})
        assert not result.ok
        assert result.error.startswith("KeyError")

    def test_malformed_steps_do_not_stop_the_run(self, runner: ScenarioRunner) -> None:
        results = runner.run(
            [
                {"op": "set_price", "feed": "ETH_USD", "price": "cheap"},
                {"op": "fund", "account": "alice", "token": "RAN", "amount": 1},
                {"op": "fund", "account": "alice", "token": "WETH", "amount": 1},
            ]
        )
        assert [r.ok for r in results] == [False, False, True]
        assert results[0].error.startswith("ValueError")
        assert "Unknown token 'RAN'" in results[1].error

    def test_set_price_needs_static_oracle(self, sample_yaml_path: Path) -> None:
        deployment = deploy(load_config(sample_yaml_path), oracle=PythOracle(PythConfig()))
        result = ScenarioRunner(deployment).run_step(
            1, {"op": "set_price", "feed": "ETH_USD", "price": 1}
        )
        assert not result.ok
        assert "static price oracle" in result.error


class TestFormatting:
    def test_summarize(self) -> None:
        results = [StepResult(1, "fund", True), StepResult(2, "mint", False, "boom")]
        assert summarize(results) == "1/2 steps ok; failed: #2 mint"

    def test_summarize_all_ok(self) -> None:
        assert summarize([StepResult(1, "fund", True)]) == "1/1 steps ok"

    def test_format_report(self, runner: ScenarioRunner) -> None:
        runner.run(load_scenario(LIQUIDATION_SCENARIO)[:3])
        text = format_report(runner.reports()[0])
        assert "alice" in text
        assert "Collateral: $20,000.0000" in text
        assert "Health Factor: 100.0000" in text
        assert "LIQUIDATABLE" not in text
        assert "WETH: 10.0000" in text


class TestCli:
    def test_run_command(
        self,
        sample_yaml_path: Path,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        monkeypatch.setattr(
            "sys.argv",
            [
                "collateral-engine",
                "--config",
                str(sample_yaml_path),
                "run",
                str(LIQUIDATION_SCENARIO),
            ],
        )
        with pytest.raises(SystemExit) as exc_info:
            main()

        assert exc_info.value.code == 0
        out = capsys.readouterr().out
        assert "10/10 steps ok" in out
        assert "━━ alice ━━" in out

    def test_run_command_reports_failures(
        self,
        sample_yaml_path: Path,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        scenario = tmp_path / "scenario.yaml"
        scenario.write_text("steps:\n  - {op: mint, account: alice, amount: 1}\n")
        monkeypatch.setattr(
            "sys.argv",
            ["collateral-engine", "--config", str(sample_yaml_path), "run", str(scenario)],
        )
        with pytest.raises(SystemExit) as exc_info:
            main()

        assert exc_info.value.code == 2
        assert "0/1 steps ok; failed: #1 mint" in capsys.readouterr().out
