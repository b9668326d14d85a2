"""Unit tests for config loading, env interpolation, and validation."""
from __future__ import annotations

from pathlib import Path

import pytest

from collateral_engine.config import (
    AppConfig,
    EngineConfig,
    PythConfig,
    _interpolate_env,
    load_config,
)

MINIMAL_YAML = """\
collateral:
  tokens: [WETH]
  price_feeds: [ETH_USD]
"""


def _write(tmp_path: Path, content: str) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(content)
    return path


class TestInterpolateEnv:
    def test_simple_substitution(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MY_VAR", "hello")
        assert _interpolate_env("${MY_VAR}") == "hello"

    def test_missing_var_becomes_empty(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("NONEXISTENT_VAR_XYZ", raising=False)
        assert _interpolate_env("${NONEXISTENT_VAR_XYZ}") == ""

    def test_fallback_when_unset(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("PROVIDER_XYZ", raising=False)
        assert _interpolate_env("${PROVIDER_XYZ:-static}") == "static"

    def test_fallback_ignored_when_set(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PROVIDER_XYZ", "pyth")
        assert _interpolate_env("${PROVIDER_XYZ:-static}") == "pyth"

    def test_embedded_reference(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HOST", "hermes.example.com")
        assert _interpolate_env("https://${HOST}/v2") == "https://hermes.example.com/v2"

    def test_nested_dict(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("FEED", "ETH_USD")
        result = _interpolate_env({"key": "${FEED}", "plain": "text"})
        assert result == {"key": "ETH_USD", "plain": "text"}

    def test_nested_list(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("A", "x")
        assert _interpolate_env(["${A}", "y"]) == ["x", "y"]

    def test_non_string_passthrough(self) -> None:
        assert _interpolate_env(42) == 42
        assert _interpolate_env(True) is True


class TestLoadConfig:
    def test_loads_valid_yaml(self, sample_yaml_path: Path) -> None:
        cfg = load_config(sample_yaml_path)
        assert isinstance(cfg, AppConfig)
        assert cfg.engine.address == "engine"
        assert cfg.collateral.tokens == ("WETH", "WBTC")
        assert cfg.collateral.price_feeds == ("ETH_USD", "BTC_USD")
        assert cfg.collateral.decimals["WBTC"] == 8
        assert cfg.price_oracle.provider == "static"
        assert cfg.price_oracle.static.prices["ETH_USD"] == 2000 * 10**8
        assert cfg.price_oracle.pyth.feeds == {"ETH_USD": "aaa", "BTC_USD": "bbb"}

    def test_defaults(self, tmp_path: Path) -> None:
        cfg = load_config(_write(tmp_path, MINIMAL_YAML))
        assert cfg.engine == EngineConfig()
        assert cfg.price_oracle.provider == "static"
        assert cfg.price_oracle.pyth.hermes_url == PythConfig.hermes_url
        assert cfg.collateral.decimals == {}

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nonexistent.yaml")

    def test_env_interpolation_in_yaml(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("TEST_PROVIDER", "pyth")
        content = MINIMAL_YAML + """\
price_oracle:
  provider: "${TEST_PROVIDER}"
  pyth:
    feeds: {ETH_USD: "0xabc"}
"""
        cfg = load_config(_write(tmp_path, content))
        assert cfg.price_oracle.provider == "pyth"

    def test_empty_provider_falls_back_to_static(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.delenv("UNSET_PROVIDER_XYZ", raising=False)
        content = MINIMAL_YAML + 'price_oracle:\n  provider: "${UNSET_PROVIDER_XYZ}"\n'
        cfg = load_config(_write(tmp_path, content))
        assert cfg.price_oracle.provider == "static"


class TestValidation:
    def test_no_collateral_tokens(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError, match="At least one collateral token"):
            load_config(_write(tmp_path, "engine:\n  address: engine\n"))

    def test_empty_engine_address(self, tmp_path: Path) -> None:
        content = MINIMAL_YAML + 'engine:\n  address: ""\n'
        with pytest.raises(ValueError, match="Engine address"):
            load_config(_write(tmp_path, content))

    def test_unknown_provider(self, tmp_path: Path) -> None:
        content = MINIMAL_YAML + "price_oracle:\n  provider: chainlink\n"
        with pytest.raises(ValueError, match="Unknown price oracle provider"):
            load_config(_write(tmp_path, content))

    def test_pyth_feed_without_id(self, tmp_path: Path) -> None:
        content = MINIMAL_YAML + "price_oracle:\n  provider: pyth\n  pyth:\n    feeds: {}\n"
        with pytest.raises(ValueError, match="has no Pyth feed id"):
            load_config(_write(tmp_path, content))
