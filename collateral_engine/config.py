"""Engine configuration loaded from config.yaml, with environment expansion."""
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

PRICE_PROVIDERS = ("static", "pyth")
DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.yaml"


@dataclass(frozen=True)
class EngineConfig:
    address: str = "engine"
    synthetic_symbol: str = "DSC"


@dataclass(frozen=True)
class CollateralConfig:
    tokens: tuple[str, ...] = ()
    price_feeds: tuple[str, ...] = ()
    decimals: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class StaticPricesConfig:
    prices: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class PythConfig:
    hermes_url: str = "https://hermes.pyth.network/v2/updates/price/latest"
    feeds: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class PriceOracleConfig:
    provider: str = "static"
    static: StaticPricesConfig = field(default_factory=StaticPricesConfig)
    pyth: PythConfig = field(default_factory=PythConfig)


@dataclass(frozen=True)
class AppConfig:
    engine: EngineConfig = field(default_factory=EngineConfig)
    collateral: CollateralConfig = field(default_factory=CollateralConfig)
    price_oracle: PriceOracleConfig = field(default_factory=PriceOracleConfig)


# ${NAME} or ${NAME:-fallback}
_ENV_VAR_RE = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)(?::-([^}]*))?}")


def _expand(match: re.Match[str]) -> str:
    return os.environ.get(match.group(1)) or (match.group(2) or "")


def _interpolate_env(value: Any) -> Any:
    """Expand environment references in every string of a parsed YAML tree.

    Unset or empty variables expand to their fallback, or to an empty string.
    """
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(_expand, value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


def _build_engine(raw: dict[str, Any]) -> EngineConfig:
    return EngineConfig(
        address=str(raw.get("address", "engine")),
        synthetic_symbol=str(raw.get("synthetic_symbol", "DSC")),
    )


def _build_collateral(raw: dict[str, Any]) -> CollateralConfig:
    return CollateralConfig(
        tokens=tuple(str(t) for t in raw.get("tokens", [])),
        price_feeds=tuple(str(f) for f in raw.get("price_feeds", [])),
        decimals={k: int(v) for k, v in raw.get("decimals", {}).items()},
    )


def _build_price_oracle(raw: dict[str, Any]) -> PriceOracleConfig:
    static_raw = raw.get("static", {})
    pyth_raw = raw.get("pyth", {})
    return PriceOracleConfig(
        provider=raw.get("provider") or "static",
        static=StaticPricesConfig(
            prices={k: int(v) for k, v in static_raw.get("prices", {}).items()},
        ),
        pyth=PythConfig(
            hermes_url=pyth_raw.get("hermes_url", PythConfig.hermes_url),
            feeds=dict(pyth_raw.get("feeds", {})),
        ),
    )


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Read ``config_path`` (default: ``config.yaml`` next to the package).

    Variables from a ``.env`` file are loaded first so the YAML can refer to
    them. Raises ``FileNotFoundError`` or ``ValueError``.
    """
    load_dotenv()

    path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH
    if not path.is_file():
        raise FileNotFoundError(f"Config file not found: {path}")

    raw = _interpolate_env(yaml.safe_load(path.read_text()) or {})

    cfg = AppConfig(
        engine=_build_engine(raw.get("engine", {})),
        collateral=_build_collateral(raw.get("collateral", {})),
        price_oracle=_build_price_oracle(raw.get("price_oracle", {})),
    )

    _validate(cfg)
    logger.info("Configuration loaded from %s (%s prices)", path, cfg.price_oracle.provider)
    return cfg


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration.

    Token/feed list lengths are checked when the engine is constructed.
    """
    if not cfg.engine.address:
        raise ValueError("Engine address must not be empty")

    if not cfg.collateral.tokens:
        raise ValueError("At least one collateral token must be configured")

    provider = cfg.price_oracle.provider
    if provider not in PRICE_PROVIDERS:
        raise ValueError(f"Unknown price oracle provider '{provider}'")

    if provider == "pyth":
        for feed in cfg.collateral.price_feeds:
            if feed not in cfg.price_oracle.pyth.feeds:
                raise ValueError(f"Price feed '{feed}' has no Pyth feed id")
