"""Wire an engine, its oracle and in-memory token ledgers from configuration."""
from __future__ import annotations

import logging
from dataclasses import dataclass

from .config import AppConfig
from .interfaces.price_oracle import PriceOracle
from .oracles import ManualPriceOracle, PythOracle
from .services.engine import CollateralEngine
from .tokens import FungibleToken, SyntheticStablecoin

logger = logging.getLogger(__name__)


@dataclass
class Deployment:
    engine: CollateralEngine
    oracle: PriceOracle
    synthetic: SyntheticStablecoin
    tokens: dict[str, FungibleToken]

    def token(self, symbol: str) -> FungibleToken:
        if symbol == self.synthetic.symbol:
            return self.synthetic
        try:
            return self.tokens[symbol]
        except KeyError:
            raise KeyError(f"Unknown token '{symbol}'") from None


def build_oracle(config: AppConfig) -> PriceOracle:
    oracle_cfg = config.price_oracle
    if oracle_cfg.provider == "pyth":
        return PythOracle(oracle_cfg.pyth)
    return ManualPriceOracle(oracle_cfg.static.prices)


def deploy(config: AppConfig, oracle: PriceOracle | None = None) -> Deployment:
    """Create token ledgers and an engine that owns the synthetic asset."""
    if oracle is None:
        oracle = build_oracle(config)

    address = config.engine.address
    decimals = config.collateral.decimals
    tokens = {
        symbol: FungibleToken(symbol, decimals.get(symbol, 18))
        for symbol in dict.fromkeys(config.collateral.tokens)
    }
    synthetic = SyntheticStablecoin(owner=address, symbol=config.engine.synthetic_symbol)

    engine = CollateralEngine(
        token_addresses=list(config.collateral.tokens),
        price_feeds=list(config.collateral.price_feeds),
        oracle=oracle,
        synthetic=synthetic.as_caller(address),
        collateral_tokens={s: t.as_caller(address) for s, t in tokens.items()},
        address=address,
    )
    logger.debug("Deployed engine '%s' with %d collateral tokens", address, len(tokens))
    return Deployment(engine=engine, oracle=oracle, synthetic=synthetic, tokens=tokens)
