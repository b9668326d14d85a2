"""Shared test fixtures and sample data."""
from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from collateral_engine.oracles import ManualPriceOracle
from collateral_engine.services import CollateralEngine
from collateral_engine.tokens import FungibleToken, SyntheticStablecoin

ENGINE = "engine"
USER = "user"
LIQUIDATOR = "liquidator"

ETH_USD_PRICE = 2000 * 10**8
BTC_USD_PRICE = 1000 * 10**8

AMOUNT_COLLATERAL = 10 * 10**18
AMOUNT_TO_MINT = 100 * 10**18
STARTING_BALANCE = 10 * 10**18
COLLATERAL_TO_COVER = 20 * 10**18


# ---------------------------------------------------------------------------
# Collaborator fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def oracle() -> ManualPriceOracle:
    return ManualPriceOracle({"ETH_USD": ETH_USD_PRICE, "BTC_USD": BTC_USD_PRICE})


@pytest.fixture()
def weth() -> FungibleToken:
    return FungibleToken("WETH")


@pytest.fixture()
def wbtc() -> FungibleToken:
    return FungibleToken("WBTC")


@pytest.fixture()
def dsc() -> SyntheticStablecoin:
    return SyntheticStablecoin(owner=ENGINE)


@pytest.fixture()
def engine(
    oracle: ManualPriceOracle,
    weth: FungibleToken,
    wbtc: FungibleToken,
    dsc: SyntheticStablecoin,
) -> CollateralEngine:
    return CollateralEngine(
        token_addresses=["WETH", "WBTC"],
        price_feeds=["ETH_USD", "BTC_USD"],
        oracle=oracle,
        synthetic=dsc.as_caller(ENGINE),
        collateral_tokens={"WETH": weth.as_caller(ENGINE), "WBTC": wbtc.as_caller(ENGINE)},
        address=ENGINE,
    )


# Ledgers without checkpoint support: a failed call can only be undone by
# the engine itself.


class PlainLedger:
    """Engine-side token view offering only transfers, mint and burn.

    Setting ``refuse_transfers`` makes every outgoing ``transfer`` fail.
    """

    def __init__(self, token: FungibleToken) -> None:
        self._client = token.as_caller(ENGINE)
        self.refuse_transfers = False

    def transfer(self, recipient: str, amount: int) -> bool:
        if self.refuse_transfers:
            return False
        return self._client.transfer(recipient, amount)

    def transfer_from(self, sender: str, recipient: str, amount: int) -> bool:
        return self._client.transfer_from(sender, recipient, amount)

    def mint(self, account: str, amount: int) -> bool:
        return self._client.mint(account, amount)

    def burn(self, amount: int) -> None:
        self._client.burn(amount)


@pytest.fixture()
def plain_weth(weth: FungibleToken) -> PlainLedger:
    return PlainLedger(weth)


@pytest.fixture()
def plain_engine(
    oracle: ManualPriceOracle, plain_weth: PlainLedger, dsc: SyntheticStablecoin
) -> CollateralEngine:
    return CollateralEngine(
        token_addresses=["WETH"],
        price_feeds=["ETH_USD"],
        oracle=oracle,
        synthetic=PlainLedger(dsc),
        collateral_tokens={"WETH": plain_weth},
        address=ENGINE,
    )


# ---------------------------------------------------------------------------
# Position fixtures
# ---------------------------------------------------------------------------


def fund(token: FungibleToken, account: str, amount: int) -> None:
    """Give ``account`` tokens and approve the engine to pull them."""
    token.faucet(account, amount)
    token.approve(account, ENGINE, amount)


@pytest.fixture()
def funded_user(weth: FungibleToken) -> str:
    fund(weth, USER, STARTING_BALANCE)
    return USER


@pytest.fixture()
def deposited(engine: CollateralEngine, funded_user: str) -> str:
    engine.deposit_collateral(funded_user, "WETH", AMOUNT_COLLATERAL)
    return funded_user


@pytest.fixture()
def minted(engine: CollateralEngine, funded_user: str) -> str:
    engine.deposit_collateral_and_mint(funded_user, "WETH", AMOUNT_COLLATERAL, AMOUNT_TO_MINT)
    return funded_user


# ---------------------------------------------------------------------------
# Config YAML fixture
# ---------------------------------------------------------------------------

SAMPLE_YAML = textwrap.dedent("""\
    engine:
      address: engine
      synthetic_symbol: DSC
    collateral:
      tokens: [WETH, WBTC]
      price_feeds: [ETH_USD, BTC_USD]
      decimals: {WETH: 18, WBTC: 8}
    price_oracle:
      provider: static
      static:
        prices: {ETH_USD: 200000000000, BTC_USD: 100000000000}
      pyth:
        hermes_url: "https://hermes.example.com"
        feeds: {ETH_USD: "aaa", BTC_USD: "bbb"}
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file
