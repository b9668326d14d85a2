"""Data models — all frozen (immutable)."""
from __future__ import annotations

from dataclasses import dataclass

from .constants import MAX_HEALTH_FACTOR, MIN_HEALTH_FACTOR, PRECISION


@dataclass(frozen=True)
class PriceRound:
    """Latest answer reported by a price feed (8 decimals)."""

    feed: str
    answer: int
    updated_at: int = 0


@dataclass(frozen=True)
class AccountInformation:
    total_minted: int
    collateral_value_usd: int


@dataclass(frozen=True)
class CollateralHolding:
    """Single collateral asset within a position."""

    token: str
    amount: int
    usd_value: int


@dataclass(frozen=True)
class PositionReport:
    """Aggregated view of one account."""

    account: str
    total_minted: int
    collateral_value_usd: int
    health_factor: int
    holdings: tuple[CollateralHolding, ...] = ()

    @property
    def is_liquidatable(self) -> bool:
        return self.health_factor < MIN_HEALTH_FACTOR

    def describe_health(self) -> str:
        """Human-readable health factor, e.g. '1.2500' or 'inf'."""
        if self.health_factor == MAX_HEALTH_FACTOR:
            return "inf"
        return f"{self.health_factor / PRECISION:.4f}"


@dataclass(frozen=True)
class LiquidationResult:
    """Outcome of a successful liquidation."""

    target: str
    liquidator: str
    token: str
    debt_covered: int
    collateral_seized: int
    bonus_collateral: int
    start_health_factor: int
    end_health_factor: int
