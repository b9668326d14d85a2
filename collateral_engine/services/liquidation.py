"""Liquidation of undercollateralized accounts."""
from __future__ import annotations

import logging

from ..constants import LIQUIDATION_BONUS, LIQUIDATION_PRECISION, MIN_HEALTH_FACTOR
from ..errors import HealthFactorNotImprovedError, HealthFactorOkError
from ..models import LiquidationResult
from .health_service import HealthService
from .operation import Operation
from .position_service import require_positive
from .price_service import PriceService

logger = logging.getLogger(__name__)


def liquidation_bonus(collateral_amount: int) -> int:
    return collateral_amount * LIQUIDATION_BONUS // LIQUIDATION_PRECISION


class LiquidationService:
    """Repay an insolvent account's debt in exchange for its collateral plus a bonus."""

    def __init__(self, prices: PriceService, health: HealthService) -> None:
        self._prices = prices
        self._health = health

    def liquidate(
        self,
        op: Operation,
        liquidator: str,
        token: str,
        target: str,
        debt_to_cover: int,
    ) -> LiquidationResult:
        """Stage a liquidation inside ``op``.

        Partial liquidation is allowed. The target must be below the minimum
        health factor before, strictly better off after, and the liquidator
        must remain solvent.
        """
        require_positive(debt_to_cover)
        op.require_allowed(token)

        start = self._health.health_factor(target)
        if start >= MIN_HEALTH_FACTOR:
            raise HealthFactorOkError(start)

        base = self._prices.token_amount_from_usd(token, debt_to_cover)
        bonus = liquidation_bonus(base)
        seized = base + bonus

        # target solvency is only meaningful once the burn is applied too
        if seized:
            op.redeem(target, token, seized, destination=liquidator)
        op.burn(debt_to_cover, on_behalf_of=target, payer=liquidator)

        end = self._health.health_factor(target)
        if end <= start:
            raise HealthFactorNotImprovedError(start, end)

        self._health.assert_solvent(liquidator)

        return LiquidationResult(
            target=target,
            liquidator=liquidator,
            token=token,
            debt_covered=debt_to_cover,
            collateral_seized=seized,
            bonus_collateral=bonus,
            start_health_factor=start,
            end_health_factor=end,
        )
