"""Health factor computation and solvency checks."""
from __future__ import annotations

import logging

from ..constants import (
    LIQUIDATION_PRECISION,
    LIQUIDATION_THRESHOLD,
    MAX_HEALTH_FACTOR,
    MIN_HEALTH_FACTOR,
    PRECISION,
)
from ..errors import BreaksHealthFactorError
from .position_service import PositionService

logger = logging.getLogger(__name__)


def calculate_health_factor(total_minted: int, collateral_value_usd: int) -> int:
    """Threshold-adjusted collateral over debt, scaled by ``PRECISION``.

    An account without debt is reported as ``MAX_HEALTH_FACTOR``.
    """
    if total_minted == 0:
        return MAX_HEALTH_FACTOR
    adjusted = collateral_value_usd * LIQUIDATION_THRESHOLD // LIQUIDATION_PRECISION
    return adjusted * PRECISION // total_minted


class HealthService:
    """Derive solvency of accounts from the position ledger."""

    def __init__(self, positions: PositionService) -> None:
        self._positions = positions

    def health_factor(self, account: str) -> int:
        return calculate_health_factor(
            self._positions.minted(account),
            self._positions.total_collateral_value_usd(account),
        )

    def is_solvent(self, account: str) -> bool:
        return self.health_factor(account) >= MIN_HEALTH_FACTOR

    def assert_solvent(self, account: str) -> None:
        """Raise if ``account`` is below the minimum health factor.

        Must run after the ledger reflects the operation being checked.
        """
        health_factor = self.health_factor(account)
        if health_factor < MIN_HEALTH_FACTOR:
            logger.warning(
                "Account '%s' would break health factor (%d)", account, health_factor
            )
            raise BreaksHealthFactorError(health_factor)
