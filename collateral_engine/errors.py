"""Exceptions raised by the collateral engine.

Every failure aborts the whole call; state is left exactly as it was.
"""
from __future__ import annotations


class EngineError(Exception):
    """Base class for engine failures."""


class NeedsMoreThanZeroError(EngineError):
    """Amount argument was zero or negative."""


class UnsupportedAssetError(EngineError):
    """Asset has no bound price feed."""


class NotAllowedTokenError(UnsupportedAssetError):
    """Token is not an approved collateral asset."""


class LengthMismatchError(EngineError):
    """Token and price feed lists differ in length."""


class TransferFailedError(EngineError):
    """External transfer reported failure."""


class MintFailedError(EngineError):
    """Synthetic asset mint reported failure."""


class InsufficientCollateralError(EngineError):
    """Withdrawal exceeds the deposited collateral balance."""

    def __init__(self, account: str, token: str, balance: int, requested: int) -> None:
        super().__init__(
            f"Account '{account}' holds {balance} {token}, cannot remove {requested}"
        )
        self.account = account
        self.token = token
        self.balance = balance
        self.requested = requested


class InsufficientDebtError(EngineError):
    """Burn exceeds the outstanding minted balance."""

    def __init__(self, account: str, debt: int, requested: int) -> None:
        super().__init__(
            f"Account '{account}' owes {debt}, cannot burn {requested}"
        )
        self.account = account
        self.debt = debt
        self.requested = requested


class InvalidPriceError(EngineError, ArithmeticError):
    """Oracle price is unusable (missing, zero or negative)."""


class BreaksHealthFactorError(EngineError):
    """Operation would leave the account below the minimum health factor."""

    def __init__(self, health_factor: int) -> None:
        super().__init__(f"Health factor {health_factor} below minimum")
        self.health_factor = health_factor


class HealthFactorOkError(EngineError):
    """Liquidation target is solvent."""

    def __init__(self, health_factor: int) -> None:
        super().__init__(f"Health factor {health_factor} is not liquidatable")
        self.health_factor = health_factor


class HealthFactorNotImprovedError(EngineError):
    """Liquidation did not strictly improve the target's health factor."""

    def __init__(self, start: int, end: int) -> None:
        super().__init__(f"Health factor went from {start} to {end}")
        self.start = start
        self.end = end


class ReentrantCallError(EngineError):
    """A guarded operation was entered again before the outer call finished."""
