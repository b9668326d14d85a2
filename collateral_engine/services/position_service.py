"""Per-account collateral and debt bookkeeping."""
from __future__ import annotations

import logging
from typing import Iterable

from ..errors import (
    InsufficientCollateralError,
    InsufficientDebtError,
    NeedsMoreThanZeroError,
)
from ..models import CollateralHolding
from .price_service import PriceService

logger = logging.getLogger(__name__)

# (collateral, minted, accounts) copies
LedgerCheckpoint = tuple[dict[str, dict[str, int]], dict[str, int], dict[str, None]]


def require_positive(amount: int) -> None:
    if amount <= 0:
        raise NeedsMoreThanZeroError(f"Amount must be more than zero, got {amount}")


class PositionService:
    """Authoritative collateral-by-token and minted balances per account.

    Balances never go negative: every decrement is checked explicitly
    before it is applied.
    """

    def __init__(self, tokens: Iterable[str], prices: PriceService) -> None:
        self._tokens: tuple[str, ...] = tuple(dict.fromkeys(tokens))
        self._prices = prices
        self._collateral: dict[str, dict[str, int]] = {}
        self._minted: dict[str, int] = {}
        self._accounts: dict[str, None] = {}

    @property
    def tokens(self) -> tuple[str, ...]:
        return self._tokens

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def collateral_balance(self, account: str, token: str) -> int:
        return self._collateral.get(account, {}).get(token, 0)

    def minted(self, account: str) -> int:
        return self._minted.get(account, 0)

    def total_collateral(self, token: str) -> int:
        """Sum of every account's balance of ``token``."""
        return sum(balances.get(token, 0) for balances in self._collateral.values())

    def accounts(self) -> list[str]:
        """Accounts that have ever held collateral or debt, in first-seen order."""
        return list(self._accounts)

    def holdings(self, account: str) -> tuple[CollateralHolding, ...]:
        holdings: list[CollateralHolding] = []
        for token in self._tokens:
            amount = self.collateral_balance(account, token)
            holdings.append(
                CollateralHolding(
                    token=token,
                    amount=amount,
                    usd_value=self._prices.usd_value(token, amount) if amount else 0,
                )
            )
        return tuple(holdings)

    def total_collateral_value_usd(self, account: str) -> int:
        """USD value of all collateral, summed in registry order."""
        total = 0
        for token in self._tokens:
            amount = self.collateral_balance(account, token)
            if amount:
                total += self._prices.usd_value(token, amount)
        return total

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def record_deposit(self, account: str, token: str, amount: int) -> None:
        require_positive(amount)
        self._accounts.setdefault(account)
        balances = self._collateral.setdefault(account, {})
        balances[token] = balances.get(token, 0) + amount

    def record_withdrawal(self, account: str, token: str, amount: int) -> None:
        require_positive(amount)
        balance = self.collateral_balance(account, token)
        if balance < amount:
            raise InsufficientCollateralError(account, token, balance, amount)
        self._collateral[account][token] = balance - amount

    def record_mint(self, account: str, amount: int) -> None:
        require_positive(amount)
        self._accounts.setdefault(account)
        self._minted[account] = self.minted(account) + amount

    def record_burn(self, account: str, amount: int) -> None:
        require_positive(amount)
        debt = self.minted(account)
        if debt < amount:
            raise InsufficientDebtError(account, debt, amount)
        self._minted[account] = debt - amount

    # ------------------------------------------------------------------
    # Atomicity support
    # ------------------------------------------------------------------

    def checkpoint(self) -> LedgerCheckpoint:
        return (
            {account: dict(balances) for account, balances in self._collateral.items()},
            dict(self._minted),
            dict(self._accounts),
        )

    def rollback(self, checkpoint: LedgerCheckpoint) -> None:
        collateral, minted, accounts = checkpoint
        self._collateral = {account: dict(b) for account, b in collateral.items()}
        self._minted = dict(minted)
        self._accounts = dict(accounts)
        logger.debug("Position ledger rolled back")
