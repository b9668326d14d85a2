"""In-memory token ledgers used by the CLI scenarios and the tests."""
from __future__ import annotations

import logging

logger = logging.getLogger(__name__)

TokenCheckpoint = tuple[dict[str, int], dict[tuple[str, str], int], int]


class FungibleToken:
    """Minimal fungible asset ledger with balances and allowances.

    Transfers report failure by returning ``False`` instead of raising.
    """

    def __init__(self, symbol: str, decimals: int = 18) -> None:
        self.symbol = symbol
        self.decimals = decimals
        self._balances: dict[str, int] = {}
        self._allowances: dict[tuple[str, str], int] = {}
        self._total_supply = 0

    @property
    def total_supply(self) -> int:
        return self._total_supply

    def balance_of(self, account: str) -> int:
        return self._balances.get(account, 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self._allowances.get((owner, spender), 0)

    def approve(self, owner: str, spender: str, amount: int) -> bool:
        if amount < 0:
            return False
        self._allowances[(owner, spender)] = amount
        return True

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        if amount < 0 or self.balance_of(sender) < amount:
            logger.debug(
                "%s transfer of %d from %s rejected: balance %d",
                self.symbol, amount, sender, self.balance_of(sender),
            )
            return False
        self._balances[sender] = self.balance_of(sender) - amount
        self._balances[recipient] = self.balance_of(recipient) + amount
        return True

    def transfer_from(self, spender: str, sender: str, recipient: str, amount: int) -> bool:
        allowed = self.allowance(sender, spender)
        if allowed < amount:
            logger.debug(
                "%s transfer_from %s by %s rejected: allowance %d < %d",
                self.symbol, sender, spender, allowed, amount,
            )
            return False
        if not self.transfer(sender, recipient, amount):
            return False
        self._allowances[(sender, spender)] = allowed - amount
        return True

    def _credit(self, account: str, amount: int) -> None:
        self._balances[account] = self.balance_of(account) + amount
        self._total_supply += amount

    def _debit(self, account: str, amount: int) -> None:
        self._balances[account] = self.balance_of(account) - amount
        self._total_supply -= amount

    def faucet(self, account: str, amount: int) -> None:
        """Create ``amount`` out of thin air for ``account``."""
        self._credit(account, amount)

    def checkpoint(self) -> TokenCheckpoint:
        return dict(self._balances), dict(self._allowances), self._total_supply

    def rollback(self, checkpoint: TokenCheckpoint) -> None:
        balances, allowances, total_supply = checkpoint
        self._balances = dict(balances)
        self._allowances = dict(allowances)
        self._total_supply = total_supply

    def as_caller(self, caller: str) -> TokenClient:
        return TokenClient(self, caller)


class SyntheticStablecoin(FungibleToken):
    """Dollar-pegged token that only its owner may mint and burn."""

    def __init__(self, owner: str, symbol: str = "DSC", decimals: int = 18) -> None:
        super().__init__(symbol, decimals)
        self.owner = owner

    def mint(self, caller: str, account: str, amount: int) -> bool:
        if caller != self.owner:
            raise PermissionError(f"'{caller}' is not the owner of {self.symbol}")
        if not account:
            raise ValueError("Cannot mint to an empty account")
        if amount <= 0:
            raise ValueError("Mint amount must be more than zero")
        self._credit(account, amount)
        return True

    def burn(self, caller: str, amount: int) -> None:
        if caller != self.owner:
            raise PermissionError(f"'{caller}' is not the owner of {self.symbol}")
        if amount <= 0:
            raise ValueError("Burn amount must be more than zero")
        if self.balance_of(caller) < amount:
            raise ValueError(
                f"Burn amount {amount} exceeds balance {self.balance_of(caller)}"
            )
        self._debit(caller, amount)


class TokenClient:
    """A token ledger seen from one account, as the engine expects it."""

    def __init__(self, token: FungibleToken, caller: str) -> None:
        self.token = token
        self.caller = caller

    def transfer(self, recipient: str, amount: int) -> bool:
        return self.token.transfer(self.caller, recipient, amount)

    def transfer_from(self, sender: str, recipient: str, amount: int) -> bool:
        return self.token.transfer_from(self.caller, sender, recipient, amount)

    def approve(self, spender: str, amount: int) -> bool:
        return self.token.approve(self.caller, spender, amount)

    def mint(self, account: str, amount: int) -> bool:
        if not isinstance(self.token, SyntheticStablecoin):
            raise TypeError(f"{self.token.symbol} is not mintable")
        return self.token.mint(self.caller, account, amount)

    def burn(self, amount: int) -> None:
        if not isinstance(self.token, SyntheticStablecoin):
            raise TypeError(f"{self.token.symbol} is not burnable")
        self.token.burn(self.caller, amount)

    def checkpoint(self) -> TokenCheckpoint:
        return self.token.checkpoint()

    def rollback(self, checkpoint: TokenCheckpoint) -> None:
        self.token.rollback(checkpoint)
