"""Token protocols — ledgers the engine moves value through.

Implementations act on behalf of the engine: ``transfer`` spends the
engine's own balance and ``transfer_from`` spends an allowance granted to it.
"""
from typing import Protocol


class CollateralToken(Protocol):
    """Fungible collateral asset ledger."""

    def transfer(self, recipient: str, amount: int) -> bool: ...

    def transfer_from(self, sender: str, recipient: str, amount: int) -> bool: ...


class SyntheticAsset(Protocol):
    """Synthetic dollar ledger; the engine is its privileged minter."""

    def mint(self, account: str, amount: int) -> bool: ...

    def burn(self, amount: int) -> None: ...

    def transfer(self, recipient: str, amount: int) -> bool: ...

    def transfer_from(self, sender: str, recipient: str, amount: int) -> bool: ...
