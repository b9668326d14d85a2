"""Unit of work for a single mutating engine call.

Ledger effects are applied as soon as they are requested, so every check
that follows sees the post-operation state. Calls into external ledgers are
queued and only run from ``commit()``, after all checks have passed.

``commit()`` runs interactions by stage, whatever order they were requested
in: pulls into the engine first, then burns of synthetic the engine holds,
then payouts (collateral sent out, synthetic minted). A failing interaction
undoes the pulls and burns that already ran, newest first. Every operation
queues at most one payout, so nothing that cannot be undone ever precedes a
failure.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Mapping

from ..errors import MintFailedError, NotAllowedTokenError, TransferFailedError
from ..interfaces.tokens import CollateralToken, SyntheticAsset
from .position_service import PositionService

logger = logging.getLogger(__name__)

PULL, BURN, PAYOUT = 0, 1, 2


@dataclass(frozen=True)
class Interaction:
    stage: int
    description: str
    run: Callable[[], None]
    undo: Callable[[], None] | None = None


class Operation:
    """Effects applied now, interactions deferred to ``commit()``."""

    def __init__(
        self,
        engine_address: str,
        positions: PositionService,
        synthetic: SyntheticAsset,
        collateral_tokens: Mapping[str, CollateralToken],
    ) -> None:
        self._address = engine_address
        self._positions = positions
        self._synthetic = synthetic
        self._collateral_tokens = collateral_tokens
        self._interactions: list[Interaction] = []

    def require_allowed(self, token: str) -> CollateralToken:
        ledger = self._collateral_tokens.get(token)
        if ledger is None:
            raise NotAllowedTokenError(f"Token '{token}' is not allowed as collateral")
        return ledger

    # ------------------------------------------------------------------
    # Effects
    # ------------------------------------------------------------------

    def deposit(self, account: str, token: str, amount: int) -> None:
        ledger = self.require_allowed(token)
        self._positions.record_deposit(account, token, amount)

        def pull() -> None:
            if not ledger.transfer_from(account, self._address, amount):
                raise TransferFailedError(
                    f"Transfer of {amount} {token} from '{account}' failed"
                )

        def give_back() -> None:
            if not ledger.transfer(account, amount):
                raise TransferFailedError(
                    f"Return of {amount} {token} to '{account}' failed"
                )

        self._queue(PULL, f"pull {amount} {token} from {account}", pull, give_back)

    def redeem(self, account: str, token: str, amount: int, destination: str) -> None:
        ledger = self.require_allowed(token)
        self._positions.record_withdrawal(account, token, amount)

        def send() -> None:
            if not ledger.transfer(destination, amount):
                raise TransferFailedError(
                    f"Transfer of {amount} {token} to '{destination}' failed"
                )

        self._queue(PAYOUT, f"send {amount} {token} to {destination}", send)

    def mint(self, account: str, amount: int) -> None:
        self._positions.record_mint(account, amount)

        def issue() -> None:
            if not self._synthetic.mint(account, amount):
                raise MintFailedError(f"Mint of {amount} to '{account}' failed")

        self._queue(PAYOUT, f"mint {amount} to {account}", issue)

    def burn(self, amount: int, on_behalf_of: str, payer: str) -> None:
        self._positions.record_burn(on_behalf_of, amount)

        def pull() -> None:
            if not self._synthetic.transfer_from(payer, self._address, amount):
                raise TransferFailedError(
                    f"Transfer of {amount} synthetic from '{payer}' failed"
                )

        def give_back() -> None:
            if not self._synthetic.transfer(payer, amount):
                raise TransferFailedError(
                    f"Return of {amount} synthetic to '{payer}' failed"
                )

        def reissue() -> None:
            if not self._synthetic.mint(self._address, amount):
                raise MintFailedError(f"Re-mint of {amount} burned synthetic failed")

        self._queue(PULL, f"pull {amount} synthetic from {payer}", pull, give_back)
        self._queue(
            BURN,
            f"burn {amount} for {on_behalf_of}",
            lambda: self._synthetic.burn(amount),
            reissue,
        )

    # ------------------------------------------------------------------
    # Interactions
    # ------------------------------------------------------------------

    def _queue(
        self,
        stage: int,
        description: str,
        run: Callable[[], None],
        undo: Callable[[], None] | None = None,
    ) -> None:
        self._interactions.append(Interaction(stage, description, run, undo))

    def commit(self) -> None:
        """Run queued external calls, pulls first and payouts last."""
        pending = sorted(self._interactions, key=lambda i: i.stage)
        self._interactions.clear()

        completed: list[Interaction] = []
        try:
            for interaction in pending:
                logger.debug("Interaction: %s", interaction.description)
                interaction.run()
                completed.append(interaction)
        except Exception:
            self._compensate(completed)
            raise

    @staticmethod
    def _compensate(completed: list[Interaction]) -> None:
        for interaction in reversed(completed):
            if interaction.undo is not None:
                logger.warning("Undoing interaction: %s", interaction.description)
                interaction.undo()
