"""Collateral engine — deposits, redemptions, minting, burning and liquidation."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator, Mapping, Sequence

from ..errors import LengthMismatchError
from ..interfaces.checkpoint import Checkpointable
from ..interfaces.price_oracle import PriceOracle
from ..interfaces.tokens import CollateralToken, SyntheticAsset
from ..models import AccountInformation, LiquidationResult, PositionReport
from .health_service import HealthService, calculate_health_factor
from .liquidation import LiquidationService
from .operation import Operation
from .position_service import PositionService
from .price_service import PriceService
from .reentrancy import ReentrancyGuard

logger = logging.getLogger(__name__)

DEFAULT_ENGINE_ADDRESS = "engine"


class CollateralEngine:
    """Keeps every minter overcollateralized.

    Each mutating call runs under the reentrancy guard as one atomic unit:
    input checks, ledger effects, solvency checks, then external transfers.
    Any failure restores the ledger and every collaborator that supports
    checkpoints to the state they had before the call.
    """

    def __init__(
        self,
        token_addresses: Sequence[str],
        price_feeds: Sequence[str],
        oracle: PriceOracle,
        synthetic: SyntheticAsset,
        collateral_tokens: Mapping[str, CollateralToken],
        guard: ReentrancyGuard | None = None,
        address: str = DEFAULT_ENGINE_ADDRESS,
    ) -> None:
        if len(token_addresses) != len(price_feeds):
            raise LengthMismatchError(
                f"{len(token_addresses)} tokens but {len(price_feeds)} price feeds"
            )

        feeds: dict[str, str] = {}
        for token, feed in zip(token_addresses, price_feeds):
            feeds[token] = feed

        missing = [token for token in feeds if token not in collateral_tokens]
        if missing:
            raise ValueError(f"No token ledger supplied for {', '.join(missing)}")

        self.address = address
        self._synthetic = synthetic
        self._collateral_tokens = {token: collateral_tokens[token] for token in feeds}
        self._guard = guard or ReentrancyGuard()

        self._prices = PriceService(oracle, feeds)
        self._positions = PositionService(feeds, self._prices)
        self._health = HealthService(self._positions)
        self._liquidations = LiquidationService(self._prices, self._health)

        logger.info(
            "Collateral engine '%s' accepting %s", address, ", ".join(feeds) or "nothing"
        )

    # ------------------------------------------------------------------
    # Atomic scope
    # ------------------------------------------------------------------

    def _participants(self) -> list[Any]:
        participants: list[Any] = [self._positions]
        seen: set[int] = set()
        for collaborator in (self._synthetic, *self._collateral_tokens.values()):
            if isinstance(collaborator, Checkpointable) and id(collaborator) not in seen:
                seen.add(id(collaborator))
                participants.append(collaborator)
        return participants

    @contextmanager
    def _operation(self) -> Iterator[Operation]:
        with self._guard.guard():
            checkpoints = [(p, p.checkpoint()) for p in self._participants()]
            op = Operation(
                self.address, self._positions, self._synthetic, self._collateral_tokens
            )
            try:
                yield op
                op.commit()
            except Exception:
                for participant, checkpoint in reversed(checkpoints):
                    participant.rollback(checkpoint)
                raise

    # ------------------------------------------------------------------
    # Collateral and debt operations
    # ------------------------------------------------------------------

    def deposit_collateral(self, account: str, token: str, amount: int) -> None:
        with self._operation() as op:
            op.deposit(account, token, amount)
        logger.info("Collateral deposited: %s %d %s", account, amount, token)

    def redeem_collateral(
        self, account: str, token: str, amount: int, destination: str | None = None
    ) -> None:
        destination = destination or account
        with self._operation() as op:
            op.redeem(account, token, amount, destination)
            self._health.assert_solvent(account)
        logger.info(
            "Collateral redeemed: %s %d %s -> %s", account, amount, token, destination
        )

    def mint(self, account: str, amount: int) -> None:
        with self._operation() as op:
            op.mint(account, amount)
            self._health.assert_solvent(account)
        logger.info("Minted: %s %d", account, amount)

    def burn(self, amount: int, on_behalf_of: str, payer: str | None = None) -> None:
        """Repay ``amount`` of ``on_behalf_of``'s debt with ``payer``'s synthetic."""
        payer = payer or on_behalf_of
        with self._operation() as op:
            op.burn(amount, on_behalf_of, payer)
        logger.info("Burned: %d for %s (paid by %s)", amount, on_behalf_of, payer)

    def deposit_collateral_and_mint(
        self, account: str, token: str, collateral_amount: int, mint_amount: int
    ) -> None:
        with self._operation() as op:
            op.deposit(account, token, collateral_amount)
            op.mint(account, mint_amount)
            self._health.assert_solvent(account)
        logger.info(
            "Collateral deposited and minted: %s %d %s, %d",
            account, collateral_amount, token, mint_amount,
        )

    def redeem_collateral_for_synthetic(
        self, account: str, token: str, collateral_amount: int, burn_amount: int
    ) -> None:
        with self._operation() as op:
            op.burn(burn_amount, account, account)
            op.redeem(account, token, collateral_amount, account)
            self._health.assert_solvent(account)
        logger.info(
            "Burned and redeemed: %s %d, %d %s",
            account, burn_amount, collateral_amount, token,
        )

    def liquidate(
        self, liquidator: str, token: str, target: str, debt_to_cover: int
    ) -> LiquidationResult:
        with self._operation() as op:
            result = self._liquidations.liquidate(
                op, liquidator, token, target, debt_to_cover
            )
        logger.info(
            "Liquidated %s by %s: covered %d, seized %d %s (bonus %d)",
            target, liquidator, result.debt_covered,
            result.collateral_seized, token, result.bonus_collateral,
        )
        return result

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_health_factor(self, account: str) -> int:
        return self._health.health_factor(account)

    @staticmethod
    def calculate_health_factor(total_minted: int, collateral_value_usd: int) -> int:
        return calculate_health_factor(total_minted, collateral_value_usd)

    def get_account_collateral_value(self, account: str) -> int:
        return self._positions.total_collateral_value_usd(account)

    def get_account_information(self, account: str) -> AccountInformation:
        return AccountInformation(
            total_minted=self._positions.minted(account),
            collateral_value_usd=self._positions.total_collateral_value_usd(account),
        )

    def get_usd_value(self, token: str, amount: int) -> int:
        return self._prices.usd_value(token, amount)

    def get_token_amount_from_usd(self, token: str, usd_amount: int) -> int:
        return self._prices.token_amount_from_usd(token, usd_amount)

    def get_collateral_balance(self, account: str, token: str) -> int:
        return self._positions.collateral_balance(account, token)

    def get_minted(self, account: str) -> int:
        return self._positions.minted(account)

    def get_total_collateral(self, token: str) -> int:
        return self._positions.total_collateral(token)

    def get_collateral_tokens(self) -> tuple[str, ...]:
        return self._positions.tokens

    def get_collateral_token_price_feed(self, token: str) -> str:
        return self._prices.price_feed(token)

    def get_accounts(self) -> list[str]:
        return self._positions.accounts()

    def get_position_report(self, account: str) -> PositionReport:
        info = self.get_account_information(account)
        return PositionReport(
            account=account,
            total_minted=info.total_minted,
            collateral_value_usd=info.collateral_value_usd,
            health_factor=calculate_health_factor(
                info.total_minted, info.collateral_value_usd
            ),
            holdings=self._positions.holdings(account),
        )
