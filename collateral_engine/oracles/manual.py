"""Settable in-memory price feeds."""
from __future__ import annotations

import logging
import time
from typing import Mapping

from ..errors import InvalidPriceError
from ..models import PriceRound

logger = logging.getLogger(__name__)


class ManualPriceOracle:
    """Price feeds whose answers are set directly (8 decimals)."""

    def __init__(self, prices: Mapping[str, int] | None = None) -> None:
        self._rounds: dict[str, PriceRound] = {}
        for feed, answer in (prices or {}).items():
            self.set_price(feed, answer)

    def set_price(self, feed: str, answer: int, updated_at: int | None = None) -> None:
        if updated_at is None:
            updated_at = int(time.time())
        self._rounds[feed] = PriceRound(feed=feed, answer=int(answer), updated_at=updated_at)
        logger.debug("Price for %s set to %d", feed, answer)

    def latest_round_data(self, feed: str) -> PriceRound:
        try:
            return self._rounds[feed]
        except KeyError:
            raise InvalidPriceError(f"No price reported for feed '{feed}'") from None

    def feeds(self) -> list[str]:
        return list(self._rounds)
