"""USD price conversion on top of the configured price oracle."""
from __future__ import annotations

import logging
from typing import Mapping

from ..constants import ADDITIONAL_FEED_PRECISION, PRECISION
from ..errors import InvalidPriceError, UnsupportedAssetError
from ..interfaces.price_oracle import PriceOracle

logger = logging.getLogger(__name__)


class PriceService:
    """Convert between token amounts and 18-decimal USD values."""

    def __init__(self, oracle: PriceOracle, price_feeds: Mapping[str, str]) -> None:
        self._oracle = oracle
        self._price_feeds = dict(price_feeds)

    def price_feed(self, token: str) -> str:
        feed = self._price_feeds.get(token)
        if feed is None:
            raise UnsupportedAssetError(f"No price feed bound to '{token}'")
        return feed

    def latest_price(self, token: str) -> int:
        """Latest feed answer for ``token``, at feed precision (8 decimals)."""
        feed = self.price_feed(token)
        answer = self._oracle.latest_round_data(feed).answer
        if answer < 0:
            raise InvalidPriceError(f"Feed '{feed}' reported negative price {answer}")
        return answer

    def usd_value(self, token: str, amount: int) -> int:
        """USD value (18 decimals) of ``amount`` units of ``token``."""
        price = self.latest_price(token)
        return price * ADDITIONAL_FEED_PRECISION * amount // PRECISION

    def token_amount_from_usd(self, token: str, usd_amount: int) -> int:
        """Amount of ``token`` worth ``usd_amount`` (18 decimals) at current price."""
        price = self.latest_price(token)
        if price == 0:
            raise InvalidPriceError(
                f"Feed '{self.price_feed(token)}' reported zero price"
            )
        return usd_amount * PRECISION // (price * ADDITIONAL_FEED_PRECISION)
