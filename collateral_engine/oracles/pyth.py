"""Pyth Network price oracle service."""
from __future__ import annotations

import logging
import ssl

import aiohttp
import certifi

from ..config import PythConfig
from ..constants import FEED_DECIMALS
from ..errors import InvalidPriceError
from ..models import PriceRound

logger = logging.getLogger(__name__)


def to_feed_precision(price_raw: int, expo: int) -> int:
    """Rescale a Pyth ``price * 10**expo`` pair to ``FEED_DECIMALS`` decimals."""
    shift = expo + FEED_DECIMALS
    if shift >= 0:
        return price_raw * 10**shift
    return price_raw // 10**-shift


class PythOracle:
    """Price rounds fetched from Pyth Hermes and served from a local cache.

    The engine reads synchronously, so prices are pulled ahead of time with
    ``refresh()``.
    """

    def __init__(self, config: PythConfig) -> None:
        self.hermes_url = config.hermes_url
        self.price_feeds = dict(config.feeds)
        self._rounds: dict[str, PriceRound] = {}

    def latest_round_data(self, feed: str) -> PriceRound:
        try:
            return self._rounds[feed]
        except KeyError:
            raise InvalidPriceError(
                f"No Pyth price fetched for feed '{feed}'"
            ) from None

    async def refresh(self, feeds: list[str] | None = None) -> dict[str, PriceRound]:
        """Fetch current prices from Pyth Network into the cache.

        Args:
            feeds: Optional list of feed names to fetch. If None, fetches all
                   configured feeds.

        Returns the rounds fetched by this call; on failure previously cached
        rounds are kept.
        """
        fetched: dict[str, PriceRound] = {}

        selected = self.price_feeds
        if feeds is not None:
            selected = {k: v for k, v in self.price_feeds.items() if k in feeds}

        feed_ids = list(set(selected.values()))
        if not feed_ids:
            return fetched

        query_params = "&".join([f"ids[]={fid}" for fid in feed_ids])
        url = f"{self.hermes_url}?{query_params}"

        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        try:
            async with aiohttp.ClientSession(connector=connector) as session:
                async with session.get(url) as response:
                    if response.status != 200:
                        logger.error(
                            "Error fetching prices from Pyth: HTTP %s", response.status
                        )
                        return fetched

                    data = await response.json()
                    parsed = data.get("parsed", [])

                    # Hermes may return ids without the 0x prefix
                    id_to_feeds: dict[str, list[str]] = {}
                    for name, feed_id in selected.items():
                        key = feed_id.lower().removeprefix("0x")
                        id_to_feeds.setdefault(key, []).append(name)

                    for item in parsed:
                        feed_id = str(item.get("id", "")).lower().removeprefix("0x")
                        price_data = item.get("price", {})
                        answer = to_feed_precision(
                            int(price_data.get("price", 0)), int(price_data.get("expo", 0))
                        )
                        publish_time = int(price_data.get("publish_time", 0))

                        for name in id_to_feeds.get(feed_id, []):
                            fetched[name] = PriceRound(
                                feed=name, answer=answer, updated_at=publish_time
                            )

        except Exception as e:
            logger.error("Error fetching prices from Pyth: %s", e)
            return fetched

        self._rounds.update(fetched)
        logger.info("Fetched prices from Pyth Network:")
        for name, price_round in sorted(fetched.items()):
            logger.info("  %s: $%.4f", name, price_round.answer / 10**FEED_DECIMALS)
        return fetched
