"""Price oracle protocol — price feed abstraction."""
from typing import Protocol

from ..models import PriceRound


class PriceOracle(Protocol):
    """Abstract interface for reading the latest price of a feed."""

    def latest_round_data(self, feed: str) -> PriceRound: ...
