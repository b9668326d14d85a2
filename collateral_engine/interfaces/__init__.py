"""Protocol interfaces for the engine's external collaborators."""
from .checkpoint import Checkpointable
from .price_oracle import PriceOracle
from .tokens import CollateralToken, SyntheticAsset

__all__ = ["Checkpointable", "CollateralToken", "PriceOracle", "SyntheticAsset"]
