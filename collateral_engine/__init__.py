"""Overcollateralized synthetic dollar engine."""
from .errors import EngineError
from .models import AccountInformation, LiquidationResult, PositionReport, PriceRound
from .services import CollateralEngine, ReentrancyGuard, calculate_health_factor

__all__ = [
    "AccountInformation",
    "CollateralEngine",
    "EngineError",
    "LiquidationResult",
    "PositionReport",
    "PriceRound",
    "ReentrancyGuard",
    "calculate_health_factor",
]
