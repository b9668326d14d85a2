"""Service modules"""
from .engine import CollateralEngine
from .health_service import HealthService, calculate_health_factor
from .liquidation import LiquidationService
from .position_service import PositionService
from .price_service import PriceService
from .reentrancy import ReentrancyGuard

__all__ = [
    "CollateralEngine",
    "HealthService",
    "LiquidationService",
    "PositionService",
    "PriceService",
    "ReentrancyGuard",
    "calculate_health_factor",
]
