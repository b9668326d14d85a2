"""Fixed-point and risk constants shared by the engine."""

# Fixed point scale factors
PRECISION = 10**18
FEED_DECIMALS = 8
ADDITIONAL_FEED_PRECISION = 10 ** (18 - FEED_DECIMALS)

# Risk parameters
LIQUIDATION_THRESHOLD = 50  # 200% overcollateralized
LIQUIDATION_PRECISION = 100
LIQUIDATION_BONUS = 10  # 10% to the liquidator
MIN_HEALTH_FACTOR = PRECISION

# Reported for accounts with no debt
MAX_HEALTH_FACTOR = 2**256 - 1
