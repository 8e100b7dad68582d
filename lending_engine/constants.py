"""Protocol constants. Integer units throughout."""

# 10000 = 100%
BASIS_POINTS = 10_000

# Aggregate borrow cap: debt_value * BASIS_POINTS <= collateral_value * MAX_LTV
MAX_LTV = 500

# Seizure premium used by the liquidation view formula
LIQUIDATION_BONUS = 500

# Kink of the two-segment rate curve
OPTIMAL_UTILIZATION = 8_000

# Prices are fixed-point with 6 implied decimals (1_000_000 == $1.00)
PRICE_DECIMALS = 6
PRICE_SCALE = 10**PRICE_DECIMALS

# Maximum age of a posted price, in seconds
PRICE_STALENESS_SECONDS = 300

# Health factor sentinel; anything below is liquidatable
HEALTHY_FACTOR = BASIS_POINTS

# Minimum elapsed seconds before a rate model recomputes
RATE_RECOMPUTE_SECONDS = 1
