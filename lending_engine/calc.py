"""Pure integer math for valuation, limits, liquidation and rates.

All ratios are basis points and every division truncates toward zero, so a
boundary case always resolves in the protocol's favor.
"""
from __future__ import annotations

from .constants import (
    BASIS_POINTS,
    HEALTHY_FACTOR,
    LIQUIDATION_BONUS,
    MAX_LTV,
    OPTIMAL_UTILIZATION,
)


def asset_value(amount: int, price: int) -> int:
    """Value of ``amount`` native units at a fixed-point ``price``."""
    return amount * price


def ltv_bps(collateral_value: int, debt_value: int) -> int:
    """Aggregate loan-to-value in basis points (0 when there is no collateral)."""
    if collateral_value <= 0:
        return 0
    return debt_value * BASIS_POINTS // collateral_value


def within_borrow_limit(
    debt_value: int, collateral_value: int, max_ltv: int = MAX_LTV
) -> bool:
    """True when ``debt_value * 10000 <= collateral_value * max_ltv``."""
    return debt_value * BASIS_POINTS <= collateral_value * max_ltv


def max_debt_value(collateral_value: int, ltv_ratio: int) -> int:
    return collateral_value * ltv_ratio // BASIS_POINTS


def health_factor(
    debt_value: int,
    collateral_value: int,
    ltv_ratio: int,
    liquidation_threshold: int,
) -> int:
    """Health factor in basis points for one (debt, collateral) pair.

    Returns the 10000 sentinel when there is no debt or the debt is within
    ``collateral_value * ltv_ratio``; otherwise the threshold-weighted
    collateral over debt, which is the only branch that can go below 10000.
    """
    if debt_value == 0:
        return HEALTHY_FACTOR
    if debt_value <= max_debt_value(collateral_value, ltv_ratio):
        return HEALTHY_FACTOR
    weighted = collateral_value * liquidation_threshold // BASIS_POINTS
    return weighted * BASIS_POINTS // debt_value


def seize_with_threshold(
    repay_amount: int,
    debt_price: int,
    collateral_price: int,
    liquidation_threshold: int,
) -> int:
    """Collateral removed by ``liquidate``.

    seized = repay * debt_price * (10000 + liquidation_threshold)
             / (collateral_price * 10000)
    """
    numerator = repay_amount * debt_price * (BASIS_POINTS + liquidation_threshold)
    return numerator // (collateral_price * BASIS_POINTS)


def seize_with_bonus(
    repay_amount: int,
    debt_price: int,
    collateral_price: int,
    bonus: int = LIQUIDATION_BONUS,
) -> int:
    """Collateral quoted by the liquidation view (bonus-constant premium).

    seized = repay * debt_price * (10000 + bonus) / (collateral_price * 10000)
    """
    numerator = repay_amount * debt_price * (BASIS_POINTS + bonus)
    return numerator // (collateral_price * BASIS_POINTS)


def utilization(total_borrows: int, total_supply: int) -> int:
    """Borrowed share of supply in basis points (0 when nothing is supplied)."""
    if total_supply == 0:
        return 0
    return total_borrows * BASIS_POINTS // total_supply


def curve_rate(
    utilization_bps: int,
    base_rate: int,
    slope1: int,
    slope2: int,
    optimal: int = OPTIMAL_UTILIZATION,
) -> int:
    """Two-segment linear rate: gentle ``slope1`` up to ``optimal``, steep ``slope2`` past it."""
    if utilization_bps <= optimal:
        return base_rate + utilization_bps * slope1 // BASIS_POINTS
    excess = utilization_bps - optimal
    return (
        base_rate
        + optimal * slope1 // BASIS_POINTS
        + excess * slope2 // BASIS_POINTS
    )
