"""Transactional core: pool, registry, pricing gate, ledger, rates, liquidation."""
from .liquidation import LiquidationEngine
from .pool import LendingPool
from .positions import PositionLedger
from .pricing import assert_fresh, fresh_price
from .rates import RateCurveEngine
from .registry import AssetRegistry

__all__ = [
    "AssetRegistry",
    "LendingPool",
    "LiquidationEngine",
    "PositionLedger",
    "RateCurveEngine",
    "assert_fresh",
    "fresh_price",
]
