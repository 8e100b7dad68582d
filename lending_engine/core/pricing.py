"""Price staleness gate used by every valuation read."""
from __future__ import annotations

from ..constants import PRICE_STALENESS_SECONDS
from ..errors import StalePrice
from ..models import AssetConfig


def assert_fresh(
    config: AssetConfig, now: int, max_age: int = PRICE_STALENESS_SECONDS
) -> None:
    """Raise ``StalePrice`` when the posted price is older than ``max_age`` seconds."""
    age = now - config.last_update
    if age > max_age:
        raise StalePrice(
            f"{config.symbol} price is {age}s old (max {max_age}s)"
        )


def fresh_price(
    config: AssetConfig, now: int, max_age: int = PRICE_STALENESS_SECONDS
) -> int:
    """Validated ``last_price``; re-checks on every call, nothing is cached."""
    assert_fresh(config, now, max_age)
    return config.last_price
