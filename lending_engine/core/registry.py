"""AssetRegistry — per-asset risk parameters and last posted price."""
from __future__ import annotations

import logging
from dataclasses import replace

from ..errors import AssetNotSupported, InvalidAmount
from ..models import AssetConfig
from .pool import LendingPool

logger = logging.getLogger(__name__)


class AssetRegistry:
    """Admin-gated view over ``pool.assets`` and ``pool.active_assets``."""

    def __init__(self, pool: LendingPool) -> None:
        self._pool = pool

    def add_asset(
        self,
        caller: str,
        symbol: str,
        ltv_ratio: int,
        liquidation_threshold: int,
        pair_id: str,
        initial_price: int,
    ) -> bool:
        """Register ``symbol``; returns False (no-op) if it already exists."""
        pool = self._pool
        with pool.transaction():
            pool.require_admin(caller)
            if symbol in pool.assets:
                logger.debug("Asset %s already registered, skipping", symbol)
                return False
            if initial_price <= 0:
                raise InvalidAmount(f"initial price for {symbol} must be positive")

            pool.assets[symbol] = AssetConfig(
                symbol=symbol,
                ltv_ratio=ltv_ratio,
                liquidation_threshold=liquidation_threshold,
                pair_id=pair_id,
                last_price=initial_price,
                last_update=pool.clock(),
            )
            pool.active_assets.append(symbol)

        logger.info(
            "Asset added: %s (ltv=%dbp, threshold=%dbp, pair=%s, price=%d)",
            symbol, ltv_ratio, liquidation_threshold, pair_id, initial_price,
        )
        return True

    def update_price(self, caller: str, symbol: str, price: int) -> bool:
        """Post a new price; returns False (no-op) for an unknown symbol."""
        pool = self._pool
        with pool.transaction():
            pool.require_admin(caller)
            config = pool.assets.get(symbol)
            if config is None:
                logger.debug("Price update for unknown asset %s ignored", symbol)
                return False
            if price <= 0:
                raise InvalidAmount(f"price for {symbol} must be positive")
            pool.assets[symbol] = replace(
                config, last_price=price, last_update=pool.clock()
            )

        logger.info("Price updated: %s = %d", symbol, price)
        return True

    def get_asset(self, symbol: str) -> AssetConfig:
        config = self._pool.assets.get(symbol)
        if config is None:
            raise AssetNotSupported(f"asset {symbol!r} is not supported")
        return config

    def has_asset(self, symbol: str) -> bool:
        return symbol in self._pool.assets

    def active_assets(self) -> list[str]:
        return list(self._pool.active_assets)
