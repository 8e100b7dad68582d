"""LendingEngine — the operation surface over the transactional core."""
from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager

from ..config import EngineConfig
from ..core import (
    AssetRegistry,
    LendingPool,
    LiquidationEngine,
    PositionLedger,
    RateCurveEngine,
    fresh_price,
)
from ..errors import LendingError
from ..events import (
    AssetAdded,
    Borrowed,
    Deposited,
    EventBus,
    Liquidated,
    PoolInitialized,
    PriceUpdated,
)
from ..interfaces.custody import Custody
from ..models import AssetConfig, LiquidationInfo, LiquidationQuote, PositionReport

logger = logging.getLogger(__name__)


@contextmanager
def _logged(operation: str) -> Iterator[None]:
    try:
        yield
    except LendingError as e:
        logger.warning("%s rejected: %s: %s", operation, e.code, e)
        raise


class LendingEngine:
    """Wires registry, ledger, liquidation and rate engine around one pool.

    Mutating calls run inside a pool transaction and publish their event on
    ``events`` only after the transaction commits.
    """

    def __init__(
        self,
        config: EngineConfig,
        custody: Custody,
        clock: Callable[[], int] | None = None,
        events: EventBus | None = None,
        pool: LendingPool | None = None,
        rates: RateCurveEngine | None = None,
    ) -> None:
        self._config = config
        self.custody = custody
        self.pool = pool or LendingPool(config.admin, clock)
        self.events = events or EventBus()
        self.registry = AssetRegistry(self.pool)
        self.ledger = PositionLedger(
            self.pool,
            self.registry,
            custody,
            max_ltv=config.max_ltv_bps,
            max_price_age=config.price_staleness_seconds,
        )
        self.liquidations = LiquidationEngine(
            self.pool,
            self.registry,
            custody,
            liquidation_bonus=config.liquidation_bonus_bps,
            max_price_age=config.price_staleness_seconds,
        )
        if rates is None:
            rates = RateCurveEngine(
                self.pool.clock,
                optimal_utilization=config.optimal_utilization_bps,
                recompute_seconds=config.rate_recompute_seconds,
            )
            for symbol, model in config.rate_models.items():
                rates.set_model(symbol, model.base_rate, model.slope1, model.slope2)
        self.rates = rates

    @property
    def config(self) -> EngineConfig:
        return self._config

    # ------------------------------------------------------------------
    # Administration
    # ------------------------------------------------------------------

    def initialize(self, caller: str) -> None:
        """Create the pool and register the configured seed asset."""
        seed = self._config.seed_asset
        with _logged("initialize"), self.pool.transaction():
            self.pool.mark_initialized(caller)
            self.registry.add_asset(
                caller,
                seed.symbol,
                seed.ltv_ratio,
                seed.liquidation_threshold,
                seed.pair_id,
                seed.initial_price,
            )
        logger.info("Lending pool initialized by %s", caller)
        self.events.publish(PoolInitialized(admin=caller, seed_symbol=seed.symbol))
        self.events.publish(
            AssetAdded(
                symbol=seed.symbol,
                ltv_ratio=seed.ltv_ratio,
                liquidation_threshold=seed.liquidation_threshold,
                pair_id=seed.pair_id,
                price=seed.initial_price,
            )
        )

    def add_asset(
        self,
        caller: str,
        symbol: str,
        ltv_ratio: int,
        liquidation_threshold: int,
        pair_id: str,
        initial_price: int,
    ) -> bool:
        with _logged("add_asset"):
            self.pool.require_initialized()
            added = self.registry.add_asset(
                caller, symbol, ltv_ratio, liquidation_threshold, pair_id, initial_price
            )
        if added:
            self.events.publish(
                AssetAdded(
                    symbol=symbol,
                    ltv_ratio=ltv_ratio,
                    liquidation_threshold=liquidation_threshold,
                    pair_id=pair_id,
                    price=initial_price,
                )
            )
        return added

    def update_asset_price(self, caller: str, symbol: str, price: int) -> bool:
        with _logged("update_asset_price"):
            self.pool.require_initialized()
            updated = self.registry.update_price(caller, symbol, price)
        if updated:
            config = self.pool.assets[symbol]
            self.events.publish(
                PriceUpdated(symbol=symbol, price=price, timestamp=config.last_update)
            )
        return updated

    def set_rate_model(
        self, caller: str, symbol: str, base_rate: int, slope1: int, slope2: int
    ) -> None:
        with _logged("set_rate_model"):
            self.pool.require_admin(caller)
            self.registry.get_asset(symbol)
            self.rates.set_model(symbol, base_rate, slope1, slope2)

    # ------------------------------------------------------------------
    # Positions
    # ------------------------------------------------------------------

    def deposit(self, user: str, symbol: str, amount: int) -> int:
        with _logged("deposit"):
            self.pool.require_initialized()
            balance = self.ledger.deposit(user, symbol, amount)
        self.events.publish(Deposited(user=user, symbol=symbol, amount=amount))
        return balance

    def borrow(self, user: str, symbol: str, amount: int) -> int:
        with _logged("borrow"):
            self.pool.require_initialized()
            balance = self.ledger.borrow(user, symbol, amount)
        self.events.publish(Borrowed(user=user, symbol=symbol, amount=amount))
        return balance

    def liquidate(
        self,
        liquidator: str,
        user: str,
        debt_symbol: str,
        collateral_symbol: str,
        repay_amount: int,
    ) -> int:
        with _logged("liquidate"):
            self.pool.require_initialized()
            seized = self.liquidations.liquidate(
                liquidator, user, debt_symbol, collateral_symbol, repay_amount
            )
        self.events.publish(
            Liquidated(
                liquidator=liquidator,
                user=user,
                debt_symbol=debt_symbol,
                collateral_symbol=collateral_symbol,
                repay_amount=repay_amount,
                seized_amount=seized,
            )
        )
        return seized

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_asset(self, symbol: str) -> AssetConfig:
        return self.registry.get_asset(symbol)

    def get_asset_details(self, symbol: str) -> tuple[int, int, int]:
        """(price, ltv_ratio, liquidation_threshold), rejecting a stale price."""
        config = self.registry.get_asset(symbol)
        price = fresh_price(
            config, self.pool.clock(), self._config.price_staleness_seconds
        )
        return price, config.ltv_ratio, config.liquidation_threshold

    def get_user_position(self, user: str, symbol: str) -> tuple[int, int]:
        return self.ledger.get_position(user, symbol)

    def get_account_summary(self, user: str) -> PositionReport:
        return self.ledger.account_summary(user)

    def health_factor(self, user: str, debt_symbol: str, collateral_symbol: str) -> int:
        return self.liquidations.health_factor(user, debt_symbol, collateral_symbol)

    def is_liquidatable(self, user: str, debt_symbol: str, collateral_symbol: str) -> bool:
        return self.liquidations.is_liquidatable(user, debt_symbol, collateral_symbol)

    def get_liquidation_info(
        self, user: str, debt_symbol: str, collateral_symbol: str
    ) -> LiquidationInfo:
        return self.liquidations.get_liquidation_info(
            user, debt_symbol, collateral_symbol
        )

    def calculate_liquidation_amounts(
        self, debt_symbol: str, collateral_symbol: str, repay_amount: int
    ) -> tuple[int, int]:
        return self.liquidations.calculate_liquidation_amounts(
            debt_symbol, collateral_symbol, repay_amount
        )

    def quote_liquidation(
        self, debt_symbol: str, collateral_symbol: str, repay_amount: int
    ) -> LiquidationQuote:
        return self.liquidations.quote(debt_symbol, collateral_symbol, repay_amount)

    def update_rate(self, symbol: str, total_borrows: int, total_supply: int) -> int:
        return self.rates.update_rate(symbol, total_borrows, total_supply)

    def users(self) -> list[str]:
        return self.pool.users()

    def active_assets(self) -> list[str]:
        return self.registry.active_assets()
