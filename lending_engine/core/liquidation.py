"""LiquidationEngine — health factor, eligibility and collateral seizure.

Two seizure formulas exist and they do not agree:

* ``liquidate`` removes ``repay * debt_price * (10000 + liquidation_threshold)
  / (collateral_price * 10000)`` of collateral, i.e. the collateral asset's
  liquidation threshold acts as the premium (80% for the seed asset).
* ``calculate_liquidation_amounts`` quotes the same repay with the
  ``liquidation_bonus`` constant as the premium (5% by default).

Both are kept as-is; ``quote`` returns them side by side.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

from .. import calc
from ..constants import HEALTHY_FACTOR, LIQUIDATION_BONUS, PRICE_STALENESS_SECONDS
from ..errors import (
    InsufficientCollateral,
    InvalidAmount,
    LendingError,
    NotLiquidatable,
    UserNoPosition,
)
from ..interfaces.custody import Custody
from ..models import AssetConfig, LiquidationInfo, LiquidationQuote, Position
from .pool import LendingPool
from .positions import require_positive
from .pricing import fresh_price
from .registry import AssetRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _PairValuation:
    debt_amount: int
    collateral_amount: int
    debt_price: int
    collateral_price: int
    collateral_config: AssetConfig

    @property
    def debt_value(self) -> int:
        return calc.asset_value(self.debt_amount, self.debt_price)

    @property
    def collateral_value(self) -> int:
        return calc.asset_value(self.collateral_amount, self.collateral_price)

    @property
    def health_factor(self) -> int:
        return calc.health_factor(
            self.debt_value,
            self.collateral_value,
            self.collateral_config.ltv_ratio,
            self.collateral_config.liquidation_threshold,
        )


class LiquidationEngine:
    """Reads the same pool as PositionLedger and performs two-sided seizures."""

    def __init__(
        self,
        pool: LendingPool,
        registry: AssetRegistry,
        custody: Custody,
        liquidation_bonus: int = LIQUIDATION_BONUS,
        max_price_age: int = PRICE_STALENESS_SECONDS,
    ) -> None:
        self._pool = pool
        self._registry = registry
        self._custody = custody
        self._bonus = liquidation_bonus
        self._max_price_age = max_price_age

    # ------------------------------------------------------------------
    # Valuation
    # ------------------------------------------------------------------

    def _price(self, config: AssetConfig, now: int) -> int:
        return fresh_price(config, now, self._max_price_age)

    def _value_pair(
        self, position: Position, debt_symbol: str, collateral_symbol: str
    ) -> _PairValuation:
        now = self._pool.clock()
        debt_config = self._registry.get_asset(debt_symbol)
        collateral_config = self._registry.get_asset(collateral_symbol)
        return _PairValuation(
            debt_amount=position.debt_of(debt_symbol),
            collateral_amount=position.collateral_of(collateral_symbol),
            debt_price=self._price(debt_config, now),
            collateral_price=self._price(collateral_config, now),
            collateral_config=collateral_config,
        )

    def health_factor(self, user: str, debt_symbol: str, collateral_symbol: str) -> int:
        """Health factor in basis points; 10000 whenever there is no debt in ``debt_symbol``."""
        position = self._pool.positions.get(user)
        if position is None or position.debt_of(debt_symbol) == 0:
            return HEALTHY_FACTOR
        return self._value_pair(position, debt_symbol, collateral_symbol).health_factor

    def is_liquidatable(self, user: str, debt_symbol: str, collateral_symbol: str) -> bool:
        position = self._pool.positions.get(user)
        if position is None or position.debt_of(debt_symbol) == 0:
            return False
        return self.health_factor(user, debt_symbol, collateral_symbol) < HEALTHY_FACTOR

    def get_liquidation_info(
        self, user: str, debt_symbol: str, collateral_symbol: str
    ) -> LiquidationInfo:
        position = self._pool.positions.get(user)
        if position is None or position.debt_of(debt_symbol) == 0:
            return LiquidationInfo(
                user=user,
                debt_symbol=debt_symbol,
                collateral_symbol=collateral_symbol,
                liquidatable=False,
                health_factor=HEALTHY_FACTOR,
                debt_amount=0,
                collateral_amount=position.collateral_of(collateral_symbol) if position else 0,
            )

        pair = self._value_pair(position, debt_symbol, collateral_symbol)
        hf = pair.health_factor
        return LiquidationInfo(
            user=user,
            debt_symbol=debt_symbol,
            collateral_symbol=collateral_symbol,
            liquidatable=hf < HEALTHY_FACTOR,
            health_factor=hf,
            debt_amount=pair.debt_amount,
            collateral_amount=pair.collateral_amount,
            debt_value=pair.debt_value,
            collateral_value=pair.collateral_value,
        )

    # ------------------------------------------------------------------
    # Seizure amounts
    # ------------------------------------------------------------------

    def calculate_liquidation_amounts(
        self, debt_symbol: str, collateral_symbol: str, repay_amount: int
    ) -> tuple[int, int]:
        """(repay, seize) under the bonus-constant formula. Not what ``liquidate`` removes."""
        require_positive(repay_amount)
        now = self._pool.clock()
        debt_price = self._price(self._registry.get_asset(debt_symbol), now)
        collateral_price = self._price(self._registry.get_asset(collateral_symbol), now)
        seize = calc.seize_with_bonus(
            repay_amount, debt_price, collateral_price, self._bonus
        )
        return repay_amount, seize

    def quote(
        self, debt_symbol: str, collateral_symbol: str, repay_amount: int
    ) -> LiquidationQuote:
        require_positive(repay_amount)
        now = self._pool.clock()
        collateral_config = self._registry.get_asset(collateral_symbol)
        debt_price = self._price(self._registry.get_asset(debt_symbol), now)
        collateral_price = self._price(collateral_config, now)
        return LiquidationQuote(
            debt_symbol=debt_symbol,
            collateral_symbol=collateral_symbol,
            repay_amount=repay_amount,
            executed_seize=calc.seize_with_threshold(
                repay_amount,
                debt_price,
                collateral_price,
                collateral_config.liquidation_threshold,
            ),
            bonus_seize=calc.seize_with_bonus(
                repay_amount, debt_price, collateral_price, self._bonus
            ),
        )

    # ------------------------------------------------------------------
    # Liquidation
    # ------------------------------------------------------------------

    def liquidate(
        self,
        liquidator: str,
        user: str,
        debt_symbol: str,
        collateral_symbol: str,
        repay_amount: int,
    ) -> int:
        """Repay part of ``user``'s debt and seize collateral for ``liquidator``.

        Returns the amount of ``collateral_symbol`` seized.
        """
        pool = self._pool
        with pool.transaction(user):
            require_positive(repay_amount)
            position = pool.positions.get(user)
            if position is None:
                raise UserNoPosition(f"{user} has no position")
            if position.debt_of(debt_symbol) == 0:
                raise NotLiquidatable(f"{user} has no {debt_symbol} debt")

            pair = self._value_pair(position, debt_symbol, collateral_symbol)
            hf = pair.health_factor
            if hf >= HEALTHY_FACTOR:
                raise NotLiquidatable(
                    f"{user} is healthy on {debt_symbol}/{collateral_symbol} (hf={hf})"
                )
            if pair.debt_amount < repay_amount:
                raise InvalidAmount(
                    f"repay {repay_amount} exceeds {user}'s {debt_symbol} debt {pair.debt_amount}"
                )

            seized = calc.seize_with_threshold(
                repay_amount,
                pair.debt_price,
                pair.collateral_price,
                pair.collateral_config.liquidation_threshold,
            )
            if seized > pair.collateral_amount:
                raise InsufficientCollateral(
                    f"seizing {seized} {collateral_symbol} exceeds {user}'s "
                    f"collateral {pair.collateral_amount}"
                )

            self._custody.hold(liquidator, debt_symbol, repay_amount)
            try:
                self._custody.release(collateral_symbol, seized, liquidator)
            except LendingError:
                # refund the repayment already taken
                self._custody.release(debt_symbol, repay_amount, liquidator)
                raise

            position.remove_debt(debt_symbol, repay_amount)
            position.remove_collateral(collateral_symbol, seized)
            position.last_update = pool.clock()

        logger.info(
            "Liquidation: %s repaid %d %s for %s, seized %d %s (hf was %d)",
            liquidator, repay_amount, debt_symbol, user, seized, collateral_symbol, hf,
        )
        return seized
