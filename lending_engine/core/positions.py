"""PositionLedger — per-user collateral and debt, deposit and borrow."""
from __future__ import annotations

import logging

from .. import calc
from ..constants import MAX_LTV, PRICE_STALENESS_SECONDS
from ..errors import BorrowLimitExceeded, InvalidAmount, UserNoPosition
from ..interfaces.custody import Custody
from ..models import Position, PositionReport
from .pool import LendingPool
from .pricing import fresh_price
from .registry import AssetRegistry

logger = logging.getLogger(__name__)


def require_positive(amount: int) -> None:
    """Amounts are unsigned native units; zero, negatives and non-integers are rejected."""
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise InvalidAmount(f"amount must be a positive integer, got {amount!r}")


class PositionLedger:
    """Deposits, borrows and aggregate valuation of user positions."""

    def __init__(
        self,
        pool: LendingPool,
        registry: AssetRegistry,
        custody: Custody,
        max_ltv: int = MAX_LTV,
        max_price_age: int = PRICE_STALENESS_SECONDS,
    ) -> None:
        self._pool = pool
        self._registry = registry
        self._custody = custody
        self._max_ltv = max_ltv
        self._max_price_age = max_price_age

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def deposit(self, user: str, symbol: str, amount: int) -> int:
        """Move ``amount`` of ``symbol`` from the user into custody as collateral.

        Returns the user's new collateral balance in ``symbol``.
        """
        pool = self._pool
        with pool.transaction(user):
            require_positive(amount)
            self._registry.get_asset(symbol)

            self._custody.hold(user, symbol, amount)

            position = pool.positions.get(user)
            if position is None:
                position = Position(user=user)
                pool.positions[user] = position
                logger.debug("Created position for %s", user)
            position.add_collateral(symbol, amount)
            position.last_update = pool.clock()
            balance = position.collateral_of(symbol)

        logger.info("Deposit: %s +%d %s (collateral now %d)", user, amount, symbol, balance)
        return balance

    def borrow(self, user: str, symbol: str, amount: int) -> int:
        """Release ``amount`` of ``symbol`` to the user against their collateral.

        The limit is checked on aggregate value over every active asset the
        user holds or owes, not just ``symbol``. Returns the new debt balance.
        """
        pool = self._pool
        with pool.transaction(user):
            require_positive(amount)
            config = self._registry.get_asset(symbol)
            position = self._require_position(user)

            now = pool.clock()
            collateral_value, debt_value = self.aggregate_values(position, now)
            price = fresh_price(config, now, self._max_price_age)
            new_debt_value = debt_value + calc.asset_value(amount, price)

            if not calc.within_borrow_limit(
                new_debt_value, collateral_value, self._max_ltv
            ):
                raise BorrowLimitExceeded(
                    f"{user} borrowing {amount} {symbol}: debt value {new_debt_value} "
                    f"exceeds {self._max_ltv}bp of collateral value {collateral_value}"
                )

            self._custody.release(symbol, amount, user)

            position.add_debt(symbol, amount)
            position.last_update = now
            balance = position.debt_of(symbol)

        logger.info("Borrow: %s +%d %s (debt now %d)", user, amount, symbol, balance)
        return balance

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_position(self, user: str, symbol: str) -> tuple[int, int]:
        """(collateral, debt) of ``user`` in ``symbol``; zeros for an untouched asset."""
        position = self._require_position(user)
        return position.collateral_of(symbol), position.debt_of(symbol)

    def aggregate_values(self, position: Position, now: int) -> tuple[int, int]:
        """Total (collateral_value, debt_value) over active assets in the position.

        Every asset with an entry in either map has its price freshness
        checked, even when the entry is zero.
        """
        collateral_value = 0
        debt_value = 0
        for symbol in self._pool.active_assets:
            in_collateral = symbol in position.collateral
            in_debt = symbol in position.debt
            if not (in_collateral or in_debt):
                continue
            price = fresh_price(
                self._pool.assets[symbol], now, self._max_price_age
            )
            if in_collateral:
                collateral_value += calc.asset_value(position.collateral[symbol], price)
            if in_debt:
                debt_value += calc.asset_value(position.debt[symbol], price)
        return collateral_value, debt_value

    def account_summary(self, user: str) -> PositionReport:
        position = self._require_position(user)
        collateral_value, debt_value = self.aggregate_values(
            position, self._pool.clock()
        )
        return PositionReport(
            user=user,
            collateral_value=collateral_value,
            debt_value=debt_value,
            ltv_bps=calc.ltv_bps(collateral_value, debt_value),
            collateral=tuple(sorted(position.collateral.items())),
            debt=tuple(sorted(position.debt.items())),
        )

    def _require_position(self, user: str) -> Position:
        position = self._pool.positions.get(user)
        if position is None:
            raise UserNoPosition(f"{user} has no position")
        return position
