"""Data models.

Asset configuration and read-side results are frozen; ``Position`` and
``RateModel`` are the two records the engine mutates in place, always inside
a pool transaction.
"""
from __future__ import annotations

from dataclasses import dataclass, field

from .errors import InsufficientCollateral, InvalidAmount


@dataclass(frozen=True)
class AssetConfig:
    """Risk parameters and last posted price for one asset.

    ``last_price`` and ``last_update`` are only ever replaced together.
    """

    symbol: str
    ltv_ratio: int
    liquidation_threshold: int
    pair_id: str
    last_price: int
    last_update: int
    is_active: bool = True


@dataclass
class Position:
    """A user's per-asset collateral and debt balances."""

    user: str
    collateral: dict[str, int] = field(default_factory=dict)
    debt: dict[str, int] = field(default_factory=dict)
    last_update: int = 0

    def collateral_of(self, symbol: str) -> int:
        return self.collateral.get(symbol, 0)

    def debt_of(self, symbol: str) -> int:
        return self.debt.get(symbol, 0)

    def add_collateral(self, symbol: str, amount: int) -> None:
        self.collateral.setdefault(symbol, 0)
        self.collateral[symbol] += amount

    def add_debt(self, symbol: str, amount: int) -> None:
        self.debt.setdefault(symbol, 0)
        self.debt[symbol] += amount

    def remove_collateral(self, symbol: str, amount: int) -> None:
        held = self.collateral_of(symbol)
        if amount > held:
            raise InsufficientCollateral(
                f"{self.user} holds {held} {symbol} collateral, cannot remove {amount}"
            )
        self.collateral[symbol] = held - amount

    def remove_debt(self, symbol: str, amount: int) -> None:
        owed = self.debt_of(symbol)
        if amount > owed:
            raise InvalidAmount(
                f"{self.user} owes {owed} {symbol}, cannot repay {amount}"
            )
        self.debt[symbol] = owed - amount


@dataclass
class RateModel:
    """Two-segment utilization rate curve parameters for one asset (basis points)."""

    symbol: str
    base_rate: int
    slope1: int
    slope2: int
    last_update: int = 0
    current_rate: int = 0


@dataclass(frozen=True)
class LiquidationInfo:
    """Read-only liquidation snapshot for one (debt, collateral) pair."""

    user: str
    debt_symbol: str
    collateral_symbol: str
    liquidatable: bool
    health_factor: int
    debt_amount: int
    collateral_amount: int
    debt_value: int = 0
    collateral_value: int = 0


@dataclass(frozen=True)
class LiquidationQuote:
    """Seizure amounts for the same repay under both liquidation formulas.

    ``executed_seize`` is what ``liquidate`` actually removes (threshold
    premium); ``bonus_seize`` is the bonus-constant view. They disagree.
    """

    debt_symbol: str
    collateral_symbol: str
    repay_amount: int
    executed_seize: int
    bonus_seize: int

    @property
    def discrepancy(self) -> int:
        return self.executed_seize - self.bonus_seize


@dataclass(frozen=True)
class PositionReport:
    """Aggregate valuation of one user's position across active assets."""

    user: str
    collateral_value: int
    debt_value: int
    ltv_bps: int
    collateral: tuple[tuple[str, int], ...] = ()
    debt: tuple[tuple[str, int], ...] = ()
