"""Unit tests for health factor, eligibility and liquidation."""
from __future__ import annotations

import pytest

from lending_engine.custody import InMemoryVault
from lending_engine.errors import (
    InsufficientBalance,
    InsufficientCollateral,
    InvalidAmount,
    NotLiquidatable,
    StalePrice,
    UserNoPosition,
)
from lending_engine.events import EventLog, Liquidated
from lending_engine.services.engine import LendingEngine


class TestHealthFactor:
    def test_no_debt_is_sentinel_even_after_collapse(self, engine: LendingEngine) -> None:
        engine.deposit("alice", "DOGE", 1_000_000_000)
        engine.update_asset_price("admin", "DOGE", 1)
        assert engine.health_factor("alice", "USDC", "DOGE") == 10_000
        assert engine.is_liquidatable("alice", "USDC", "DOGE") is False

    def test_unknown_user_is_healthy(self, engine: LendingEngine) -> None:
        assert engine.health_factor("nobody", "USDC", "DOGE") == 10_000
        assert engine.is_liquidatable("nobody", "USDC", "DOGE") is False

    def test_healthy_within_ltv(self, engine: LendingEngine) -> None:
        engine.deposit("alice", "DOGE", 1_000_000_000)
        engine.borrow("alice", "USDC", 50_000_000)
        assert engine.health_factor("alice", "USDC", "DOGE") == 10_000

    def test_underwater(self, underwater_engine: LendingEngine) -> None:
        assert underwater_engine.health_factor("alice", "USDC", "DOGE") == 8000
        assert underwater_engine.is_liquidatable("alice", "USDC", "DOGE") is True

    def test_stale_price(self, underwater_engine: LendingEngine, clock) -> None:
        clock.advance(301)
        with pytest.raises(StalePrice):
            underwater_engine.health_factor("alice", "USDC", "DOGE")

    def test_liquidation_info(self, underwater_engine: LendingEngine) -> None:
        info = underwater_engine.get_liquidation_info("alice", "USDC", "DOGE")
        assert info.liquidatable is True
        assert info.health_factor == 8000
        assert info.debt_amount == 50_000_000
        assert info.collateral_amount == 1_000_000_000
        assert info.debt_value == 50_000_000 * 1_000_000
        assert info.collateral_value == 1_000_000_000 * 50_000

    def test_liquidation_info_without_debt(self, engine: LendingEngine) -> None:
        engine.deposit("alice", "DOGE", 7)
        info = engine.get_liquidation_info("alice", "USDC", "DOGE")
        assert (info.liquidatable, info.health_factor) == (False, 10_000)
        assert info.collateral_amount == 7


class TestLiquidationAmounts:
    def test_view_uses_bonus(self, underwater_engine: LendingEngine) -> None:
        assert underwater_engine.calculate_liquidation_amounts(
            "USDC", "DOGE", 10_000_000
        ) == (10_000_000, 210_000_000)

    def test_quote_shows_both_formulas(self, underwater_engine: LendingEngine) -> None:
        quote = underwater_engine.quote_liquidation("USDC", "DOGE", 10_000_000)
        assert quote.executed_seize == 360_000_000
        assert quote.bonus_seize == 210_000_000
        assert quote.discrepancy == 150_000_000

    def test_view_rejects_zero(self, underwater_engine: LendingEngine) -> None:
        with pytest.raises(InvalidAmount):
            underwater_engine.calculate_liquidation_amounts("USDC", "DOGE", 0)


class TestLiquidate:
    def test_two_sided_update(
        self,
        underwater_engine: LendingEngine,
        vault: InMemoryVault,
        event_log: EventLog,
    ) -> None:
        seized = underwater_engine.liquidate("bob", "alice", "USDC", "DOGE", 10_000_000)

        assert seized == 360_000_000
        assert underwater_engine.get_user_position("alice", "USDC") == (0, 40_000_000)
        assert underwater_engine.get_user_position("alice", "DOGE") == (640_000_000, 0)
        assert vault.balance_of("bob", "USDC") == 1_000_000_000 - 10_000_000
        assert vault.balance_of("bob", "DOGE") == 360_000_000
        assert event_log.of_type(Liquidated) == [
            Liquidated("bob", "alice", "USDC", "DOGE", 10_000_000, 360_000_000)
        ]

    def test_seizure_matches_quote(self, underwater_engine: LendingEngine) -> None:
        quote = underwater_engine.quote_liquidation("USDC", "DOGE", 5_000_000)
        seized = underwater_engine.liquidate("bob", "alice", "USDC", "DOGE", 5_000_000)
        assert seized == quote.executed_seize

    def test_healthy_position_rejected(self, engine: LendingEngine) -> None:
        engine.deposit("alice", "DOGE", 1_000_000_000)
        engine.borrow("alice", "USDC", 50_000_000)
        with pytest.raises(NotLiquidatable):
            engine.liquidate("bob", "alice", "USDC", "DOGE", 1)

    def test_no_debt_rejected(self, engine: LendingEngine) -> None:
        engine.deposit("alice", "DOGE", 1_000_000_000)
        engine.update_asset_price("admin", "DOGE", 1)
        with pytest.raises(NotLiquidatable):
            engine.liquidate("bob", "alice", "USDC", "DOGE", 1)

    def test_unknown_user(self, engine: LendingEngine) -> None:
        with pytest.raises(UserNoPosition):
            engine.liquidate("bob", "nobody", "USDC", "DOGE", 1)

    def test_zero_repay(self, underwater_engine: LendingEngine) -> None:
        with pytest.raises(InvalidAmount):
            underwater_engine.liquidate("bob", "alice", "USDC", "DOGE", 0)

    def test_repay_above_debt(self, underwater_engine: LendingEngine) -> None:
        with pytest.raises(InvalidAmount):
            underwater_engine.liquidate("bob", "alice", "USDC", "DOGE", 50_000_001)
        assert underwater_engine.get_user_position("alice", "USDC") == (0, 50_000_000)

    def test_seizure_above_collateral(
        self, underwater_engine: LendingEngine, vault: InMemoryVault
    ) -> None:
        # 30_000_000 * 1e6 * 18000 / (50_000 * 10000) = 1_080_000_000 > 1e9
        with pytest.raises(InsufficientCollateral):
            underwater_engine.liquidate("bob", "alice", "USDC", "DOGE", 30_000_000)
        assert underwater_engine.get_user_position("alice", "DOGE") == (1_000_000_000, 0)
        assert underwater_engine.get_user_position("alice", "USDC") == (0, 50_000_000)
        assert vault.balance_of("bob", "USDC") == 1_000_000_000

    def test_stale_price(self, underwater_engine: LendingEngine, clock) -> None:
        clock.advance(301)
        with pytest.raises(StalePrice):
            underwater_engine.liquidate("bob", "alice", "USDC", "DOGE", 1_000_000)

    def test_liquidator_without_funds(
        self, underwater_engine: LendingEngine, vault: InMemoryVault
    ) -> None:
        with pytest.raises(InsufficientBalance):
            underwater_engine.liquidate("carol", "alice", "USDC", "DOGE", 1_000_000)
        assert underwater_engine.get_user_position("alice", "USDC") == (0, 50_000_000)
        assert underwater_engine.get_user_position("alice", "DOGE") == (1_000_000_000, 0)
        assert vault.balance_of("carol", "DOGE") == 0
