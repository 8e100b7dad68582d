"""Unit tests for data models."""
from __future__ import annotations

import pytest

from lending_engine.errors import InsufficientCollateral, InvalidAmount
from lending_engine.models import AssetConfig, LiquidationQuote, Position


class TestAssetConfig:
    def test_frozen(self) -> None:
        a = AssetConfig("DOGE", 500, 8000, "DOGE/USD", 1_000_000, 100)
        with pytest.raises(AttributeError):
            a.last_price = 2  # type: ignore[misc]

    def test_active_by_default(self) -> None:
        assert AssetConfig("DOGE", 500, 8000, "DOGE/USD", 1_000_000, 100).is_active


class TestPosition:
    def test_untouched_asset_reads_zero(self) -> None:
        p = Position(user="alice")
        assert p.collateral_of("DOGE") == 0
        assert p.debt_of("DOGE") == 0
        assert "DOGE" not in p.collateral

    def test_accumulates(self) -> None:
        p = Position(user="alice")
        p.add_collateral("DOGE", 5)
        p.add_collateral("DOGE", 7)
        assert p.collateral == {"DOGE": 12}

    def test_collateral_underflow_raises(self) -> None:
        p = Position(user="alice", collateral={"DOGE": 5})
        with pytest.raises(InsufficientCollateral):
            p.remove_collateral("DOGE", 6)
        assert p.collateral["DOGE"] == 5

    def test_debt_underflow_raises(self) -> None:
        p = Position(user="alice", debt={"USDC": 5})
        with pytest.raises(InvalidAmount):
            p.remove_debt("USDC", 6)
        assert p.debt["USDC"] == 5

    def test_remove_to_zero_keeps_entry(self) -> None:
        p = Position(user="alice", debt={"USDC": 5})
        p.remove_debt("USDC", 5)
        assert p.debt == {"USDC": 0}


class TestLiquidationQuote:
    def test_discrepancy(self) -> None:
        q = LiquidationQuote("USDC", "DOGE", 10, executed_seize=18, bonus_seize=10)
        assert q.discrepancy == 8
