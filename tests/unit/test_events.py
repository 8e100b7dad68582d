"""Unit tests for post-commit event publication."""
from __future__ import annotations

import logging

import pytest

from lending_engine.errors import InvalidAmount, UserNoPosition
from lending_engine.events import (
    AssetAdded,
    Borrowed,
    Deposited,
    EventBus,
    EventLog,
    PoolInitialized,
    PriceUpdated,
)
from lending_engine.services.engine import LendingEngine


class TestEventBus:
    def test_fans_out_in_subscription_order(self) -> None:
        bus = EventBus()
        seen = []
        bus.subscribe(lambda e: seen.append(("a", e)))
        bus.subscribe(lambda e: seen.append(("b", e)))
        event = Deposited("alice", "DOGE", 1)
        bus.publish(event)
        assert seen == [("a", event), ("b", event)]

    def test_unsubscribe(self) -> None:
        bus = EventBus()
        log = EventLog()
        bus.subscribe(log)
        bus.unsubscribe(log)
        bus.publish(Deposited("alice", "DOGE", 1))
        assert log.events == []

    def test_failing_subscriber_is_logged_and_skipped(self, caplog) -> None:
        bus = EventBus()
        log = EventLog()

        def broken(_event):
            raise RuntimeError("boom")

        bus.subscribe(broken)
        bus.subscribe(log)
        with caplog.at_level(logging.ERROR, logger="lending_engine.events"):
            bus.publish(Deposited("alice", "DOGE", 1))
        assert len(log.events) == 1
        assert "Event subscriber" in caplog.text


class TestEngineEvents:
    def test_initialize_publishes_seed(
        self, fresh_engine: LendingEngine, event_log: EventLog
    ) -> None:
        fresh_engine.events.subscribe(event_log)
        fresh_engine.initialize("admin")
        assert event_log.events == [
            PoolInitialized(admin="admin", seed_symbol="DOGE"),
            AssetAdded("DOGE", 500, 8000, "DOGE/USD", 1_000_000),
        ]

    def test_operations_publish_after_commit(
        self, engine: LendingEngine, event_log: EventLog, clock
    ) -> None:
        engine.deposit("alice", "DOGE", 1_000_000_000)
        engine.borrow("alice", "USDC", 1_000_000)
        engine.update_asset_price("admin", "DOGE", 900_000)
        assert event_log.events == [
            Deposited("alice", "DOGE", 1_000_000_000),
            Borrowed("alice", "USDC", 1_000_000),
            PriceUpdated("DOGE", 900_000, clock.now),
        ]

    def test_failed_operations_publish_nothing(
        self, engine: LendingEngine, event_log: EventLog
    ) -> None:
        with pytest.raises(InvalidAmount):
            engine.deposit("alice", "DOGE", 0)
        with pytest.raises(UserNoPosition):
            engine.borrow("alice", "USDC", 1)
        assert event_log.events == []

    def test_noop_updates_publish_nothing(
        self, engine: LendingEngine, event_log: EventLog
    ) -> None:
        assert engine.add_asset("admin", "USDC", 1, 1, "X", 1) is False
        assert engine.update_asset_price("admin", "NOPE", 1) is False
        assert event_log.events == []

    def test_broken_subscriber_does_not_undo_operation(self, engine: LendingEngine) -> None:
        def broken(_event):
            raise RuntimeError("boom")

        engine.events.subscribe(broken)
        assert engine.deposit("alice", "DOGE", 10) == 10
        assert engine.get_user_position("alice", "DOGE") == (10, 0)
