"""Post-commit event hook.

Events are published only after a transaction has been applied. A failing
subscriber is logged and skipped; it never affects the engine state or the
caller.
"""
from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Union

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PoolInitialized:
    admin: str
    seed_symbol: str


@dataclass(frozen=True)
class AssetAdded:
    symbol: str
    ltv_ratio: int
    liquidation_threshold: int
    pair_id: str
    price: int


@dataclass(frozen=True)
class PriceUpdated:
    symbol: str
    price: int
    timestamp: int


@dataclass(frozen=True)
class Deposited:
    user: str
    symbol: str
    amount: int


@dataclass(frozen=True)
class Borrowed:
    user: str
    symbol: str
    amount: int


@dataclass(frozen=True)
class Liquidated:
    liquidator: str
    user: str
    debt_symbol: str
    collateral_symbol: str
    repay_amount: int
    seized_amount: int


Event = Union[PoolInitialized, AssetAdded, PriceUpdated, Deposited, Borrowed, Liquidated]
Subscriber = Callable[[Event], None]


class EventBus:
    """Synchronous fan-out of engine events to subscribers."""

    def __init__(self) -> None:
        self._subscribers: list[Subscriber] = []

    def subscribe(self, callback: Subscriber) -> None:
        if callback not in self._subscribers:
            self._subscribers.append(callback)

    def unsubscribe(self, callback: Subscriber) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def publish(self, event: Event) -> None:
        for callback in list(self._subscribers):
            try:
                callback(event)
            except Exception:
                logger.exception(
                    "Event subscriber %r failed on %s", callback, type(event).__name__
                )


class EventLog:
    """Subscriber that keeps every event it receives, in order."""

    def __init__(self) -> None:
        self.events: list[Event] = []

    def __call__(self, event: Event) -> None:
        self.events.append(event)

    def of_type(self, kind: type) -> list[Event]:
        return [e for e in self.events if isinstance(e, kind)]
