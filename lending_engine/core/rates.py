"""RateCurveEngine — utilization-based borrow rate model.

Standalone: nothing in deposit, borrow or liquidation calls it, so accrued
interest never reaches a debt balance.
"""
from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable

from .. import calc
from ..constants import OPTIMAL_UTILIZATION, RATE_RECOMPUTE_SECONDS
from ..errors import AssetNotSupported
from ..models import RateModel

logger = logging.getLogger(__name__)


class RateCurveEngine:
    """Per-asset two-segment rate curves, recomputed at most once per interval."""

    def __init__(
        self,
        clock: Callable[[], int] | None = None,
        optimal_utilization: int = OPTIMAL_UTILIZATION,
        recompute_seconds: int = RATE_RECOMPUTE_SECONDS,
    ) -> None:
        self._clock: Callable[[], int] = clock or (lambda: int(time.time()))
        self._optimal = optimal_utilization
        self._recompute_seconds = recompute_seconds
        self._models: dict[str, RateModel] = {}
        self._lock = threading.RLock()

    @property
    def models(self) -> dict[str, RateModel]:
        return self._models

    def set_model(
        self, symbol: str, base_rate: int, slope1: int, slope2: int
    ) -> RateModel:
        """Create or re-parameterize the curve for ``symbol``; ``current_rate`` is kept."""
        with self._lock:
            model = self._models.get(symbol)
            if model is None:
                model = RateModel(
                    symbol=symbol, base_rate=base_rate, slope1=slope1, slope2=slope2
                )
                self._models[symbol] = model
            else:
                model.base_rate = base_rate
                model.slope1 = slope1
                model.slope2 = slope2
        logger.info(
            "Rate model for %s: base=%d slope1=%d slope2=%d",
            symbol, base_rate, slope1, slope2,
        )
        return model

    def get_model(self, symbol: str) -> RateModel:
        model = self._models.get(symbol)
        if model is None:
            raise AssetNotSupported(f"no rate model for {symbol!r}")
        return model

    def update_rate(self, symbol: str, total_borrows: int, total_supply: int) -> int:
        """Recompute and return the current rate for ``symbol`` in basis points.

        Within ``recompute_seconds`` of the last update the cached rate is
        returned unchanged.
        """
        with self._lock:
            model = self.get_model(symbol)
            now = self._clock()
            if now - model.last_update < self._recompute_seconds:
                return model.current_rate

            util = calc.utilization(total_borrows, total_supply)
            model.current_rate = calc.curve_rate(
                util, model.base_rate, model.slope1, model.slope2, self._optimal
            )
            model.last_update = now

        logger.debug(
            "Rate for %s: utilization=%dbp rate=%dbp", symbol, util, model.current_rate
        )
        return model.current_rate
