"""JSON snapshot persistence for pool, rate models and vault state."""
from __future__ import annotations

import json
import logging
import os
from collections.abc import Callable
from dataclasses import asdict
from pathlib import Path
from typing import Any

from .config import EngineConfig
from .core import LendingPool, RateCurveEngine
from .custody import InMemoryVault
from .models import AssetConfig, Position, RateModel
from .services.engine import LendingEngine

logger = logging.getLogger(__name__)

STATE_VERSION = 1


def dump_state(engine: LendingEngine, vault: InMemoryVault) -> dict[str, Any]:
    pool = engine.pool
    return {
        "version": STATE_VERSION,
        "pool": {
            "admin": pool.admin,
            "initialized": pool.initialized,
            "active_assets": list(pool.active_assets),
            "assets": {s: asdict(c) for s, c in pool.assets.items()},
            "positions": {u: asdict(p) for u, p in pool.positions.items()},
        },
        "rates": {s: asdict(m) for s, m in engine.rates.models.items()},
        "vault": vault.to_dict(),
    }


def restore_state(
    data: dict[str, Any],
    config: EngineConfig,
    clock: Callable[[], int] | None = None,
) -> tuple[LendingEngine, InMemoryVault]:
    version = data.get("version")
    if version != STATE_VERSION:
        raise ValueError(f"Unsupported state version: {version!r}")

    raw_pool = data["pool"]
    if raw_pool["admin"] != config.admin:
        raise ValueError(
            f"State admin {raw_pool['admin']!r} does not match configured admin {config.admin!r}"
        )
    pool = LendingPool(raw_pool["admin"], clock)
    pool.initialized = bool(raw_pool["initialized"])
    pool.active_assets = list(raw_pool["active_assets"])
    pool.assets = {s: AssetConfig(**c) for s, c in raw_pool["assets"].items()}
    pool.positions = {
        user: Position(
            user=p["user"],
            collateral={k: int(v) for k, v in p["collateral"].items()},
            debt={k: int(v) for k, v in p["debt"].items()},
            last_update=int(p["last_update"]),
        )
        for user, p in raw_pool["positions"].items()
    }

    rates = RateCurveEngine(
        pool.clock,
        optimal_utilization=config.optimal_utilization_bps,
        recompute_seconds=config.rate_recompute_seconds,
    )
    for symbol, m in data.get("rates", {}).items():
        rates.models[symbol] = RateModel(**m)

    vault = InMemoryVault.from_dict(data.get("vault", {}))
    engine = LendingEngine(config, vault, pool=pool, rates=rates)
    return engine, vault


def save_state(path: str | Path, engine: LendingEngine, vault: InMemoryVault) -> None:
    """Write the snapshot to ``path`` via a temp file and atomic rename."""
    path = Path(path)
    tmp = path.with_suffix(path.suffix + ".tmp")
    with open(tmp, "w") as f:
        json.dump(dump_state(engine, vault), f, indent=2, sort_keys=True)
    os.replace(tmp, path)
    logger.debug("State saved to %s", path)


def load_state(
    path: str | Path,
    config: EngineConfig,
    clock: Callable[[], int] | None = None,
) -> tuple[LendingEngine, InMemoryVault]:
    """Load a snapshot, or start an empty engine if ``path`` does not exist."""
    path = Path(path)
    if not path.exists():
        logger.info("No state at %s, starting empty", path)
        vault = InMemoryVault()
        return LendingEngine(config, vault, clock=clock), vault

    with open(path) as f:
        data = json.load(f)
    logger.debug("State loaded from %s", path)
    return restore_state(data, config, clock)
