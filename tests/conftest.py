"""Shared test fixtures and sample data."""
from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from lending_engine.config import (
    AppConfig,
    EmailConfig,
    EngineConfig,
    MonitorConfig,
    NotificationsConfig,
    RateModelConfig,
    SeedAssetConfig,
    StorageConfig,
    TelegramConfig,
    ThresholdsConfig,
)
from lending_engine.custody import InMemoryVault
from lending_engine.events import EventLog
from lending_engine.services.engine import LendingEngine

ADMIN = "admin"
START_TIME = 1_700_000_000
ONE_DOLLAR = 1_000_000


class FakeClock:
    """Manually advanced unix-seconds clock."""

    def __init__(self, now: int = START_TIME) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += seconds


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def engine_config() -> EngineConfig:
    return EngineConfig(
        admin=ADMIN,
        seed_asset=SeedAssetConfig(
            symbol="DOGE",
            ltv_ratio=500,
            liquidation_threshold=8000,
            pair_id="DOGE/USD",
            initial_price=ONE_DOLLAR,
        ),
        rate_models={"DOGE": RateModelConfig(base_rate=200, slope1=400, slope2=7500)},
    )


@pytest.fixture()
def sample_app_config(engine_config: EngineConfig, tmp_path: Path) -> AppConfig:
    return AppConfig(
        engine=engine_config,
        storage=StorageConfig(state_path=str(tmp_path / "state.json")),
        monitor=MonitorConfig(
            check_interval_minutes=5,
            thresholds=ThresholdsConfig(ltv_warning_bps=400, ltv_critical_bps=500),
        ),
        notifications=NotificationsConfig(
            telegram=TelegramConfig(
                enabled=True,
                alert_bot_token="fake-alert-token",
                log_bot_token="fake-log-token",
                chat_id="12345",
            ),
            email=EmailConfig(enabled=False),
        ),
    )


# ---------------------------------------------------------------------------
# Engine fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def vault() -> InMemoryVault:
    v = InMemoryVault()
    for symbol in ("DOGE", "USDC"):
        v.register_token(symbol)
        v.seed_reserve(symbol, 10_000_000_000)
    v.credit("alice", "DOGE", 5_000_000_000)
    v.credit("alice", "USDC", 1_000_000_000)
    v.credit("bob", "USDC", 1_000_000_000)
    return v


@pytest.fixture()
def event_log() -> EventLog:
    return EventLog()


@pytest.fixture()
def engine(
    engine_config: EngineConfig,
    vault: InMemoryVault,
    clock: FakeClock,
    event_log: EventLog,
) -> LendingEngine:
    """Initialized engine with DOGE (seed) and USDC registered at $1.00."""
    e = LendingEngine(engine_config, vault, clock=clock)
    e.initialize(ADMIN)
    e.add_asset(ADMIN, "USDC", 7500, 8500, "USDC/USD", ONE_DOLLAR)
    e.events.subscribe(event_log)
    return e


@pytest.fixture()
def fresh_engine(
    engine_config: EngineConfig, vault: InMemoryVault, clock: FakeClock
) -> LendingEngine:
    """Engine whose pool has not been initialized yet."""
    return LendingEngine(engine_config, vault, clock=clock)


@pytest.fixture()
def underwater_engine(engine: LendingEngine) -> LendingEngine:
    """alice: 1,000,000,000 DOGE collateral, 50,000,000 USDC debt, DOGE at $0.05.

    Health factor on USDC/DOGE is 8000bp.
    """
    engine.deposit("alice", "DOGE", 1_000_000_000)
    engine.borrow("alice", "USDC", 50_000_000)
    engine.update_asset_price(ADMIN, "DOGE", 50_000)
    return engine


# ---------------------------------------------------------------------------
# Config YAML fixture
# ---------------------------------------------------------------------------

SAMPLE_YAML = textwrap.dedent("""\
    engine:
      admin: "admin"
      price_staleness_seconds: 300
      max_ltv_bps: 500
      liquidation_bonus_bps: 500
      optimal_utilization_bps: 8000
      rate_recompute_seconds: 1
      seed_asset:
        symbol: DOGE
        ltv_ratio: 500
        liquidation_threshold: 8000
        pair_id: "DOGE/USD"
        initial_price: 1000000
      rate_models:
        DOGE: {base_rate: 200, slope1: 400, slope2: 7500}
    storage:
      state_path: "state.json"
    monitor:
      check_interval_minutes: 5
      thresholds:
        ltv_warning_bps: 400
        ltv_critical_bps: 500
    notifications:
      telegram:
        enabled: true
        alert_bot_token: "tok1"
        log_bot_token: "tok2"
        chat_id: "999"
      email:
        enabled: false
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file
