"""Configuration loader — reads config.yaml, interpolates env vars, validates."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from .constants import (
    BASIS_POINTS,
    LIQUIDATION_BONUS,
    MAX_LTV,
    OPTIMAL_UTILIZATION,
    PRICE_STALENESS_SECONDS,
    RATE_RECOMPUTE_SECONDS,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SeedAssetConfig:
    symbol: str = "DOGE"
    ltv_ratio: int = 500
    liquidation_threshold: int = 8000
    pair_id: str = "DOGE/USD"
    initial_price: int = 1_000_000


@dataclass(frozen=True)
class RateModelConfig:
    base_rate: int = 200
    slope1: int = 400
    slope2: int = 7500


@dataclass(frozen=True)
class EngineConfig:
    admin: str = ""
    price_staleness_seconds: int = PRICE_STALENESS_SECONDS
    max_ltv_bps: int = MAX_LTV
    liquidation_bonus_bps: int = LIQUIDATION_BONUS
    optimal_utilization_bps: int = OPTIMAL_UTILIZATION
    rate_recompute_seconds: int = RATE_RECOMPUTE_SECONDS
    seed_asset: SeedAssetConfig = field(default_factory=SeedAssetConfig)
    rate_models: dict[str, RateModelConfig] = field(default_factory=dict)


@dataclass(frozen=True)
class StorageConfig:
    state_path: str = "lending_state.json"


@dataclass(frozen=True)
class ThresholdsConfig:
    ltv_warning_bps: int = 400
    ltv_critical_bps: int = 500


@dataclass(frozen=True)
class MonitorConfig:
    check_interval_minutes: int = 15
    thresholds: ThresholdsConfig = field(default_factory=ThresholdsConfig)


@dataclass(frozen=True)
class TelegramConfig:
    enabled: bool = False
    alert_bot_token: str = ""
    log_bot_token: str = ""
    chat_id: str = ""


@dataclass(frozen=True)
class EmailConfig:
    enabled: bool = False
    alert_email: str = ""
    smtp_server: str = "smtp.gmail.com"
    smtp_port: int = 587
    sender_email: str = ""
    sender_password: str = ""


@dataclass(frozen=True)
class NotificationsConfig:
    telegram: TelegramConfig = field(default_factory=TelegramConfig)
    email: EmailConfig = field(default_factory=EmailConfig)


@dataclass(frozen=True)
class AppConfig:
    engine: EngineConfig = field(default_factory=EngineConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    monitor: MonitorConfig = field(default_factory=MonitorConfig)
    notifications: NotificationsConfig = field(default_factory=NotificationsConfig)


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _build_seed_asset(raw: dict[str, Any]) -> SeedAssetConfig:
    default = SeedAssetConfig()
    return SeedAssetConfig(
        symbol=str(raw.get("symbol", default.symbol)),
        ltv_ratio=int(raw.get("ltv_ratio", default.ltv_ratio)),
        liquidation_threshold=int(
            raw.get("liquidation_threshold", default.liquidation_threshold)
        ),
        pair_id=str(raw.get("pair_id", default.pair_id)),
        initial_price=int(raw.get("initial_price", default.initial_price)),
    )


def _build_rate_models(raw: dict[str, Any]) -> dict[str, RateModelConfig]:
    models: dict[str, RateModelConfig] = {}
    for symbol, cfg in raw.items():
        models[symbol] = RateModelConfig(
            base_rate=int(cfg.get("base_rate", 200)),
            slope1=int(cfg.get("slope1", 400)),
            slope2=int(cfg.get("slope2", 7500)),
        )
    return models


def _build_engine(raw: dict[str, Any]) -> EngineConfig:
    return EngineConfig(
        admin=str(raw.get("admin", "")),
        price_staleness_seconds=int(
            raw.get("price_staleness_seconds", PRICE_STALENESS_SECONDS)
        ),
        max_ltv_bps=int(raw.get("max_ltv_bps", MAX_LTV)),
        liquidation_bonus_bps=int(raw.get("liquidation_bonus_bps", LIQUIDATION_BONUS)),
        optimal_utilization_bps=int(
            raw.get("optimal_utilization_bps", OPTIMAL_UTILIZATION)
        ),
        rate_recompute_seconds=int(
            raw.get("rate_recompute_seconds", RATE_RECOMPUTE_SECONDS)
        ),
        seed_asset=_build_seed_asset(raw.get("seed_asset", {})),
        rate_models=_build_rate_models(raw.get("rate_models", {})),
    )


def _build_storage(raw: dict[str, Any]) -> StorageConfig:
    return StorageConfig(state_path=str(raw.get("state_path", "lending_state.json")))


def _build_thresholds(raw: dict[str, Any]) -> ThresholdsConfig:
    return ThresholdsConfig(
        ltv_warning_bps=int(raw.get("ltv_warning_bps", 400)),
        ltv_critical_bps=int(raw.get("ltv_critical_bps", 500)),
    )


def _build_monitor(raw: dict[str, Any]) -> MonitorConfig:
    return MonitorConfig(
        check_interval_minutes=int(raw.get("check_interval_minutes", 15)),
        thresholds=_build_thresholds(raw.get("thresholds", {})),
    )


def _build_notifications(raw: dict[str, Any]) -> NotificationsConfig:
    tg = raw.get("telegram", {})
    em = raw.get("email", {})
    return NotificationsConfig(
        telegram=TelegramConfig(
            enabled=bool(tg.get("enabled", False)),
            alert_bot_token=tg.get("alert_bot_token", ""),
            log_bot_token=tg.get("log_bot_token", ""),
            chat_id=str(tg.get("chat_id", "")),
        ),
        email=EmailConfig(
            enabled=bool(em.get("enabled", False)),
            alert_email=em.get("alert_email", ""),
            smtp_server=em.get("smtp_server", "smtp.gmail.com"),
            smtp_port=int(em.get("smtp_port", 587)),
            sender_email=em.get("sender_email", ""),
            sender_password=em.get("sender_password", ""),
        ),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate engine configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root (two levels up from this file).
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(__file__).resolve().parent.parent / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)

    cfg = AppConfig(
        engine=_build_engine(raw.get("engine", {})),
        storage=_build_storage(raw.get("storage", {})),
        monitor=_build_monitor(raw.get("monitor", {})),
        notifications=_build_notifications(raw.get("notifications", {})),
    )

    _validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def _check_bps(name: str, value: int) -> None:
    if not 0 <= value <= BASIS_POINTS:
        raise ValueError(f"{name} must be between 0 and {BASIS_POINTS} bp, got {value}")


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    engine = cfg.engine
    if not engine.admin:
        raise ValueError("engine.admin must be set")
    if engine.price_staleness_seconds <= 0:
        raise ValueError("engine.price_staleness_seconds must be positive")

    _check_bps("engine.max_ltv_bps", engine.max_ltv_bps)
    _check_bps("engine.liquidation_bonus_bps", engine.liquidation_bonus_bps)
    _check_bps("engine.optimal_utilization_bps", engine.optimal_utilization_bps)
    if engine.rate_recompute_seconds < 0:
        raise ValueError("engine.rate_recompute_seconds cannot be negative")

    seed = engine.seed_asset
    if not seed.symbol:
        raise ValueError("engine.seed_asset.symbol must be set")
    _check_bps("engine.seed_asset.ltv_ratio", seed.ltv_ratio)
    _check_bps("engine.seed_asset.liquidation_threshold", seed.liquidation_threshold)
    if seed.initial_price <= 0:
        raise ValueError("engine.seed_asset.initial_price must be positive")

    if cfg.monitor.check_interval_minutes <= 0:
        raise ValueError("monitor.check_interval_minutes must be positive")

    thresholds = cfg.monitor.thresholds
    _check_bps("monitor.thresholds.ltv_warning_bps", thresholds.ltv_warning_bps)
    _check_bps("monitor.thresholds.ltv_critical_bps", thresholds.ltv_critical_bps)
    if thresholds.ltv_warning_bps > thresholds.ltv_critical_bps:
        raise ValueError(
            "monitor.thresholds.ltv_warning_bps cannot exceed ltv_critical_bps"
        )
