"""Health monitoring — scans every position and alerts on risky ones."""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime, timezone

from ..config import AppConfig
from ..constants import PRICE_SCALE
from ..errors import StalePrice
from ..interfaces.notifier import Notifier
from ..models import LiquidationInfo, PositionReport
from ..notifications import EmailNotifier, TelegramNotifier
from .engine import LendingEngine

logger = logging.getLogger(__name__)

STATUS_HEALTHY = "✅ Healthy"
STATUS_WARNING = "⚠️ WARNING"
STATUS_CRITICAL = "🚨 CRITICAL"
STATUS_LIQUIDATABLE = "🚨 LIQUIDATABLE"
STATUS_STALE = "⏳ STALE PRICE"


class HealthMonitor:
    """Orchestrates position health checks and alerting over one engine.

    ``reload``, when given, returns a fresh engine (typically read back from
    the state file) and is called before every cycle of :meth:`run_continuous`.
    """

    def __init__(
        self,
        engine: LendingEngine,
        config: AppConfig,
        notifiers: list[Notifier] | None = None,
        reload: Callable[[], LendingEngine] | None = None,
    ) -> None:
        self._engine = engine
        self._reload = reload
        self._config = config
        self._thresholds = config.monitor.thresholds

        if notifiers is None:
            notifiers = []
            if config.notifications.telegram.enabled:
                notifiers.append(TelegramNotifier(config.notifications.telegram))
            if config.notifications.email.enabled:
                notifiers.append(EmailNotifier(config.notifications.email))
        self._notifiers: list[Notifier] = notifiers

    # ------------------------------------------------------------------
    # Formatting helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _format_value(value: int) -> str:
        return f"{value / PRICE_SCALE:,.2f}"

    @staticmethod
    def _format_user(user: str) -> str:
        if len(user) > 16:
            return f"{user[:10]}...{user[-6:]}"
        return user

    @staticmethod
    def _now_str() -> str:
        return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")

    @staticmethod
    def _holdings(entries: tuple[tuple[str, int], ...]) -> str:
        held = [f"{amount:,} {symbol}" for symbol, amount in entries if amount]
        return ", ".join(held) if held else "—"

    def _get_status(
        self, report: PositionReport, liquidatable: list[LiquidationInfo]
    ) -> str:
        if liquidatable:
            return STATUS_LIQUIDATABLE
        if report.debt_value and report.ltv_bps >= self._thresholds.ltv_critical_bps:
            return STATUS_CRITICAL
        if report.debt_value and report.ltv_bps >= self._thresholds.ltv_warning_bps:
            return STATUS_WARNING
        return STATUS_HEALTHY

    def _build_log_message(self, report: PositionReport, status: str) -> str:
        return (
            f"📊 {self._format_user(report.user)}\n"
            f"\n"
            f"{status}\n"
            f"\n"
            f"Collateral: {self._holdings(report.collateral)} — "
            f"{self._format_value(report.collateral_value)}\n"
            f"Debt: {self._holdings(report.debt)} — {self._format_value(report.debt_value)}\n"
            f"LTV: {report.ltv_bps}bp\n"
            f"\n"
            f"{self._now_str()} UTC"
        )

    def _build_alert(
        self,
        report: PositionReport,
        status: str,
        liquidatable: list[LiquidationInfo],
    ) -> str:
        lines = [
            f"{status} — LTV {report.ltv_bps}bp",
            "",
            f"User: {report.user}",
            "",
            f"Collateral: {self._holdings(report.collateral)}",
            f"  {self._format_value(report.collateral_value)}",
            "",
            f"Debt: {self._holdings(report.debt)}",
            f"  {self._format_value(report.debt_value)}",
        ]
        for info in liquidatable:
            lines.append(
                f"Liquidatable: {info.debt_symbol}/{info.collateral_symbol} "
                f"HF {info.health_factor}bp"
            )
        lines += ["", f"{self._now_str()} UTC"]
        return "\n".join(lines)

    # ------------------------------------------------------------------
    # Notification dispatch
    # ------------------------------------------------------------------

    async def _send_log(self, message: str, silent: bool = False) -> None:
        for notifier in self._notifiers:
            try:
                await notifier.send_log(message, silent=silent)
            except Exception as e:
                logger.error("Notifier send_log failed: %s", e)

    async def _send_alert(self, message: str, subject: str = "") -> None:
        for notifier in self._notifiers:
            try:
                await notifier.send_alert(message, subject=subject)
            except Exception as e:
                logger.error("Notifier send_alert failed: %s", e)

    # ------------------------------------------------------------------
    # Core workflows
    # ------------------------------------------------------------------

    def liquidatable_pairs(self, report: PositionReport) -> list[LiquidationInfo]:
        """Every (debt, collateral) pair of the user that can be liquidated now."""
        found: list[LiquidationInfo] = []
        for debt_symbol, debt_amount in report.debt:
            if not debt_amount:
                continue
            for collateral_symbol, _ in report.collateral:
                info = self._engine.get_liquidation_info(
                    report.user, debt_symbol, collateral_symbol
                )
                if info.liquidatable:
                    found.append(info)
        return found

    def assess(self, user: str) -> tuple[PositionReport | None, str, list[LiquidationInfo]]:
        """(report, status, liquidatable pairs); report is None on a stale price."""
        try:
            report = self._engine.get_account_summary(user)
            liquidatable = self.liquidatable_pairs(report)
        except StalePrice as e:
            logger.warning("Cannot value %s: %s", user, e)
            return None, STATUS_STALE, []
        return report, self._get_status(report, liquidatable), liquidatable

    async def check_and_alert(self) -> None:
        """Check every position and send alerts when needed."""
        users = self._engine.users()
        if not users:
            await self._send_log(f"📊 No positions open.\n\n{self._now_str()} UTC")
            return

        for user in users:
            report, status, liquidatable = self.assess(user)

            if report is None:
                await self._send_alert(
                    f"{STATUS_STALE}\n\nUser: {user}\nPrices are outside the staleness window.",
                    subject="⏳ Stale price",
                )
                continue

            logger.info(
                "Position — %s · Collateral: %d  Debt: %d  LTV: %dbp  %s",
                user,
                report.collateral_value,
                report.debt_value,
                report.ltv_bps,
                status,
            )
            await self._send_log(self._build_log_message(report, status), silent=False)

            if status == STATUS_LIQUIDATABLE:
                await self._send_alert(
                    self._build_alert(report, status, liquidatable),
                    subject="🚨 LIQUIDATABLE position",
                )
            elif status == STATUS_CRITICAL:
                await self._send_alert(
                    self._build_alert(report, status, liquidatable),
                    subject="🚨 CRITICAL: Liquidation Risk!",
                )
            elif status == STATUS_WARNING:
                await self._send_alert(
                    self._build_alert(report, status, liquidatable),
                    subject="⚠️ WARNING: High LTV",
                )

    async def generate_daily_report(self) -> None:
        """Generate and send one report covering every position."""
        sections: list[str] = []

        for user in self._engine.users():
            report, status, _ = self.assess(user)
            if report is None:
                sections.append(f"{user} · {status}")
                continue
            sections.append(
                f"{user} · {status}\n"
                f"  Collateral: {self._format_value(report.collateral_value)}\n"
                f"  Debt: {self._format_value(report.debt_value)}\n"
                f"  LTV: {report.ltv_bps}bp"
            )

        body = "\n\n".join(sections) if sections else "No positions open."
        report_msg = (
            f"📋 Daily Lending Pool Report\n"
            f"\n"
            f"{body}\n"
            f"\n"
            f"{self._now_str()} UTC"
        )

        await self._send_alert(report_msg)
        logger.info("Daily report sent")

    async def run_continuous(self, check_interval_minutes: int | None = None) -> None:
        """Run continuous monitoring loop."""
        interval = check_interval_minutes or self._config.monitor.check_interval_minutes
        logger.info(
            "Starting continuous monitoring (checking every %d minutes)", interval
        )

        while True:
            try:
                if self._reload is not None:
                    self._engine = self._reload()
                await self.check_and_alert()
                await asyncio.sleep(interval * 60)
            except Exception as e:
                logger.error("Error in monitoring loop: %s", e)
                await asyncio.sleep(60)
