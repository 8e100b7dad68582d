"""Telegram notifier for health-monitor messages."""
import html
import logging
import ssl

import aiohttp
import certifi

from ..config import TelegramConfig

logger = logging.getLogger(__name__)

_API_URL = "https://api.telegram.org/bot{token}/sendMessage"


class TelegramNotifier:
    """Alerts go to the alert bot (audible), routine logs to the log bot."""

    def __init__(self, config: TelegramConfig) -> None:
        self.alert_bot_token = config.alert_bot_token
        self.log_bot_token = config.log_bot_token
        self.chat_id = config.chat_id

    @staticmethod
    def _render(message: str, subject: str = "") -> str:
        body = html.escape(message)
        if subject:
            return f"<b>{html.escape(subject)}</b>\n\n{body}"
        return body

    async def _post(self, text: str, bot_token: str, silent: bool) -> bool:
        if not bot_token or not self.chat_id:
            logger.warning("Telegram credentials not configured")
            return False

        payload = {
            "chat_id": self.chat_id,
            "text": text,
            "parse_mode": "HTML",
            "disable_notification": silent,
        }

        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        async with aiohttp.ClientSession(connector=connector) as session:
            async with session.post(
                _API_URL.format(token=bot_token), json=payload
            ) as response:
                if response.status == 200:
                    return True
                logger.error("Telegram sendMessage failed: HTTP %s", response.status)
                return False

    async def send_alert(self, message: str, subject: str = "") -> bool:
        if await self._post(self._render(message, subject), self.alert_bot_token, silent=False):
            logger.info("Telegram alert sent")
            return True
        return False

    async def send_log(self, message: str, silent: bool = True) -> bool:
        if await self._post(self._render(message), self.log_bot_token, silent=silent):
            logger.debug("Telegram log sent")
            return True
        return False
