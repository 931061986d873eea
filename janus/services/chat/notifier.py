"""
Notifier

Fire-and-forget operator notifications to the configured chat.

Delivery is attempted up to three times with a 2-second gap; after that
the failure is logged and swallowed. Callers never see a chat error, and a
dead chat service costs at most 3 x (request timeout + 2s) per message.
"""

import asyncio

from janus.common.exceptions import ChatError
from janus.common.host import HostFacts
from janus.common.logging_setup import get_service_logger
from janus.common.timestamp import format_display_time

from .client import ChatClient
from .menu import escape_markdown

logger = get_service_logger("chat.notifier")


class Notifier:
    """
    Outbound chat notifications.

    A Notifier without a client is a silent no-op, which is how the agent
    runs when chat is disabled or failed to initialise.
    """

    MAX_ATTEMPTS = 3
    RETRY_DELAY_SECONDS = 2.0

    ICON_ALERT = "⚠️"
    ICON_INFO = "ℹ️"
    ICON_SUCCESS = "✅"
    ICON_ERROR = "❌"

    def __init__(self, client: ChatClient | None = None, chat_id: int | None = None):
        self.client = client
        self.chat_id = chat_id

    @property
    def enabled(self) -> bool:
        return self.client is not None and self.chat_id is not None

    async def send(self, text: str) -> bool:
        """
        Send a Markdown message with bounded retry.

        Returns:
            True if delivered, False if disabled or every attempt failed
        """
        if not self.enabled:
            return False

        for attempt in range(1, self.MAX_ATTEMPTS + 1):
            try:
                await self.client.send_message(self.chat_id, text)
                return True
            except ChatError as e:
                logger.warning(
                    f"Notification failed (attempt {attempt}/{self.MAX_ATTEMPTS}): {e.message}",
                    extra={"attempt": attempt},
                )
                if attempt < self.MAX_ATTEMPTS:
                    await asyncio.sleep(self.RETRY_DELAY_SECONDS)

        logger.error(f"Notification dropped after {self.MAX_ATTEMPTS} attempts")
        return False

    @staticmethod
    def format_notification(icon: str, title: str, content: str) -> str:
        return f"{icon} *{title}*\n\n{content}\n\n_{format_display_time()}_"

    async def notify(self, icon: str, title: str, content: str) -> bool:
        """Titled notification with icon prefix and trailing timestamp"""
        return await self.send(self.format_notification(icon, title, content))

    async def alert(self, content: str) -> bool:
        return await self.notify(self.ICON_ALERT, "Alert", content)

    async def info(self, content: str) -> bool:
        return await self.notify(self.ICON_INFO, "Info", content)

    async def success(self, content: str) -> bool:
        return await self.notify(self.ICON_SUCCESS, "Success", content)

    async def error(self, content: str) -> bool:
        return await self.notify(self.ICON_ERROR, "Error", content)

    async def online(self, facts: HostFacts) -> bool:
        """Startup announcement"""
        return await self.send(
            "🖥️ *Janus Online*\n"
            f"OS: {facts.os.value}\n"
            f"IP: {escape_markdown(facts.private_ip or 'unknown')}\n"
            f"User: {escape_markdown(facts.user or 'unknown')}\n"
            f"Time: {format_display_time()}"
        )
