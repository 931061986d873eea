"""
Chat Ingress

Long-polls the chat-bot API and turns operator interactions into commands
on the rendezvous store.

Flow:
1. getUpdates long poll (60s), tracking the update offset
2. Reject any sender whose user id differs from the configured chat_id
3. Slash commands render the menu / help / status, or enqueue a command
4. Inline button callbacks enqueue shutdown / switch, or reply with status

Writes use the same semantics as the HTTP ingress: SET with no expiry on
the command key, last writer wins.
"""

import asyncio

from janus.common.commands import Command
from janus.common.exceptions import ChatError, RendezvousError
from janus.common.host import HostFacts
from janus.common.logging_setup import get_service_logger, log_command

from ..rendezvous.store import RendezvousStore
from .client import ChatClient, LONG_POLL_TIMEOUT_S
from . import menu

logger = get_service_logger("chat.ingress")


def parse_slash_command(text: str | None) -> str | None:
    """
    Extract the command name from a message.

    "/start", "/start@janus_bot" and "/start extra args" all give "start";
    text that is not a slash command gives None.
    """
    if not text or not text.startswith("/"):
        return None
    head = text.split(maxsplit=1)[0][1:]
    name = head.split("@", 1)[0]
    return name.lower() or None


class ChatIngress:
    """Inbound command channel over the chat bot"""

    ERROR_BACKOFF_SECONDS = 5.0

    def __init__(
        self,
        client: ChatClient,
        store: RendezvousStore,
        command_key: str,
        host_facts: HostFacts,
        authorized_id: int,
        poll_timeout: int = LONG_POLL_TIMEOUT_S,
    ):
        self.client = client
        self.store = store
        self.command_key = command_key
        self.host_facts = host_facts
        self.authorized_id = authorized_id
        self.poll_timeout = poll_timeout

        self._offset: int | None = None
        self._running = False
        self._task: asyncio.Task | None = None

    async def start(self) -> None:
        """Register the slash-command menu and start polling"""
        try:
            await self.client.set_my_commands(menu.BOT_COMMANDS)
        except ChatError as e:
            logger.warning(f"Failed to register bot commands: {e.message}")

        self._running = True
        self._task = asyncio.create_task(self._poll_loop())
        logger.info("Chat ingress started")

    async def stop(self) -> None:
        """Abandon the long poll"""
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("Chat ingress stopped")

    async def _poll_loop(self) -> None:
        while self._running:
            try:
                await self.poll_once()
            except ChatError as e:
                logger.error(f"Error polling chat updates: {e.message}")
                await asyncio.sleep(self.ERROR_BACKOFF_SECONDS)
            except Exception as e:
                logger.error(f"Unexpected error in chat poll loop: {e}")
                await asyncio.sleep(self.ERROR_BACKOFF_SECONDS)

    async def poll_once(self) -> int:
        """Fetch and handle one batch of updates; returns how many were handled"""
        updates = await self.client.get_updates(offset=self._offset, timeout=self.poll_timeout)
        for update in updates:
            # Advance first so a failing update is never redelivered
            self._offset = update["update_id"] + 1
            try:
                await self.handle_update(update)
            except (ChatError, RendezvousError) as e:
                logger.error(
                    f"Error handling update {update['update_id']}: {e.message}",
                    extra={"update_id": update["update_id"]},
                )
        return len(updates)

    def is_authorized(self, user: dict | None) -> bool:
        return bool(user) and user.get("id") == self.authorized_id

    async def handle_update(self, update: dict) -> None:
        if "message" in update:
            await self._handle_message(update["message"])
        elif "callback_query" in update:
            await self._handle_callback(update["callback_query"])

    async def _handle_message(self, message: dict) -> None:
        chat_id = message["chat"]["id"]
        sender = message.get("from")

        if not self.is_authorized(sender):
            logger.warning(
                "Rejected message from unauthorized user",
                extra={"user_id": (sender or {}).get("id")},
            )
            await self.client.send_message(chat_id, menu.UNAUTHORIZED_TEXT, parse_mode=None)
            return

        name = parse_slash_command(message.get("text"))

        if name in ("start", "menu"):
            await self.client.send_message(
                chat_id,
                menu.menu_text(self.host_facts),
                reply_markup=menu.main_menu_keyboard(self.host_facts),
            )
        elif name == "help":
            await self.client.send_message(chat_id, menu.help_text())
        elif name == menu.CALLBACK_STATUS:
            await self.client.send_message(chat_id, menu.status_text(self.host_facts))
        elif name in Command.tags():
            await self._enqueue(chat_id, Command(name))
        else:
            await self.client.send_message(chat_id, menu.UNKNOWN_COMMAND_TEXT, parse_mode=None)

    async def _handle_callback(self, callback: dict) -> None:
        callback_id = callback["id"]
        sender = callback.get("from")

        if not self.is_authorized(sender):
            logger.warning(
                "Rejected button press from unauthorized user",
                extra={"user_id": (sender or {}).get("id")},
            )
            await self.client.answer_callback_query(callback_id, menu.UNAUTHORIZED_TEXT, show_alert=True)
            return

        message = callback.get("message") or {}
        chat_id = message.get("chat", {}).get("id", self.authorized_id)
        data = callback.get("data")

        # Stop the client-side spinner before doing any work
        await self.client.answer_callback_query(callback_id)

        if data == menu.CALLBACK_STATUS:
            await self.client.send_message(chat_id, menu.status_text(self.host_facts))
        elif data in Command.tags():
            await self._enqueue(chat_id, Command(data))
        else:
            logger.warning(f"Ignoring unknown callback data: {data!r}")

    async def _enqueue(self, chat_id: int, command: Command) -> None:
        try:
            await self.store.put(self.command_key, command.value)
        except RendezvousError as e:
            logger.error(f"Failed to enqueue '{command.value}': {e.message}")
            await self.client.send_message(
                chat_id, menu.command_failed_text(command, e.message), parse_mode=None,
            )
            return

        log_command(logger, "chat", command.value)
        await self.client.send_message(chat_id, menu.command_sent_text(command, self.host_facts))
