"""
Chat-Bot API Client

Minimal async transport for the Telegram Bot API over httpx. One instance
is shared by the notifier and the chat ingress; httpx.AsyncClient pools
connections and is safe for concurrent requests from the same event loop.

Every call returns the decoded ``result`` field, or raises ChatError.
Error messages never include the request URL, which embeds the bot token.
"""

from typing import Any

import httpx

from janus.common.exceptions import ChatError
from janus.common.logging_setup import get_service_logger

logger = get_service_logger("chat.client")

DEFAULT_API_URL = "https://api.telegram.org"
REQUEST_TIMEOUT_S = 10.0
LONG_POLL_TIMEOUT_S = 60


class ChatClient:
    """Telegram Bot API client"""

    def __init__(
        self,
        token: str,
        api_url: str = DEFAULT_API_URL,
        timeout: float = REQUEST_TIMEOUT_S,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        if not token:
            raise ChatError("bot token is empty")

        self.timeout = timeout
        self._client = httpx.AsyncClient(
            base_url=f"{api_url.rstrip('/')}/bot{token}/",
            timeout=timeout,
            transport=transport,
        )
        self.username: str | None = None

    async def _call(
        self,
        method: str,
        payload: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> Any:
        """POST a Bot API method and unwrap the response envelope"""
        try:
            response = await self._client.post(
                method,
                json=payload or {},
                timeout=timeout if timeout is not None else self.timeout,
            )
        except httpx.TimeoutException as e:
            raise ChatError(f"{method} timed out ({type(e).__name__})", method=method) from e
        except httpx.HTTPError as e:
            raise ChatError(f"{method} transport error ({type(e).__name__})", method=method) from e

        try:
            body = response.json()
        except ValueError:
            raise ChatError(
                f"{method} returned non-JSON response (HTTP {response.status_code})",
                method=method,
                status_code=response.status_code,
            ) from None

        if response.status_code != 200 or not body.get("ok"):
            description = body.get("description", "no description")
            raise ChatError(
                f"{method} failed (HTTP {response.status_code}): {description}",
                method=method,
                status_code=response.status_code,
            )

        return body.get("result")

    async def get_me(self) -> dict:
        """Identify the bot; used as the startup connectivity check"""
        me = await self._call("getMe")
        self.username = me.get("username")
        logger.info(f"Chat bot initialised: @{self.username}")
        return me

    async def get_updates(
        self,
        offset: int | None = None,
        timeout: int = LONG_POLL_TIMEOUT_S,
    ) -> list[dict]:
        """Long-poll for updates newer than offset"""
        payload: dict[str, Any] = {
            "timeout": timeout,
            "allowed_updates": ["message", "callback_query"],
        }
        if offset is not None:
            payload["offset"] = offset
        # The HTTP timeout must outlast the server-side long poll
        return await self._call("getUpdates", payload, timeout=timeout + self.timeout) or []

    async def send_message(
        self,
        chat_id: int,
        text: str,
        parse_mode: str | None = "Markdown",
        reply_markup: dict | None = None,
    ) -> dict:
        """Send a text message, optionally with an inline keyboard"""
        payload: dict[str, Any] = {"chat_id": chat_id, "text": text}
        if parse_mode:
            payload["parse_mode"] = parse_mode
        if reply_markup:
            payload["reply_markup"] = reply_markup
        return await self._call("sendMessage", payload)

    async def answer_callback_query(
        self,
        callback_query_id: str,
        text: str | None = None,
        show_alert: bool = False,
    ) -> bool:
        """Acknowledge an inline button press"""
        payload: dict[str, Any] = {"callback_query_id": callback_query_id}
        if text:
            payload["text"] = text
            payload["show_alert"] = show_alert
        return bool(await self._call("answerCallbackQuery", payload))

    async def set_my_commands(self, commands: list[tuple[str, str]]) -> bool:
        """Register the slash-command menu shown by chat clients"""
        payload = {
            "commands": [
                {"command": command, "description": description}
                for command, description in commands
            ]
        }
        return bool(await self._call("setMyCommands", payload))

    async def close(self) -> None:
        await self._client.aclose()
