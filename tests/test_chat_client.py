"""Tests for the Bot API client against a mocked transport."""

import json

import httpx
import pytest

from janus.common.exceptions import ChatError
from janus.services.chat.client import ChatClient

TOKEN = "123456:SECRET-TOKEN"


def make_client(handler):
    return ChatClient(TOKEN, transport=httpx.MockTransport(handler))


def ok(result):
    return httpx.Response(200, json={"ok": True, "result": result})


class TestChatClient:
    def test_empty_token_is_rejected(self):
        with pytest.raises(ChatError):
            ChatClient("")

    @pytest.mark.asyncio
    async def test_get_me_sets_username(self):
        requests = []

        def handler(request):
            requests.append(request)
            return ok({"id": 1, "is_bot": True, "username": "janus_bot"})

        client = make_client(handler)
        me = await client.get_me()
        await client.close()

        assert me["id"] == 1
        assert client.username == "janus_bot"
        assert requests[0].url.path == f"/bot{TOKEN}/getMe"

    @pytest.mark.asyncio
    async def test_send_message_payload(self):
        bodies = []

        def handler(request):
            bodies.append(json.loads(request.content))
            return ok({"message_id": 5})

        client = make_client(handler)
        keyboard = {"inline_keyboard": [[{"text": "x", "callback_data": "status"}]]}
        await client.send_message(42, "*hi*", reply_markup=keyboard)
        await client.send_message(42, "plain", parse_mode=None)
        await client.close()

        assert bodies[0] == {
            "chat_id": 42, "text": "*hi*", "parse_mode": "Markdown", "reply_markup": keyboard,
        }
        assert bodies[1] == {"chat_id": 42, "text": "plain"}

    @pytest.mark.asyncio
    async def test_get_updates_sends_offset_and_long_poll_timeout(self):
        captured = {}

        def handler(request):
            captured["body"] = json.loads(request.content)
            captured["timeout"] = request.extensions["timeout"]
            return ok([{"update_id": 9}])

        client = make_client(handler)
        updates = await client.get_updates(offset=9, timeout=60)
        await client.close()

        assert updates == [{"update_id": 9}]
        assert captured["body"]["offset"] == 9
        assert captured["body"]["timeout"] == 60
        assert captured["body"]["allowed_updates"] == ["message", "callback_query"]
        assert captured["timeout"]["read"] == 60 + client.timeout

    @pytest.mark.asyncio
    async def test_api_error_raises_without_token(self):
        def handler(request):
            return httpx.Response(401, json={"ok": False, "description": "Unauthorized"})

        client = make_client(handler)
        with pytest.raises(ChatError) as exc_info:
            await client.get_me()
        await client.close()

        assert exc_info.value.status_code == 401
        assert exc_info.value.method == "getMe"
        assert "Unauthorized" in exc_info.value.message
        assert TOKEN not in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_transport_error_raises_without_token(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = make_client(handler)
        with pytest.raises(ChatError) as exc_info:
            await client.send_message(1, "hi")
        await client.close()

        assert TOKEN not in str(exc_info.value)
        assert "ConnectError" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_non_json_response(self):
        def handler(request):
            return httpx.Response(502, text="<html>Bad Gateway</html>")

        client = make_client(handler)
        with pytest.raises(ChatError, match="non-JSON"):
            await client.answer_callback_query("cb-1")
        await client.close()

    @pytest.mark.asyncio
    async def test_set_my_commands_payload(self):
        bodies = []

        def handler(request):
            bodies.append(json.loads(request.content))
            return ok(True)

        client = make_client(handler)
        assert await client.set_my_commands([("start", "Show menu")]) is True
        await client.close()

        assert bodies[0] == {"commands": [{"command": "start", "description": "Show menu"}]}
