"""Tests for the retrying notifier."""

from unittest.mock import AsyncMock, patch

import pytest

from janus.common.exceptions import ChatError
from janus.services.chat.notifier import Notifier

OWNER_ID = 424242


@pytest.fixture
def no_sleep():
    with patch("janus.services.chat.notifier.asyncio.sleep", new=AsyncMock()) as sleep:
        yield sleep


class TestSend:
    @pytest.mark.asyncio
    async def test_delivers_once(self, chat_client, no_sleep):
        notifier = Notifier(chat_client, OWNER_ID)

        assert await notifier.send("hello") is True
        assert chat_client.sent[0]["chat_id"] == OWNER_ID
        assert chat_client.sent[0]["text"] == "hello"
        no_sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_gives_up_after_three_attempts(self, chat_client, no_sleep):
        chat_client.send_message.side_effect = ChatError("sendMessage failed (HTTP 502)")
        notifier = Notifier(chat_client, OWNER_ID)

        assert await notifier.send("hello") is False
        assert chat_client.send_message.await_count == 3
        assert no_sleep.await_count == 2
        no_sleep.assert_awaited_with(Notifier.RETRY_DELAY_SECONDS)

    @pytest.mark.asyncio
    async def test_recovers_after_transient_failure(self, chat_client, no_sleep):
        chat_client.send_message.side_effect = [ChatError("timed out"), {"message_id": 1}]
        notifier = Notifier(chat_client, OWNER_ID)

        assert await notifier.send("hello") is True
        assert chat_client.send_message.await_count == 2

    @pytest.mark.asyncio
    async def test_disabled_notifier_is_silent(self, no_sleep):
        notifier = Notifier()

        assert notifier.enabled is False
        assert await notifier.send("hello") is False
        assert await notifier.error("boom") is False


class TestFormatting:
    def test_format_notification(self):
        with patch("janus.services.chat.notifier.format_display_time", return_value="2026-01-02 03:04:05"):
            text = Notifier.format_notification("❌", "Error", "disk on fire")

        assert text == "❌ *Error*\n\ndisk on fire\n\n_2026-01-02 03:04:05_"

    @pytest.mark.asyncio
    async def test_variants_use_their_icons(self, chat_client):
        notifier = Notifier(chat_client, OWNER_ID)

        await notifier.alert("a")
        await notifier.error("b")
        await notifier.success("c")
        await notifier.info("d")

        heads = [m["text"].split("\n", 1)[0] for m in chat_client.sent]
        assert heads == ["⚠️ *Alert*", "❌ *Error*", "✅ *Success*", "ℹ️ *Info*"]

    @pytest.mark.asyncio
    async def test_online_message(self, chat_client, linux_facts):
        notifier = Notifier(chat_client, OWNER_ID)

        assert await notifier.online(linux_facts)

        text = chat_client.sent[0]["text"]
        assert text.startswith("🖥️ *Janus Online*")
        assert "OS: LINUX" in text
        assert "IP: 192.168.1.20" in text
        assert "User: alice" in text
