"""Shared fakes for the agent tests."""

import asyncio
import logging
import shutil
from unittest.mock import AsyncMock

import pytest

from janus.common.commands import OSFamily
from janus.common.exceptions import RendezvousError
from janus.common.host import HostFacts
from janus.common.logging_setup import ROOT_LOGGER_NAME, setup_logging

COMMAND_KEY = "janus:cmd"

TRUE_BIN = shutil.which("true") or "/bin/true"
FALSE_BIN = shutil.which("false") or "/bin/false"


class FakeStore:
    """In-memory stand-in for RendezvousStore that records every call."""

    def __init__(self):
        self.data: dict[str, str] = {}
        self.calls: list[tuple[str, tuple]] = []
        self.fail_ops: set[str] = set()
        self.closed = False

    def _record(self, op: str, *args) -> None:
        self.calls.append((op, args))
        if op in self.fail_ops:
            raise RendezvousError(f"{op.upper()} failed: connection refused")

    def count(self, op: str) -> int:
        return sum(1 for name, _ in self.calls if name == op)

    async def ping(self) -> None:
        self._record("ping")

    async def put(self, key: str, value: str) -> None:
        self._record("put", key, value)
        self.data[key] = value

    async def get(self, key: str) -> str | None:
        self._record("get", key)
        return self.data.get(key)

    async def delete(self, *keys: str) -> int:
        self._record("delete", *keys)
        return sum(1 for key in keys if self.data.pop(key, None) is not None)

    async def exists(self, *keys: str) -> int:
        self._record("exists", *keys)
        return sum(1 for key in keys if key in self.data)

    async def close(self) -> None:
        self.closed = True


class FakeChatClient:
    """Records outgoing bot API calls; get_updates serves queued batches."""

    def __init__(self):
        self.sent: list[dict] = []
        self.answered: list[dict] = []
        self.commands: list[tuple[str, str]] = []
        self.update_batches: list[list[dict]] = []
        self.offsets: list[int | None] = []
        self.closed = False
        self.send_message = AsyncMock(side_effect=self._send_message)

    async def _send_message(self, chat_id, text, parse_mode="Markdown", reply_markup=None):
        self.sent.append({
            "chat_id": chat_id,
            "text": text,
            "parse_mode": parse_mode,
            "reply_markup": reply_markup,
        })
        return {"message_id": len(self.sent)}

    async def answer_callback_query(self, callback_query_id, text=None, show_alert=False):
        self.answered.append({"id": callback_query_id, "text": text, "show_alert": show_alert})
        return True

    async def set_my_commands(self, commands):
        self.commands = list(commands)
        return True

    async def get_updates(self, offset=None, timeout=60):
        self.offsets.append(offset)
        if self.update_batches:
            return self.update_batches.pop(0)
        # Stand-in for the server-side long poll
        await asyncio.sleep(0.01)
        return []

    async def get_me(self):
        return {"id": 1, "username": "janus_bot"}

    async def close(self):
        self.closed = True


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def chat_client() -> FakeChatClient:
    return FakeChatClient()


@pytest.fixture
def linux_facts() -> HostFacts:
    return HostFacts(os=OSFamily.LINUX, private_ip="192.168.1.20", user="alice")


@pytest.fixture
def windows_facts() -> HostFacts:
    return HostFacts(os=OSFamily.WINDOWS, private_ip="192.168.1.20", user="alice")


@pytest.fixture
def info_logging():
    """Production logging (INFO, JSON to stdout); the janus logger is restored afterwards."""
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    saved = (list(logger.handlers), logger.level, logger.propagate)

    yield setup_logging(log_level="INFO", json_format=True)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    handlers, level, propagate = saved
    for handler in handlers:
        logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = propagate
