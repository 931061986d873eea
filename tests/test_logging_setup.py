"""Tests for structured logging and LogContext."""

import asyncio
import io
import json
import logging

import pytest

from janus.common.logging_setup import (
    ContextFilter,
    JsonFormatter,
    LogContext,
    get_service_logger,
    log_command,
)


@pytest.fixture
def json_stream():
    """A JSON handler on a private logger, as setup_logging would install it"""
    stream = io.StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(JsonFormatter())
    handler.addFilter(ContextFilter())

    logger = logging.getLogger("janus.test_logging")
    logger.setLevel(logging.INFO)
    logger.propagate = False
    logger.addHandler(handler)

    yield stream

    logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


def records(stream):
    return [json.loads(line) for line in stream.getvalue().splitlines()]


class TestLogContext:
    def test_context_fields_are_added(self, json_stream):
        logger = get_service_logger("test_logging")

        with LogContext(command="switch", os="LINUX"):
            logger.info("executing")
        logger.info("after")

        inside, after = records(json_stream)
        assert inside["command"] == "switch"
        assert inside["os"] == "LINUX"
        assert inside["service"] == "test_logging"
        assert "os" not in after

    def test_extra_fields_win_over_context(self, json_stream):
        logger = get_service_logger("test_logging")

        with LogContext(command="switch", os="LINUX"):
            log_command(logger, "http", "shutdown")
            logger.info("step", extra={"command": "switch", "step": 1})

        accepted, step = records(json_stream)
        assert accepted["command"] == "shutdown"
        assert accepted["source"] == "http"
        assert accepted["os"] == "LINUX"
        assert step["step"] == 1

    @pytest.mark.asyncio
    async def test_context_does_not_leak_into_other_tasks(self, json_stream):
        logger = get_service_logger("test_logging")
        entered = asyncio.Event()
        release = asyncio.Event()

        async def dispatching():
            with LogContext(command="shutdown"):
                entered.set()
                await release.wait()

        task = asyncio.create_task(dispatching())
        await entered.wait()
        logger.info("from ingress")
        release.set()
        await task

        (record,) = records(json_stream)
        assert "command" not in record
