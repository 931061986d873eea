"""Tests for the fixed-cadence tick loop."""

import asyncio

import pytest

from janus.common.scheduler import ScheduledLoop


class TestScheduledLoop:
    def test_rejects_non_positive_interval(self):
        with pytest.raises(ValueError):
            ScheduledLoop(0, lambda: None)

    @pytest.mark.asyncio
    async def test_ticks_repeatedly(self):
        calls = []

        async def tick():
            calls.append(1)

        loop = ScheduledLoop(0.02, tick, name="test")
        await loop.start()
        await asyncio.sleep(0.15)
        loop.stop()
        stopped_at = len(calls)
        await asyncio.sleep(0.06)

        assert stopped_at >= 3
        assert len(calls) == stopped_at

    @pytest.mark.asyncio
    async def test_slow_callback_never_overlaps(self):
        running = 0
        overlaps = []

        async def slow_tick():
            nonlocal running
            running += 1
            overlaps.append(running)
            await asyncio.sleep(0.07)
            running -= 1

        loop = ScheduledLoop(0.02, slow_tick, name="slow")
        await loop.start()
        await asyncio.sleep(0.25)
        loop.stop()

        assert overlaps and max(overlaps) == 1

    @pytest.mark.asyncio
    async def test_callback_error_does_not_stop_loop(self):
        calls = []

        async def flaky():
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("boom")

        loop = ScheduledLoop(0.02, flaky)
        await loop.start()
        await asyncio.sleep(0.1)
        loop.stop()

        assert len(calls) >= 2
