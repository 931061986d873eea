"""Tests for the Redis-backed rendezvous store."""

from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from janus.common.config import RendezvousConfig
from janus.common.exceptions import RendezvousError
from janus.services.rendezvous import RendezvousStore


@pytest.fixture
def redis_client():
    return AsyncMock()


@pytest.fixture
def rendezvous(redis_client):
    return RendezvousStore(RendezvousConfig(addr="10.0.0.5:6379"), client=redis_client)


class TestRendezvousStore:
    def test_addr_is_split(self):
        config = RendezvousConfig(addr="10.0.0.5:6380")

        assert config.host == "10.0.0.5"
        assert config.port == 6380

    @pytest.mark.asyncio
    async def test_put_sets_without_expiry(self, rendezvous, redis_client):
        await rendezvous.put("janus:cmd", "shutdown")

        redis_client.set.assert_awaited_once_with("janus:cmd", "shutdown")

    @pytest.mark.asyncio
    async def test_get_missing_key_is_none(self, rendezvous, redis_client):
        redis_client.get.return_value = None

        assert await rendezvous.get("janus:cmd") is None

    @pytest.mark.asyncio
    async def test_delete_returns_count(self, rendezvous, redis_client):
        redis_client.delete.return_value = 1

        assert await rendezvous.delete("janus:cmd") == 1
        redis_client.delete.assert_awaited_once_with("janus:cmd")

    @pytest.mark.asyncio
    async def test_transport_error_becomes_rendezvous_error(self, rendezvous, redis_client):
        redis_client.get.side_effect = RedisConnectionError("Connection refused")

        with pytest.raises(RendezvousError) as exc_info:
            await rendezvous.get("janus:cmd")

        assert exc_info.value.key == "janus:cmd"
        assert exc_info.value.addr == "10.0.0.5:6379"
        assert "GET failed" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_ping_failure(self, rendezvous, redis_client):
        redis_client.ping.side_effect = OSError("unreachable")

        with pytest.raises(RendezvousError, match="PING failed"):
            await rendezvous.ping()

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self, rendezvous, redis_client):
        await rendezvous.close()
        await rendezvous.close()

        redis_client.aclose.assert_awaited_once()
