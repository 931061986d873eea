"""
Rendezvous Store

Thin async wrapper over Redis used as a one-slot mailbox between the
ingress channels (writers) and the dispatcher (reader). A missing key is
reported as None; transport failures are raised as RendezvousError.

The underlying redis.asyncio client keeps a connection pool and is safe
for concurrent use by every task of the agent.
"""

from typing import Any

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from janus.common.config import RendezvousConfig
from janus.common.exceptions import RendezvousError
from janus.common.logging_setup import get_service_logger

logger = get_service_logger("rendezvous")

CONNECT_TIMEOUT_S = 5.0
IO_TIMEOUT_S = 3.0


class RendezvousStore:
    """Key-value mailbox backed by Redis"""

    def __init__(self, config: RendezvousConfig, client: Any | None = None):
        self.config = config
        self._client = client or aioredis.Redis(
            host=config.host,
            port=config.port,
            password=config.password or None,
            db=config.db,
            socket_connect_timeout=CONNECT_TIMEOUT_S,
            socket_timeout=IO_TIMEOUT_S,
            decode_responses=True,
        )
        self._closed = False

    def _error(self, op: str, key: str | None, exc: Exception) -> RendezvousError:
        return RendezvousError(f"{op} failed: {exc}", key=key, addr=self.config.addr)

    async def ping(self) -> None:
        """Verify connectivity; raises RendezvousError if the server is unreachable"""
        try:
            await self._client.ping()
        except (RedisError, OSError) as e:
            raise self._error("PING", None, e) from e
        logger.info(f"Connected to rendezvous store at {self.config.addr} (db {self.config.db})")

    async def put(self, key: str, value: str) -> None:
        """Set key to value with no expiry, overwriting any pending value"""
        try:
            await self._client.set(key, value)
        except (RedisError, OSError) as e:
            raise self._error("SET", key, e) from e

    async def get(self, key: str) -> str | None:
        """Value stored at key, or None when the key is absent"""
        try:
            return await self._client.get(key)
        except (RedisError, OSError) as e:
            raise self._error("GET", key, e) from e

    async def delete(self, *keys: str) -> int:
        """Delete keys; returns how many existed"""
        try:
            return int(await self._client.delete(*keys))
        except (RedisError, OSError) as e:
            raise self._error("DEL", ",".join(keys), e) from e

    async def exists(self, *keys: str) -> int:
        """Number of the given keys that currently exist"""
        try:
            return int(await self._client.exists(*keys))
        except (RedisError, OSError) as e:
            raise self._error("EXISTS", ",".join(keys), e) from e

    async def close(self) -> None:
        """Close the connection pool; safe to call more than once"""
        if self._closed:
            return
        self._closed = True
        try:
            await self._client.aclose()
        except (RedisError, OSError) as e:
            logger.warning(f"Error closing rendezvous store: {e}")
        else:
            logger.info("Rendezvous store connection closed")
