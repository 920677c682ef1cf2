import asyncio
import logging
from typing import Optional, Protocol

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from clinic_store.exceptions import StoreError

logger = logging.getLogger(__name__)


class BlobStore(Protocol):
    """Opaque string values under string keys. Implementations raise StoreError on failure."""

    async def get(self, key: str) -> Optional[str]:
        ...

    async def set(self, key: str, value: str) -> None:
        ...

    async def remove(self, key: str) -> None:
        ...


# ===============================================================
# 🧱 REDIS MEDIUM
# ===============================================================
class RedisBlobStore:
    def __init__(self, client: aioredis.Redis):
        self.client = client

    @classmethod
    def from_config(cls, config) -> "RedisBlobStore":
        client = aioredis.Redis(
            host=config.REDIS_HOST,
            port=config.REDIS_PORT,
            db=config.REDIS_DB,
            password=config.REDIS_PASSWORD or None,
            decode_responses=True,
            socket_timeout=config.REDIS_SOCKET_TIMEOUT,
            socket_connect_timeout=config.REDIS_SOCKET_TIMEOUT,
        )
        logger.info(f"[Redis] Blob store at {config.REDIS_HOST}:{config.REDIS_PORT}/{config.REDIS_DB}")
        return cls(client)

    async def get(self, key: str) -> Optional[str]:
        try:
            raw = await self.client.get(key)
        except RedisError as e:
            logger.error(f"[Redis] ❌ Read failed for {key}: {e}")
            raise StoreError(f"Could not read {key}") from e
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        return raw

    async def set(self, key: str, value: str) -> None:
        try:
            await self.client.set(key, value)
        except RedisError as e:
            logger.error(f"[Redis] ❌ Write failed for {key}: {e}")
            raise StoreError(f"Could not write {key}") from e

    async def remove(self, key: str) -> None:
        try:
            await self.client.delete(key)
        except RedisError as e:
            logger.error(f"[Redis] ❌ Delete failed for {key}: {e}")
            raise StoreError(f"Could not remove {key}") from e

    async def close(self) -> None:
        await self.client.aclose()


# ===============================================================
# 🧪 IN-PROCESS MEDIUM
# ===============================================================
class MemoryBlobStore:
    """
    Dict-backed store for single-device use and tests.
    `latency` makes every call suspend, so interleavings happen like they do over a socket.
    """

    def __init__(self, latency: float = 0.0):
        self.data: dict[str, str] = {}
        self.latency = latency

    async def _pause(self):
        await asyncio.sleep(self.latency)

    async def get(self, key: str) -> Optional[str]:
        await self._pause()
        return self.data.get(key)

    async def set(self, key: str, value: str) -> None:
        await self._pause()
        self.data[key] = value

    async def remove(self, key: str) -> None:
        await self._pause()
        self.data.pop(key, None)

    async def close(self) -> None:
        return None
