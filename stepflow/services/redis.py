# stepflow/services/redis.py
from __future__ import annotations

import asyncio
import uuid
from typing import Any, Dict, Optional

import redis.asyncio as redis
from redis.asyncio.connection import ConnectionPool

from stepflow.core.config import settings
from stepflow.core.exceptions import ServiceUnavailableError
from stepflow.core.logging import get_structlog_logger

logger = get_structlog_logger(__name__)

# Global Redis connection pool
_redis_pool: Optional[ConnectionPool] = None
_redis_client: Optional[redis.Redis] = None


async def init_redis_pool() -> None:
    """Initialize Redis connection pool."""
    global _redis_pool, _redis_client

    if _redis_pool is not None:
        return

    try:
        _redis_pool = ConnectionPool.from_url(
            settings.redis_url,
            max_connections=settings.redis_max_connections,
            socket_timeout=settings.redis_socket_timeout,
            socket_connect_timeout=settings.redis_socket_connect_timeout,
            health_check_interval=30,
            decode_responses=True,
            encoding="utf-8",
        )
        _redis_client = redis.Redis(connection_pool=_redis_pool)

        await _redis_client.ping()

        logger.info(
            "redis.connected",
            url=settings.redis_url,
            max_connections=settings.redis_max_connections,
        )

    except Exception as e:
        logger.error("redis.connection_failed", error=str(e))
        _redis_pool = None
        _redis_client = None
        raise ServiceUnavailableError(
            message="Redis connection failed",
            code="flow_store_unavailable",
            details={"error": str(e)},
        )


async def get_redis_client() -> redis.Redis:
    """Get Redis client instance."""
    if _redis_client is None:
        await init_redis_pool()

    return _redis_client


async def close_redis_pool() -> None:
    """Close Redis connection pool."""
    global _redis_pool, _redis_client

    if _redis_client:
        await _redis_client.aclose()
        _redis_client = None

    if _redis_pool:
        await _redis_pool.disconnect()
        _redis_pool = None

    logger.info("redis.connections_closed")


class RedisLock:
    """Distributed lock; ``acquired`` tells whether it was taken.

    With ``blocking_timeout`` set, ``acquire`` keeps retrying for that many
    seconds before giving up.
    """

    RETRY_INTERVAL = 0.05

    _RELEASE_SCRIPT = """
        if redis.call("get", KEYS[1]) == ARGV[1] then
            return redis.call("del", KEYS[1])
        else
            return 0
        end
    """

    def __init__(
        self,
        redis_client: redis.Redis,
        key: str,
        timeout: int = 30,
        blocking_timeout: float = 0,
    ):
        self.redis = redis_client
        self.key = f"lock:{key}"
        self.timeout = timeout
        self.blocking_timeout = blocking_timeout
        self.identifier: Optional[str] = None
        self.acquired = False

    async def acquire(self) -> bool:
        self.identifier = str(uuid.uuid4())
        deadline = asyncio.get_running_loop().time() + self.blocking_timeout
        while True:
            self.acquired = bool(
                await self.redis.set(self.key, self.identifier, ex=self.timeout, nx=True)
            )
            if self.acquired or asyncio.get_running_loop().time() >= deadline:
                break
            await asyncio.sleep(self.RETRY_INTERVAL)

        if self.acquired:
            logger.debug("lock.acquired", key=self.key, identifier=self.identifier[:8])
        return self.acquired

    async def release(self) -> bool:
        if not self.acquired or not self.identifier:
            return False

        result = await self.redis.eval(self._RELEASE_SCRIPT, 1, self.key, self.identifier)
        self.acquired = False
        released = result > 0
        if released:
            logger.debug("lock.released", key=self.key, identifier=self.identifier[:8])
        return released

    async def __aenter__(self):
        await self.acquire()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.release()


async def health_check() -> Dict[str, Any]:
    """Check Redis health."""
    try:
        client = await get_redis_client()

        loop = asyncio.get_running_loop()
        start_time = loop.time()
        pong = await client.ping()
        response_time = (loop.time() - start_time) * 1000

        if not pong:
            return {
                "status": "unhealthy",
                "error": "Ping failed",
                "response_time_ms": f"{response_time:.2f}",
            }

        info = await client.info()

        return {
            "status": "healthy",
            "response_time_ms": f"{response_time:.2f}",
            "version": str(info.get("redis_version", "unknown")),
        }

    except Exception as e:
        logger.error("redis.health_check_failed", error=str(e))
        return {
            "status": "unhealthy",
            "error": str(e),
        }
