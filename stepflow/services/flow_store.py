# stepflow/services/flow_store.py
"""Where open flows live between requests."""
from __future__ import annotations

import asyncio
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Optional, Tuple

from stepflow.core.config import settings
from stepflow.core.exceptions import ConflictError, NotFoundError
from stepflow.core.logging import get_structlog_logger
from stepflow.schemas.flow import Flow
from stepflow.services.redis import RedisLock, get_redis_client, health_check as redis_health_check

logger = get_structlog_logger(__name__)


def _not_found(flow_id: str) -> NotFoundError:
    return NotFoundError(
        message="Flow not found or expired",
        code="flow_not_found",
        details={"flow_id": flow_id},
    )


class FlowStore:
    """Keeps one serialized ``Flow`` per page view."""

    backend = "base"

    async def get(self, flow_id: str) -> Optional[Flow]:
        raise NotImplementedError

    async def save(self, flow: Flow) -> None:
        raise NotImplementedError

    def lock(self, flow_id: str, wait: float = 0):
        """Async context manager serializing read-modify-write on one flow.

        ``wait`` is how long to keep trying when another request holds the
        lock; with the default the store may refuse at once.
        """
        raise NotImplementedError

    async def health(self) -> Dict[str, str]:
        return {"status": "healthy", "backend": self.backend}

    async def load(self, flow_id: str) -> Flow:
        flow = await self.get(flow_id)
        if flow is None:
            raise _not_found(flow_id)
        return flow


class MemoryFlowStore(FlowStore):
    backend = "memory"

    def __init__(self, ttl_seconds: int = 3600):
        self.ttl_seconds = ttl_seconds
        self._flows: Dict[str, Tuple[float, str]] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    async def get(self, flow_id: str) -> Optional[Flow]:
        entry = self._flows.get(flow_id)
        if entry is None:
            return None
        expires_at, raw = entry
        if expires_at < time.monotonic():
            self._discard(flow_id)
            return None
        return Flow.model_validate_json(raw)

    async def save(self, flow: Flow) -> None:
        self.sweep()
        self._flows[flow.id] = (time.monotonic() + self.ttl_seconds, flow.model_dump_json())

    def sweep(self) -> int:
        """Drop expired flows; returns how many were removed."""
        now = time.monotonic()
        expired = [flow_id for flow_id, (expires_at, _) in self._flows.items() if expires_at < now]
        for flow_id in expired:
            self._discard(flow_id)
        if expired:
            logger.debug("flow_store.swept", removed=len(expired), remaining=len(self._flows))
        return len(expired)

    def _discard(self, flow_id: str) -> None:
        self._flows.pop(flow_id, None)
        lock = self._locks.get(flow_id)
        if lock is not None and not lock.locked():
            del self._locks[flow_id]

    @asynccontextmanager
    async def lock(self, flow_id: str, wait: float = 0) -> AsyncIterator[None]:
        # asyncio.Lock always waits its turn
        lock = self._locks.setdefault(flow_id, asyncio.Lock())
        async with lock:
            yield


class RedisFlowStore(FlowStore):
    backend = "redis"

    def __init__(self, ttl_seconds: int = 3600, prefix: str = "stepflow:flow"):
        self.ttl_seconds = ttl_seconds
        self.prefix = prefix

    def _make_key(self, flow_id: str) -> str:
        return f"{self.prefix}:{flow_id}"

    async def get(self, flow_id: str) -> Optional[Flow]:
        client = await get_redis_client()
        raw = await client.get(self._make_key(flow_id))
        if raw is None:
            return None
        return Flow.model_validate_json(raw)

    async def save(self, flow: Flow) -> None:
        client = await get_redis_client()
        await client.setex(self._make_key(flow.id), self.ttl_seconds, flow.model_dump_json())

    @asynccontextmanager
    async def lock(self, flow_id: str, wait: float = 0) -> AsyncIterator[None]:
        client = await get_redis_client()
        redis_lock = RedisLock(client, self._make_key(flow_id), timeout=10, blocking_timeout=wait)
        async with redis_lock as lock:
            if not lock.acquired:
                raise ConflictError(
                    message="Flow is being updated by another request",
                    code="flow_locked",
                    details={"flow_id": flow_id},
                )
            yield

    async def health(self) -> Dict[str, str]:
        result = await redis_health_check()
        return {"backend": self.backend, **{k: str(v) for k, v in result.items()}}


_store: Optional[FlowStore] = None


def create_flow_store() -> FlowStore:
    if settings.flow_store_backend == "redis":
        return RedisFlowStore(ttl_seconds=settings.flow_ttl_seconds)
    return MemoryFlowStore(ttl_seconds=settings.flow_ttl_seconds)


def get_flow_store() -> FlowStore:
    """FastAPI dependency returning the configured flow store."""
    global _store

    if _store is None:
        _store = create_flow_store()
        logger.info("flow_store.created", backend=_store.backend, ttl=settings.flow_ttl_seconds)

    return _store
