"""
Two-tier cache store.

The local tier is an in-process dict with per-entry TTL, checked lazily on
every read and swept periodically. The remote tier is optional and
best-effort: it is reached through a RemoteCacheOperation and every call is
funneled through RemoteCacheTier, which turns failures into RemoteResult
values so nothing remote ever raises out of CacheStore.

get_or_set does not deduplicate concurrent computations for the same key
unless single_flight is enabled; two concurrent misses each run the producer
and the last set wins.
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

from pydantic_core import to_jsonable_python

from transit_assist.config.settings import CacheSettings
from transit_assist.core.cache_client import RemoteCacheOperation
from transit_assist.core.scheduling import PeriodicTask
from transit_assist.models.cache_models import CacheAction, CacheRequest, CacheStats
from transit_assist.models.internal_models import CacheEntry, RemoteResult

T = TypeVar("T")

logger = logging.getLogger(__name__)


class RemoteCacheTier:
    """Result-returning wrapper around the remote cache operation collaborator."""

    def __init__(self, operation: Optional[RemoteCacheOperation], timeout_seconds: float = 5.0):
        self.operation = operation
        self.timeout_seconds = timeout_seconds

    @property
    def enabled(self) -> bool:
        return self.operation is not None

    async def get(self, key: str) -> RemoteResult:
        return await self._call(CacheRequest(action=CacheAction.GET, key=key))

    async def set(self, key: str, value: Any, ttl: Optional[int]) -> RemoteResult:
        try:
            payload = to_jsonable_python(value)
        except Exception as e:
            return RemoteResult.failure(f"Value for '{key}' is not serializable: {e}")
        return await self._call(CacheRequest(action=CacheAction.SET, key=key, value=payload, ttl=ttl))

    async def delete(self, key: str) -> RemoteResult:
        return await self._call(CacheRequest(action=CacheAction.DEL, key=key))

    async def exists(self, key: str) -> RemoteResult:
        return await self._call(CacheRequest(action=CacheAction.EXISTS, key=key))

    async def _call(self, request: CacheRequest) -> RemoteResult:
        if self.operation is None:
            return RemoteResult.failure("Remote cache not configured")

        try:
            response = await asyncio.wait_for(
                self.operation.execute(request), timeout=self.timeout_seconds
            )
        except asyncio.TimeoutError:
            logger.warning(f"Remote cache {request.action.value} timed out for key '{request.key}'")
            return RemoteResult.failure("timeout")
        except Exception as e:
            logger.warning(f"Remote cache {request.action.value} failed for key '{request.key}': {e}")
            return RemoteResult.failure(str(e) or type(e).__name__)

        if not response.success:
            logger.warning(
                f"Remote cache {request.action.value} rejected for key '{request.key}': {response.error}"
            )
            return RemoteResult.failure(response.error or "remote operation failed")
        return RemoteResult.success(response.data)

    async def close(self) -> None:
        if self.operation is not None:
            try:
                await self.operation.close()
            except Exception as e:
                logger.warning(f"Error closing remote cache: {e}")


class CacheStore:
    """
    Local + remote key/value cache with TTL expiry.

    Args:
        remote: Remote cache operation collaborator, or None for local-only
        settings: Cache settings (TTL defaults, sweep interval, single flight)
        clock: Returns epoch seconds; injected for tests
    """

    def __init__(
        self,
        remote: Optional[RemoteCacheOperation] = None,
        settings: Optional[CacheSettings] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.settings = settings or CacheSettings()
        self.remote = RemoteCacheTier(remote, self.settings.remote_timeout_seconds)
        self.default_ttl = self.settings.default_ttl_seconds
        self._clock = clock
        self._local: Dict[str, CacheEntry] = {}
        self._in_flight: Dict[str, asyncio.Future] = {}
        self._sweeper = PeriodicTask(
            "cache-sweep", self.settings.sweep_interval_seconds, self.cleanup_expired
        )

    def _now_ms(self) -> float:
        return self._clock() * 1000

    # Lifecycle

    def start(self) -> None:
        """Start the background sweep of expired local entries."""
        self._sweeper.start()

    async def stop(self) -> None:
        await self._sweeper.stop()

    async def close(self) -> None:
        await self.stop()
        await self.remote.close()

    # Public contract

    async def get(self, key: str) -> Optional[Any]:
        """
        Return the cached value or None.

        The local tier is checked first; an expired local entry is evicted.
        On a local miss the remote tier is tried and a hit is copied into the
        local tier with the default TTL.
        """
        local = self._get_local(key)
        if local is not None:
            return local

        result = await self.remote.get(key)
        if result.ok and result.value is not None:
            self._set_local(key, result.value, self.default_ttl)
            return result.value

        return None

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        """
        Store a value in both tiers.

        The local write always happens; a remote failure is logged by the
        remote tier and does not change the result.

        Returns:
            True once the local write succeeded
        """
        ttl = ttl or self.default_ttl
        self._set_local(key, value, ttl)
        await self.remote.set(key, value, ttl)
        return True

    async def delete(self, key: str) -> bool:
        self._local.pop(key, None)
        await self.remote.delete(key)
        return True

    async def exists(self, key: str) -> bool:
        entry = self._local.get(key)
        if entry is not None and not entry.is_expired(self._now_ms()):
            return True

        result = await self.remote.exists(key)
        return result.ok and result.value is True

    async def get_or_set(
        self,
        key: str,
        producer: Callable[[], Awaitable[T]],
        ttl: Optional[int] = None,
    ) -> T:
        """
        Return the cached value, or run producer once, cache and return its result.

        Exceptions raised by producer propagate to the caller and nothing is cached.
        """
        cached = await self.get(key)
        if cached is not None:
            return cached

        if not self.settings.single_flight:
            fresh = await producer()
            await self.set(key, fresh, ttl)
            return fresh

        pending = self._in_flight.get(key)
        if pending is not None:
            return await asyncio.shield(pending)

        future: asyncio.Future = asyncio.get_running_loop().create_future()
        self._in_flight[key] = future
        try:
            fresh = await producer()
            await self.set(key, fresh, ttl)
            future.set_result(fresh)
            return fresh
        except asyncio.CancelledError:
            future.cancel()
            raise
        except Exception as e:
            future.set_exception(e)
            # Retrieve it so an unawaited future does not log "exception never retrieved".
            future.exception()
            raise
        finally:
            self._in_flight.pop(key, None)

    async def invalidate_pattern(self, pattern: str) -> int:
        """
        Remove every local key containing pattern as a literal substring.

        The remote tier has no pattern delete; the pattern is only logged for
        remote cleanup.

        Returns:
            Number of local entries removed
        """
        matching = [key for key in self._local if pattern in key]
        for key in matching:
            del self._local[key]

        logger.info(f"Cache invalidation requested for pattern: {pattern} ({len(matching)} local keys)")
        return len(matching)

    async def clear(self) -> None:
        """Empty the local tier; the remote tier is left untouched."""
        self._local.clear()
        logger.info("Local cache cleared")

    def get_stats(self) -> CacheStats:
        return CacheStats(local_size=len(self._local), local_keys=list(self._local.keys()))

    def cleanup_expired(self) -> int:
        """Evict expired local entries. Returns the number removed."""
        now_ms = self._now_ms()
        expired = [key for key, entry in self._local.items() if entry.is_expired(now_ms)]
        for key in expired:
            del self._local[key]
        if expired:
            logger.debug(f"Swept {len(expired)} expired local cache entries")
        return len(expired)

    # Local tier

    def _get_local(self, key: str) -> Optional[Any]:
        entry = self._local.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._now_ms()):
            del self._local[key]
            return None
        return entry.value

    def _set_local(self, key: str, value: Any, ttl: Optional[float]) -> None:
        self._local[key] = CacheEntry(value=value, stored_at_epoch_ms=self._now_ms(), ttl_seconds=ttl)
