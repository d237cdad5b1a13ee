"""
Redis-backed remote cache operation handler.

Implements the remote cache request/response contract (get, set, del,
exists, expire) on top of redis.asyncio with connection management and
bounded reconnect attempts. Every outcome, including malformed requests and
an unconfigured endpoint, is reported as a CacheResponse; only transport
level cancellation escapes.
"""

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

from redis import asyncio as aioredis
from redis.asyncio import Redis

from transit_assist.config.settings import RedisSettings, get_settings
from transit_assist.core.exceptions import RemoteCacheError
from transit_assist.models.cache_models import CacheAction, CacheRequest, CacheResponse


class RemoteCacheOperation(ABC):
    """Port for the remote cache tier: one request in, one response out."""

    @abstractmethod
    async def execute(self, request: CacheRequest) -> CacheResponse:
        raise NotImplementedError

    async def close(self) -> None:
        return None


class RedisCacheClient(RemoteCacheOperation):
    """
    Redis cache operation handler with connection management and error handling.

    Values are JSON encoded once on set and decoded once on get.
    """

    def __init__(
        self,
        redis_settings: Optional[RedisSettings] = None,
        redis_client: Optional[Redis] = None,
    ):
        """
        Initialize the cache client.

        Args:
            redis_settings: Redis configuration (uses global settings if not provided)
            redis_client: Pre-built client, mainly for tests
        """
        self.settings = redis_settings or get_settings().redis
        self.redis_url = self.settings.url
        self.redis_client: Optional[Redis] = redis_client
        self.logger = logging.getLogger(__name__)
        self._connection_lock = asyncio.Lock()
        self._is_connected = redis_client is not None
        self._connection_retries = 0
        self._max_retries = self.settings.max_retries

    async def connect(self) -> bool:
        """
        Establish connection to Redis server.

        Returns:
            True if connection successful, False otherwise
        """
        if not self.redis_url:
            self.logger.info("Redis endpoint not configured, skipping connection")
            return False

        async with self._connection_lock:
            if self._is_connected and self.redis_client:
                return True

            try:
                self.logger.info(f"Connecting to Redis at {self.settings.host}:{self.settings.port}")
                self.redis_client = aioredis.from_url(
                    self.redis_url,
                    encoding="utf-8",
                    decode_responses=True,
                    socket_timeout=self.settings.socket_timeout,
                    socket_connect_timeout=self.settings.connect_timeout,
                    retry_on_timeout=True,
                    health_check_interval=30
                )

                await self.redis_client.ping()
                self._is_connected = True
                self._connection_retries = 0
                self.logger.info("Successfully connected to Redis")
                return True

            except Exception as e:
                self._connection_retries += 1
                self.logger.error(
                    f"Failed to connect to Redis (attempt {self._connection_retries}): {str(e)}"
                )
                await self._drop_client()
                return False

    async def close(self) -> None:
        """Disconnect from Redis server."""
        async with self._connection_lock:
            if self.redis_client:
                try:
                    await self.redis_client.aclose()
                    self.logger.info("Disconnected from Redis")
                except Exception as e:
                    self.logger.warning(f"Error during Redis disconnect: {str(e)}")
                finally:
                    self.redis_client = None
                    self._is_connected = False

    async def execute(self, request: CacheRequest) -> CacheResponse:
        """
        Run one cache operation.

        Args:
            request: Cache operation request

        Returns:
            CacheResponse with success flag and data or error message
        """
        try:
            client = await self._require_client()
            data = await self._dispatch(client, request)
            return CacheResponse(success=True, data=data)

        except RemoteCacheError as e:
            self.logger.warning(f"Cache operation '{request.action.value}' rejected: {e.message}")
            return CacheResponse(success=False, error=e.message)

        except Exception as e:
            self.logger.error(f"Cache operation '{request.action.value}' failed for key '{request.key}': {str(e)}")
            await self._handle_connection_error()
            return CacheResponse(success=False, error=str(e) or type(e).__name__)

    async def _dispatch(self, client: Redis, request: CacheRequest) -> Any:
        if request.action == CacheAction.GET:
            raw = await client.get(request.key)
            return json.loads(raw) if raw is not None else None

        if request.action == CacheAction.SET:
            if request.value is None:
                raise RemoteCacheError("Value is required for set operation", request.action.value, request.key)
            serialized = json.dumps(request.value)
            if request.ttl:
                await client.setex(request.key, request.ttl, serialized)
            else:
                await client.set(request.key, serialized)
            return None

        if request.action == CacheAction.DEL:
            return await client.delete(request.key)

        if request.action == CacheAction.EXISTS:
            return await client.exists(request.key) == 1

        if request.action == CacheAction.EXPIRE:
            if not request.ttl:
                raise RemoteCacheError("TTL is required for expire operation", request.action.value, request.key)
            return bool(await client.expire(request.key, request.ttl))

        raise RemoteCacheError(f"Unsupported action: {request.action}", str(request.action), request.key)

    async def _require_client(self) -> Redis:
        if not self.redis_url and self.redis_client is None:
            raise RemoteCacheError("Redis endpoint not configured")

        if not await self._ensure_connection():
            raise RemoteCacheError("Redis connection unavailable")
        return self.redis_client

    async def _ensure_connection(self) -> bool:
        """
        Ensure Redis connection is established.

        Returns:
            True if connected, False otherwise
        """
        if self._is_connected and self.redis_client:
            return True

        if self._connection_retries >= self._max_retries:
            self.logger.warning(
                f"Max connection retries ({self._max_retries}) exceeded, "
                "remote cache operations will be disabled"
            )
            return False

        return await self.connect()

    async def _handle_connection_error(self) -> None:
        """Handle connection errors by marking connection as failed."""
        self._is_connected = False
        await self._drop_client()

    async def _drop_client(self) -> None:
        if self.redis_client:
            try:
                await self.redis_client.aclose()
            except Exception as e:
                self.logger.debug(f"Ignoring error while closing Redis client: {e}")
            self.redis_client = None

    @property
    def is_connected(self) -> bool:
        """Check if client is connected to Redis."""
        return self._is_connected and self.redis_client is not None

    @property
    def is_available(self) -> bool:
        """Check if Redis is configured for use."""
        return self.redis_url is not None or self.redis_client is not None
