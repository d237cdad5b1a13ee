"""
Dependency injection setup for FastAPI.
The ServiceContainer constructs and owns every core component for one
application instance; nothing in the core is a process-wide singleton.
"""

import asyncio
import logging
from typing import Optional

from fastapi import Depends, Request

from transit_assist.config.settings import Settings, get_settings
from transit_assist.core.cache_client import RedisCacheClient, RemoteCacheOperation
from transit_assist.core.cache_store import CacheStore
from transit_assist.core.exceptions import ServiceUnavailableError
from transit_assist.services import (
    CacheInvalidationService,
    PresenceTracker,
    RecommendationRefresher,
    TicketBookingService,
    TicketPurchaser,
    TransitDataProvider,
    TransitRecommendationService,
    create_transit_data_provider,
)

logger = logging.getLogger(__name__)


class ServiceContainer:
    """
    Container for the cache, presence and recommendation components.

    Args:
        settings: Application settings (defaults to the global settings)
        remote_cache: Remote cache operation; built from Redis settings when omitted
        transit_data: Transit-data provider; built from transit settings when omitted
        ticket_purchaser: Optional ticketing collaborator enabling the booking service
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        remote_cache: Optional[RemoteCacheOperation] = None,
        transit_data: Optional[TransitDataProvider] = None,
        ticket_purchaser: Optional[TicketPurchaser] = None,
    ):
        self.settings = settings or get_settings()
        self._remote_cache_override = remote_cache
        self._transit_data_override = transit_data
        self._ticket_purchaser = ticket_purchaser

        self._cache_store: Optional[CacheStore] = None
        self._invalidation_service: Optional[CacheInvalidationService] = None
        self._presence_tracker: Optional[PresenceTracker] = None
        self._recommendation_service: Optional[TransitRecommendationService] = None
        self._refresher: Optional[RecommendationRefresher] = None
        self._ticket_booking: Optional[TicketBookingService] = None
        self._initialized = False
        self._initialization_lock = asyncio.Lock()

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    async def initialize_services(self) -> None:
        """Build components in dependency order and start background tasks."""
        async with self._initialization_lock:
            if self._initialized:
                return

            logger.info("Initializing service container")

            try:
                remote = self._remote_cache_override
                if remote is None and self.settings.redis.url:
                    remote = RedisCacheClient(self.settings.redis)
                if remote is None:
                    logger.info("Remote cache not configured, using local-only caching")

                self._cache_store = CacheStore(remote=remote, settings=self.settings.cache)
                self._invalidation_service = CacheInvalidationService(self._cache_store)

                transit_data = self._transit_data_override or create_transit_data_provider(
                    self.settings.transit
                )
                self._recommendation_service = TransitRecommendationService(
                    self._cache_store,
                    transit_data,
                    settings=self.settings.recommendations,
                )
                self._presence_tracker = PresenceTracker(
                    cache=self._cache_store,
                    settings=self.settings.presence,
                )
                self._refresher = RecommendationRefresher(
                    self._presence_tracker,
                    self._recommendation_service,
                )
                self._refresher.attach()

                if self._ticket_purchaser is not None:
                    self._ticket_booking = TicketBookingService(
                        self._ticket_purchaser, self._invalidation_service
                    )

                self._cache_store.start()
                self._invalidation_service.start_periodic_cleanup()

                self._initialized = True
                logger.info("Service container initialization completed")

            except Exception as e:
                logger.error(f"Service container initialization failed: {e}", exc_info=True)
                raise

    async def cleanup_services(self) -> None:
        """Stop background tasks and release the remote cache connection."""
        logger.info("Cleaning up service container")

        try:
            if self._refresher:
                await self._refresher.detach()

            if self._presence_tracker:
                self._presence_tracker.cleanup()

            if self._invalidation_service:
                await self._invalidation_service.stop_periodic_cleanup()

            if self._cache_store:
                await self._cache_store.close()

            logger.info("Service container cleanup completed")

        except Exception as e:
            logger.error(f"Service container cleanup failed: {e}", exc_info=True)
        finally:
            self._ticket_booking = None
            self._refresher = None
            self._presence_tracker = None
            self._recommendation_service = None
            self._invalidation_service = None
            self._cache_store = None
            self._initialized = False

    def get_cache_store(self) -> CacheStore:
        if not self._initialized or self._cache_store is None:
            raise RuntimeError("Service container not initialized")
        return self._cache_store

    def get_invalidation_service(self) -> CacheInvalidationService:
        if not self._initialized or self._invalidation_service is None:
            raise RuntimeError("Service container not initialized")
        return self._invalidation_service

    def get_presence_tracker(self) -> PresenceTracker:
        if not self._initialized or self._presence_tracker is None:
            raise RuntimeError("Service container not initialized")
        return self._presence_tracker

    def get_recommendation_service(self) -> TransitRecommendationService:
        if not self._initialized or self._recommendation_service is None:
            raise RuntimeError("Service container not initialized")
        return self._recommendation_service

    def get_refresher(self) -> RecommendationRefresher:
        if not self._initialized or self._refresher is None:
            raise RuntimeError("Service container not initialized")
        return self._refresher

    def get_ticket_booking_service(self) -> TicketBookingService:
        if not self._initialized or self._ticket_booking is None:
            raise RuntimeError("Ticket booking not configured")
        return self._ticket_booking


def get_service_container(request: Request) -> ServiceContainer:
    """
    Get the service container from application state.

    Raises:
        ServiceUnavailableError: If the container is missing or not initialized
    """
    container = getattr(request.app.state, "service_container", None)
    if container is None or not container.is_initialized:
        logger.error("Service container not initialized")
        raise ServiceUnavailableError("service container")

    return container


def _resolve(container: ServiceContainer, getter: str, name: str):
    try:
        return getattr(container, getter)()
    except RuntimeError as e:
        logger.error(f"{name} not available: {e}")
        raise ServiceUnavailableError(name)


def get_cache_store(container: ServiceContainer = Depends(get_service_container)) -> CacheStore:
    return _resolve(container, "get_cache_store", "Cache store")


def get_invalidation_service(
    container: ServiceContainer = Depends(get_service_container)
) -> CacheInvalidationService:
    return _resolve(container, "get_invalidation_service", "Cache invalidation service")


def get_presence_tracker(container: ServiceContainer = Depends(get_service_container)) -> PresenceTracker:
    return _resolve(container, "get_presence_tracker", "Presence tracker")


def get_recommendation_service(
    container: ServiceContainer = Depends(get_service_container)
) -> TransitRecommendationService:
    return _resolve(container, "get_recommendation_service", "Recommendation service")


def get_refresher(container: ServiceContainer = Depends(get_service_container)) -> RecommendationRefresher:
    return _resolve(container, "get_refresher", "Recommendation refresher")


def get_ticket_booking_service(
    container: ServiceContainer = Depends(get_service_container)
) -> TicketBookingService:
    return _resolve(container, "get_ticket_booking_service", "Ticket booking")
