"""
Geofence presence tracking.

Consumes location samples and magnetometer readings, resolves which active
waiting spot (if any) contains the user and publishes transitions. Overlapping
spots resolve by list order: the first spot whose radius contains the sample
wins, not the nearest one.
"""

import logging
from datetime import datetime
from typing import Callable, List, Optional, Sequence

from pydantic import TypeAdapter

from transit_assist.config.settings import CacheSettings, PresenceSettings
from transit_assist.core import cache_keys
from transit_assist.core.cache_store import CacheStore
from transit_assist.core.events import EventChannel, Unsubscribe
from transit_assist.core.geo_utils import heading_from_magnetometer, is_within_radius
from transit_assist.models.domain import Location, WaitingSpot
from transit_assist.models.internal_models import PresenceState, WaitingSpotTransition

logger = logging.getLogger(__name__)

_spots_adapter = TypeAdapter(List[WaitingSpot])


class PresenceTracker:
    """
    Tracks location, heading and waiting-spot presence for one user.

    Args:
        cache: Optional cache store used for the per-area waiting-spot list
        settings: Presence settings (magnetometer availability)
        cache_settings: Cache settings (area precision, waiting-spot TTL)
    """

    def __init__(
        self,
        cache: Optional[CacheStore] = None,
        settings: Optional[PresenceSettings] = None,
        cache_settings: Optional[CacheSettings] = None,
    ):
        self.cache = cache
        self.settings = settings or PresenceSettings()
        self.cache_settings = cache_settings or (cache.settings if cache else CacheSettings())

        self.current_location: Optional[Location] = None
        self.current_heading: int = 0
        self.waiting_spots: List[WaitingSpot] = []
        self.active_waiting_spot: Optional[WaitingSpot] = None
        self.is_in_waiting_spot = False
        self.last_update: Optional[datetime] = None

        self.locations: EventChannel[Location] = EventChannel("location")
        self.headings: EventChannel[int] = EventChannel("heading")
        self.transitions: EventChannel[WaitingSpotTransition] = EventChannel("waiting-spot")

    async def set_waiting_spots(self, spots: Sequence[WaitingSpot]) -> Optional[WaitingSpotTransition]:
        """
        Replace the candidate spots and re-evaluate presence.

        Inactive spots are dropped. When the current location is known the
        list is cached under the location's area bucket.

        Returns:
            The transition caused by the new list, if any
        """
        self.waiting_spots = [spot for spot in spots if spot.is_active]
        logger.info(f"Tracking {len(self.waiting_spots)} active waiting spots")

        if self.current_location is None:
            return None

        if self.cache is not None:
            await self.cache.set(
                self._area_key(self.current_location),
                self.waiting_spots,
                ttl=self.cache_settings.waiting_spots_ttl_seconds,
            )
        return self._check_waiting_spots(self.current_location)

    async def get_cached_waiting_spots(self, location: Location) -> Optional[List[WaitingSpot]]:
        if self.cache is None:
            return None
        cached = await self.cache.get(self._area_key(location))
        if cached is None:
            return None
        return _spots_adapter.validate_python(cached)

    def update_location(self, location: Location) -> Optional[WaitingSpotTransition]:
        """
        Record a location sample and publish any resulting transition.

        Location subscribers are notified for every sample; transition
        subscribers only when presence flips or the matched spot changes.
        """
        self.current_location = location
        self.last_update = datetime.utcnow()
        self.locations.publish(location)
        return self._check_waiting_spots(location)

    def update_heading(self, heading: int) -> int:
        self.current_heading = heading % 360
        self.headings.publish(self.current_heading)
        return self.current_heading

    def update_heading_from_magnetometer(self, x: float, y: float, z: float) -> int:
        """Derive and publish the heading from a raw magnetometer vector."""
        if not self.settings.magnetometer_available:
            return self.update_heading(0)
        return self.update_heading(heading_from_magnetometer(x, y, z))

    def find_waiting_spot(self, location: Location) -> Optional[WaitingSpot]:
        for spot in self.waiting_spots:
            if is_within_radius(spot.center, location, spot.radius):
                return spot
        return None

    def on_location_change(self, callback: Callable[[Location], None]) -> Unsubscribe:
        return self.locations.subscribe(callback)

    def on_heading_change(self, callback: Callable[[int], None]) -> Unsubscribe:
        return self.headings.subscribe(callback)

    def on_waiting_spot_change(self, callback: Callable[[WaitingSpotTransition], None]) -> Unsubscribe:
        return self.transitions.subscribe(callback)

    def get_current_state(self) -> PresenceState:
        return PresenceState(
            current=self.current_location,
            heading=self.current_heading,
            is_in_waiting_spot=self.is_in_waiting_spot,
            active_waiting_spot=self.active_waiting_spot,
            last_update=self.last_update,
        )

    def cleanup(self) -> None:
        """Drop all subscribers and forget the tracked state."""
        self.locations.clear()
        self.headings.clear()
        self.transitions.clear()
        self.waiting_spots = []
        self.active_waiting_spot = None
        self.is_in_waiting_spot = False
        self.current_location = None
        self.current_heading = 0
        self.last_update = None

    def _check_waiting_spots(self, location: Location) -> Optional[WaitingSpotTransition]:
        matched = self.find_waiting_spot(location)
        was_in_spot = self.is_in_waiting_spot
        previous = self.active_waiting_spot

        is_in_spot = matched is not None
        spot_changed = (
            is_in_spot and previous is not None and matched.id != previous.id
        )
        if is_in_spot == was_in_spot and not spot_changed:
            # Same spot id: keep the latest copy so edits (stops, radius) take effect
            self.active_waiting_spot = matched
            return None

        self.is_in_waiting_spot = is_in_spot
        self.active_waiting_spot = matched

        transition = WaitingSpotTransition(
            is_in_spot=is_in_spot,
            spot=matched,
            previous_spot=previous,
            location=location,
        )
        if is_in_spot:
            logger.info(f"Entered waiting spot {matched.id}")
        else:
            logger.info(f"Left waiting spot {previous.id if previous else 'unknown'}")

        self.transitions.publish(transition)
        return transition

    def _area_key(self, location: Location) -> str:
        area_hash = cache_keys.create_location_hash(
            location.latitude, location.longitude, self.cache_settings.area_precision
        )
        return cache_keys.waiting_spots_key(area_hash)
