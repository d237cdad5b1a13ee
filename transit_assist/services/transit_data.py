"""
Transit-data collaborators.

TransitDataProvider is the port the recommendation engine calls on an arrivals
cache miss. ScheduledArrivalProvider synthesizes a fixed headway timetable
for the spot's stops; HttpTransitDataProvider queries a transit API.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Callable, List, Optional

import httpx
from pydantic import ValidationError

from transit_assist.config.settings import TransitProviderKind, TransitSettings
from transit_assist.core.exceptions import TransitDataUnavailableError
from transit_assist.models.domain import TransitArrival, WaitingSpot

logger = logging.getLogger(__name__)


class TransitDataProvider(ABC):
    """Port for fetching upcoming arrivals at a waiting spot's stops."""

    @abstractmethod
    async def fetch_arrivals(self, waiting_spot: WaitingSpot) -> List[TransitArrival]:
        raise NotImplementedError


class ScheduledArrivalProvider(TransitDataProvider):
    """Generates arrivals every headway_minutes for each line of each stop."""

    def __init__(
        self,
        arrivals_per_line: int = 3,
        headway_minutes: int = 10,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.arrivals_per_line = arrivals_per_line
        self.headway_minutes = headway_minutes
        self._clock = clock

    async def fetch_arrivals(self, waiting_spot: WaitingSpot) -> List[TransitArrival]:
        logger.info(f"Generating scheduled arrivals for waiting spot {waiting_spot.id}")
        now = self._clock()
        arrivals = []

        for stop in waiting_spot.transit_stops:
            for line in stop.lines:
                for i in range(1, self.arrivals_per_line + 1):
                    arrivals.append(TransitArrival(
                        route_id=line,
                        stop_id=stop.id,
                        arrival_time=now + timedelta(minutes=i * self.headway_minutes),
                        destination_label=f"{line} terminus",
                    ))

        arrivals.sort(key=lambda a: a.arrival_time)
        return arrivals


class HttpTransitDataProvider(TransitDataProvider):
    """
    Fetches arrivals per stop from a transit API.

    Expects GET {api_url}/stops/{stop_id}/arrivals to return a JSON list of
    arrival objects (route_id, stop_id, arrival_time, destination_label,
    delay_minutes).
    """

    def __init__(self, settings: TransitSettings, client: Optional[httpx.AsyncClient] = None):
        self.settings = settings
        self.api_url = settings.api_url.rstrip("/")
        self.timeout = settings.timeout_seconds
        self._client = client

        if not settings.api_key:
            logger.warning("Transit API key not configured. Set TRANSIT_API_KEY in .env file.")

    def _get_headers(self) -> dict:
        if not self.settings.api_key:
            return {"Accept": "application/json"}
        return {
            "Authorization": f"Bearer {self.settings.api_key}",
            "Accept": "application/json",
        }

    async def fetch_arrivals(self, waiting_spot: WaitingSpot) -> List[TransitArrival]:
        if self._client is not None:
            return await self._fetch_all(self._client, waiting_spot)

        async with httpx.AsyncClient(headers=self._get_headers(), timeout=self.timeout) as client:
            return await self._fetch_all(client, waiting_spot)

    async def _fetch_all(self, client: httpx.AsyncClient, waiting_spot: WaitingSpot) -> List[TransitArrival]:
        arrivals: List[TransitArrival] = []
        for stop in waiting_spot.transit_stops:
            arrivals.extend(await self._fetch_stop(client, stop.id))
        arrivals.sort(key=lambda a: a.arrival_time)
        return arrivals

    async def _fetch_stop(self, client: httpx.AsyncClient, stop_id: str) -> List[TransitArrival]:
        url = f"{self.api_url}/stops/{stop_id}/arrivals"
        logger.info(f"Fetching transit arrivals for stop {stop_id}")

        try:
            response = await client.get(url, headers=self._get_headers())
        except httpx.TimeoutException as e:
            raise TransitDataUnavailableError(
                f"Timeout fetching arrivals for stop {stop_id}", details={"stop_id": stop_id}
            ) from e
        except httpx.HTTPError as e:
            raise TransitDataUnavailableError(
                f"Transit API request failed for stop {stop_id}: {e}", details={"stop_id": stop_id}
            ) from e

        if response.status_code != 200:
            raise TransitDataUnavailableError(
                f"Transit API returned {response.status_code} for stop {stop_id}",
                details={"stop_id": stop_id, "status_code": response.status_code},
            )

        try:
            payload = response.json()
            items = payload.get("arrivals", []) if isinstance(payload, dict) else payload
            return [TransitArrival.model_validate({"stop_id": stop_id, **item}) for item in items]
        except (ValueError, TypeError, ValidationError) as e:
            raise TransitDataUnavailableError(
                f"Malformed arrivals payload for stop {stop_id}", details={"stop_id": stop_id}
            ) from e


def create_transit_data_provider(settings: TransitSettings) -> TransitDataProvider:
    if settings.provider == TransitProviderKind.HTTP:
        return HttpTransitDataProvider(settings)
    return ScheduledArrivalProvider(
        arrivals_per_line=settings.arrivals_per_line,
        headway_minutes=settings.headway_minutes,
    )
