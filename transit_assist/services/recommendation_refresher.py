"""
Drives recommendation refreshes from presence transitions.

Refreshes once immediately on entering a waiting spot and then on a fixed
timer while inside; the timer is restarted when the matched spot changes and
canceled on leaving.
"""

import logging
from datetime import datetime
from typing import Callable, List, Optional, Sequence

from transit_assist.config.settings import RecommendationSettings
from transit_assist.core.events import EventChannel, Unsubscribe
from transit_assist.core.scheduling import PeriodicTask
from transit_assist.models.domain import TravelPlan, WaitingSpot
from transit_assist.models.internal_models import RecommendationUpdate, WaitingSpotTransition
from transit_assist.services.presence_tracker import PresenceTracker
from transit_assist.services.recommendation_service import (
    Recommendations,
    TransitRecommendationService,
)

logger = logging.getLogger(__name__)


class RecommendationRefresher:
    def __init__(
        self,
        tracker: PresenceTracker,
        engine: TransitRecommendationService,
        settings: Optional[RecommendationSettings] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.tracker = tracker
        self.engine = engine
        self.settings = settings or engine.settings
        self._clock = clock

        self.travel_plans: List[TravelPlan] = []
        self.latest: Recommendations = {}
        self.last_error: Optional[str] = None
        self.updates: EventChannel[RecommendationUpdate] = EventChannel("recommendations")

        self._task: Optional[PeriodicTask] = None
        self._spot: Optional[WaitingSpot] = None
        self._unsubscribe: Optional[Unsubscribe] = None

    @property
    def is_refreshing(self) -> bool:
        return self._task is not None and self._task.is_running

    def attach(self) -> None:
        """Start listening to presence transitions."""
        if self._unsubscribe is None:
            self._unsubscribe = self.tracker.on_waiting_spot_change(self.handle_transition)

    async def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        await self.stop()

    def set_travel_plans(self, plans: Sequence[TravelPlan]) -> None:
        self.travel_plans = list(plans)
        logger.info(f"Refresher tracking {len(self.travel_plans)} travel plans")

    def handle_transition(self, transition: WaitingSpotTransition) -> None:
        if transition.entered:
            self._start(transition.spot)
        elif transition.left:
            self._cancel()
            self.latest = {}
            self.updates.publish(RecommendationUpdate(spot_id=None, recommendations={}))

    async def refresh(self) -> Recommendations:
        """
        Compute recommendations for the current spot and publish them.

        A failed computation is recorded in last_error and published as an
        update carrying the error; it does not stop the timer.
        """
        spot = self._spot
        location = self.tracker.current_location
        if spot is None or location is None:
            return {}

        current = self.tracker.active_waiting_spot
        if current is not None and current.id == spot.id:
            spot = self._spot = current

        try:
            recommendations = await self.engine.get_recommendations(
                location,
                self.tracker.current_heading,
                spot,
                self.travel_plans,
                now=self._clock(),
            )
        except Exception as e:
            self.last_error = str(e)
            logger.error(f"Recommendation refresh failed for spot {spot.id}: {e}", exc_info=True)
            self.updates.publish(RecommendationUpdate(spot_id=spot.id, recommendations={}, error=str(e)))
            return {}

        self.last_error = None
        self.latest = recommendations
        self.updates.publish(RecommendationUpdate(spot_id=spot.id, recommendations=recommendations))
        return recommendations

    async def stop(self) -> None:
        if self._task is not None:
            task, self._task = self._task, None
            await task.stop()
        self._spot = None

    def _start(self, spot: WaitingSpot) -> None:
        self._cancel()
        self._spot = spot
        self._task = PeriodicTask(
            f"recommendation-refresh:{spot.id}",
            self.settings.refresh_interval_seconds,
            self.refresh,
            run_immediately=True,
        )
        self._task.start()
        logger.info(f"Started recommendation refresh for waiting spot {spot.id}")

    def _cancel(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None
            logger.info("Stopped recommendation refresh")
        self._spot = None
