"""
Internal data structures for cache bookkeeping, presence tracking and
recommendation refresh events.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from .domain import Location, TransitOption, WaitingSpot


@dataclass
class CacheEntry:
    """Local tier entry. Expired iff ttl is set and more than ttl seconds elapsed."""
    value: Any
    stored_at_epoch_ms: float
    ttl_seconds: Optional[float] = None

    def is_expired(self, now_epoch_ms: float) -> bool:
        if not self.ttl_seconds:
            return False
        return now_epoch_ms - self.stored_at_epoch_ms > self.ttl_seconds * 1000


@dataclass(frozen=True)
class RemoteResult:
    """
    Outcome of a remote tier call.

    ok is False for any failure (absent configuration, transport error,
    timeout, failure response); value carries the response data otherwise.
    """
    ok: bool
    value: Any = None
    error: Optional[str] = None

    @classmethod
    def success(cls, value: Any = None) -> "RemoteResult":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: str) -> "RemoteResult":
        return cls(ok=False, error=error)


@dataclass(frozen=True)
class WaitingSpotTransition:
    """Emitted when presence flips or the matched spot changes"""
    is_in_spot: bool
    spot: Optional[WaitingSpot]
    previous_spot: Optional[WaitingSpot]
    location: Location
    timestamp: datetime = field(default_factory=datetime.utcnow)

    @property
    def entered(self) -> bool:
        return self.is_in_spot and self.spot is not None

    @property
    def left(self) -> bool:
        return not self.is_in_spot and self.previous_spot is not None


@dataclass
class PresenceState:
    current: Optional[Location]
    heading: int
    is_in_waiting_spot: bool
    active_waiting_spot: Optional[WaitingSpot]
    last_update: Optional[datetime]


@dataclass
class RecommendationUpdate:
    """Published by the refresher after each refresh or when leaving a spot"""
    spot_id: Optional[str]
    recommendations: Dict[str, List[TransitOption]]
    generated_at: datetime = field(default_factory=datetime.utcnow)
    error: Optional[str] = None


@dataclass
class PurchaseResult:
    """Outcome reported by the ticket-purchase collaborator"""
    success: bool
    ticket_id: Optional[str] = None
    error: Optional[str] = None
    error_code: Optional[str] = None
