"""In-process change stream for the reservations table"""

import inspect
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional
import structlog

logger = structlog.get_logger()

INSERT = "INSERT"
UPDATE = "UPDATE"
DELETE = "DELETE"


@dataclass
class ReservationChange:
    """Before/after row snapshots for one committed write"""
    event_type: str
    new: Optional[Dict[str, Any]] = None
    old: Optional[Dict[str, Any]] = None
    occurred_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def row(self) -> Dict[str, Any]:
        return self.new or self.old or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "eventType": self.event_type,
            "new": self.new,
            "old": self.old,
            "occurred_at": self.occurred_at.isoformat(),
        }


class Subscription:
    """Handle returned by subscribe(); unsubscribe() is idempotent"""

    def __init__(self, hub: "ReservationChangeHub", callback: Callable):
        self._hub = hub
        self.callback = callback
        self.active = True

    def unsubscribe(self) -> None:
        if self.active:
            self.active = False
            self._hub._remove(self)


class ReservationChangeHub:
    """
    Fan-out of reservation changes to subscribers.

    Callbacks may be plain functions or coroutine functions. A failing
    subscriber is logged and skipped; the others still receive the change.
    """

    def __init__(self):
        self._subscriptions: List[Subscription] = []

    def subscribe(self, callback: Callable[[ReservationChange], Any]) -> Subscription:
        subscription = Subscription(self, callback)
        self._subscriptions.append(subscription)
        return subscription

    def _remove(self, subscription: Subscription) -> None:
        try:
            self._subscriptions.remove(subscription)
        except ValueError:
            pass

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    async def publish(self, change: ReservationChange) -> None:
        logger.debug(
            "Publishing reservation change",
            event_type=change.event_type,
            reservation_id=change.row.get("id"),
            subscribers=len(self._subscriptions),
        )
        for subscription in list(self._subscriptions):
            if not subscription.active:
                continue
            try:
                result = subscription.callback(change)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error(
                    "Reservation change subscriber failed",
                    event_type=change.event_type,
                    error=str(e),
                )


# Global hub shared by the API process
hub = ReservationChangeHub()


def get_change_hub() -> ReservationChangeHub:
    return hub
