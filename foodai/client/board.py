"""
Reservation boards for the client, restaurant and admin surfaces.

A board loads the reservations its user may see, offers the lifecycle
actions the role allows, applies status changes optimistically and
re-fetches whenever the change stream reports a write.
"""

from typing import Any, Dict, List, Optional

import structlog

from foodai.client.api import APIError, FoodAIClient
from foodai.client.optimistic import OptimisticList
from foodai.client.reschedule import RescheduleForm
from foodai.client.session import SessionContext
from foodai.models.reservation import ReservationStatus
from foodai.models.user import UserRole
from foodai.realtime.hub import ReservationChange, Subscription
from foodai.reservations.lifecycle import available_actions, can_reschedule

logger = structlog.get_logger()

RESCHEDULE = "reschedule"


class ReservationBoard:
    """
    One surface's live view of reservations.

    `changes` is anything with subscribe(callback): the in-process hub, or
    the WebSocketChangeStream from client.change_stream() for a dashboard
    running outside the API process.
    """

    def __init__(
        self,
        session: SessionContext,
        changes=None,
        restaurant_id: Optional[str] = None,
        debounce_seconds: float = 0.5,
    ):
        self.session = session
        self.client: FoodAIClient = session.client
        self.role = session.role
        self.changes = changes
        self.restaurant_id = restaurant_id
        self.debounce_seconds = debounce_seconds
        self.reservations = OptimisticList()
        self.counts: Dict[str, int] = {}
        self.pending_count: Optional[int] = None
        self._subscription: Optional[Subscription] = None

    @property
    def items(self) -> List[Dict[str, Any]]:
        return self.reservations.items

    async def open(self) -> "ReservationBoard":
        if self.role == UserRole.RESTAURANT and self.restaurant_id is None:
            restaurants = await self.client.my_restaurants()
            if restaurants:
                self.restaurant_id = restaurants[0]["id"]
        await self.refresh()
        if self.changes is not None and self._subscription is None:
            self._subscription = self.changes.subscribe(self._on_change)
        return self

    async def close(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    async def refresh(self) -> None:
        if self.role == UserRole.CLIENT:
            items = await self.client.my_reservations()
        elif self.role == UserRole.ADMIN:
            data = await self.client.all_reservations()
            items, self.counts = data["items"], data["counts"]
            self.pending_count = await self.client.pending_count()
        elif self.restaurant_id is not None:
            data = await self.client.restaurant_reservations(self.restaurant_id)
            items, self.counts = data["items"], data["counts"]
        else:
            items = []
        self.reservations.replace(items)

    def actions_for(self, reservation: Dict[str, Any]) -> List[str]:
        """Statuses (and reschedule) the surface may offer for a row"""
        actions = [status.value for status in available_actions(reservation["status"], self.role)]
        if can_reschedule(reservation["status"]):
            actions.append(RESCHEDULE)
        return actions

    async def change_status(
        self,
        reservation_id: Any,
        status: ReservationStatus,
        reason: Optional[str] = None,
    ) -> Dict[str, Any]:
        status = ReservationStatus(status)
        changes = {"status": status.value}
        if status == ReservationStatus.CANCELLED:
            changes["reason_cancellation"] = reason

        async def action():
            if status == ReservationStatus.CANCELLED:
                return await self.client.cancel_reservation(reservation_id, reason)
            return await self.client.update_status(reservation_id, status.value, reason)

        try:
            return await self.reservations.patch(reservation_id, changes, action)
        except APIError as e:
            logger.warning(
                "Status change rejected, reloading",
                reservation_id=str(reservation_id),
                status=status.value,
                detail=e.detail,
            )
            await self._safe_refresh()
            raise

    async def cancel(self, reservation_id: Any, reason: Optional[str] = None) -> Dict[str, Any]:
        return await self.change_status(reservation_id, ReservationStatus.CANCELLED, reason)

    def reschedule_form(self, reservation_id: Any) -> RescheduleForm:
        reservation = self.reservations.get(reservation_id)
        if reservation is None:
            raise KeyError(f"Reservation {reservation_id} is not on this board")
        return RescheduleForm(self.client, reservation, debounce_seconds=self.debounce_seconds)

    async def _on_change(self, change: ReservationChange) -> None:
        logger.debug("Reservation change received", event_type=change.event_type, role=self.role.value)
        await self._safe_refresh()

    async def _safe_refresh(self) -> None:
        try:
            await self.refresh()
        except APIError as e:
            logger.warning("Board refresh failed", role=self.role.value, detail=e.detail)
