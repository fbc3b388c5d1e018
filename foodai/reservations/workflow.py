"""
Reservation workflow.

Every action runs in two phases: the storage mutation first, then the
notifications. A failed or skipped email never alters or rolls back a
committed reservation change.
"""

from dataclasses import dataclass, field
from datetime import date, time
from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from foodai.config import Settings, settings as default_settings
from foodai.errors import InvalidTransitionError, PermissionDeniedError, SlotUnavailableError
from foodai.models.reservation import Reservation, ReservationStatus
from foodai.models.user import User, UserRole
from foodai.notifications.dispatcher import (
    STATUS_KINDS,
    NotificationDispatcher,
    NotificationKind,
    NotificationOutcome,
)
from foodai.realtime.hub import ReservationChangeHub
from foodai.reservations.availability import AvailabilityChecker, AvailabilityResult, slot_unchanged
from foodai.reservations.lifecycle import can_reschedule, ensure_transition
from foodai.reservations.repository import ReservationRepository
from foodai.schemas.reservation import ReservationCreate

logger = structlog.get_logger()


@dataclass
class WorkflowResult:
    reservation: Reservation
    notifications: List[NotificationOutcome] = field(default_factory=list)
    changed: bool = True
    availability: Optional[AvailabilityResult] = None

    @property
    def emails_sent(self) -> Dict[str, bool]:
        """Delivery per audience, as reported back to the caller"""
        sent: Dict[str, bool] = {}
        for outcome in self.notifications:
            audience = "restaurant" if outcome.kind == NotificationKind.RESTAURANT_NEW_RESERVATION else "customer"
            sent[audience] = sent.get(audience, False) or outcome.sent
        return sent


class ReservationWorkflow:
    """Role-aware reservation actions with their notification side effects"""

    def __init__(
        self,
        db: AsyncSession,
        dispatcher: Optional[NotificationDispatcher] = None,
        repository: Optional[ReservationRepository] = None,
        checker: Optional[AvailabilityChecker] = None,
        settings: Optional[Settings] = None,
        hub: Optional[ReservationChangeHub] = None,
    ):
        self.settings = settings or default_settings
        self.db = db
        self.dispatcher = dispatcher or NotificationDispatcher(db, self.settings)
        self.repository = repository or ReservationRepository(db, hub=hub, settings=self.settings)
        self.checker = checker or AvailabilityChecker(db, self.settings)

    def authorize(self, actor: User, reservation: Reservation) -> None:
        """Clients act on their own reservations, owners on their restaurant's"""
        if actor.role == UserRole.ADMIN:
            return
        if actor.role == UserRole.CLIENT and reservation.user_id == actor.id:
            return
        if (
            actor.role == UserRole.RESTAURANT
            and reservation.restaurant is not None
            and reservation.restaurant.owner_id == actor.id
        ):
            return
        raise PermissionDeniedError("Not allowed to act on this reservation")

    async def create(self, actor: User, payload: ReservationCreate) -> WorkflowResult:
        if actor.role != UserRole.CLIENT:
            raise PermissionDeniedError("Only clients can create reservations")

        reservation = await self.repository.create_reservation(actor.id, payload)

        notifications = [
            await self.dispatcher.send(
                NotificationKind.CREATED,
                actor.email,
                reservation,
                name=actor.full_name,
            )
        ]
        restaurant = reservation.restaurant
        if restaurant is not None and restaurant.email:
            notifications.append(
                await self.dispatcher.send(
                    NotificationKind.RESTAURANT_NEW_RESERVATION,
                    restaurant.email,
                    reservation,
                    name=restaurant.name,
                )
            )
        return WorkflowResult(reservation=reservation, notifications=notifications)

    async def change_status(
        self,
        actor: User,
        reservation_id: UUID,
        status: ReservationStatus,
        reason: Optional[str] = None,
    ) -> WorkflowResult:
        reservation = await self.repository.get_reservation(reservation_id)
        self.authorize(actor, reservation)
        target = ensure_transition(reservation.status, status, actor.role)

        reservation = await self.repository.update_reservation_status(
            reservation_id,
            target,
            reason_cancellation=reason if target == ReservationStatus.CANCELLED else None,
        )
        logger.info(
            "Reservation status changed",
            reservation_id=str(reservation_id),
            status=target.value,
            actor_role=actor.role.value,
        )
        return WorkflowResult(reservation=reservation, notifications=await self._notify_customer(
            STATUS_KINDS[target.value], reservation
        ))

    async def cancel(self, actor: User, reservation_id: UUID, reason: Optional[str] = None) -> WorkflowResult:
        return await self.change_status(actor, reservation_id, ReservationStatus.CANCELLED, reason)

    async def reschedule(
        self,
        actor: User,
        reservation_id: UUID,
        new_date: date,
        new_time: time,
        reason: Optional[str] = None,
    ) -> WorkflowResult:
        """
        Move a pending or confirmed reservation to another slot.

        An unchanged slot is a no-op. A saturated slot raises
        SlotUnavailableError before anything is written; an unverifiable one
        is let through with a warning in the logs.
        """
        reservation = await self.repository.get_reservation(reservation_id)
        self.authorize(actor, reservation)
        if not can_reschedule(reservation.status):
            raise InvalidTransitionError(f"Cannot reschedule a {reservation.status} reservation")

        if slot_unchanged(reservation, new_date, new_time):
            return WorkflowResult(reservation=reservation, changed=False)

        self.repository.validate_reschedule_date(new_date)

        availability = await self.checker.check_with_timeout(reservation_id, new_date, new_time)
        if availability.verified and not availability.available:
            raise SlotUnavailableError(availability.message, availability.existing_reservations)
        if not availability.verified:
            logger.warning("Rescheduling without verified availability", reservation_id=str(reservation_id))

        previous_slot = (reservation.reservation_date, reservation.reservation_time)
        reservation = await self.repository.reschedule_reservation(reservation_id, new_date, new_time, reason)

        notifications = await self._notify_customer(
            NotificationKind.RESCHEDULED, reservation, previous_slot=previous_slot
        )
        return WorkflowResult(reservation=reservation, notifications=notifications, availability=availability)

    async def _notify_customer(self, kind: NotificationKind, reservation: Reservation, **kwargs) -> List[NotificationOutcome]:
        user = reservation.user
        if user is None or not user.email:
            logger.warning("Reservation has no customer email", reservation_id=str(reservation.id), kind=kind.value)
            return []
        return [await self.dispatcher.send(kind, user.email, reservation, name=user.full_name, **kwargs)]
