"""
Reservation repository.

Translates between the reservations table and the reservation views the API
returns. Writes commit immediately and publish a change event afterwards;
storage failures surface as BackendError and are retried with backoff.
"""

import asyncio
from datetime import date, datetime, time, timedelta
from typing import Any, Awaitable, Callable, Dict, List, Optional
from uuid import UUID

from sqlalchemy import select, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
import structlog

from foodai.config import Settings, settings as default_settings
from foodai.errors import BackendError, InvalidTransitionError, NotFoundError, ValidationError
from foodai.models.reservation import Reservation, ReservationStatus
from foodai.models.restaurant import Restaurant, RestaurantStatus
from foodai.realtime.hub import INSERT, UPDATE, ReservationChange, ReservationChangeHub, hub as default_hub
from foodai.reservations.lifecycle import can_reschedule
from foodai.reservations.schedule import format_time, slot_minute
from foodai.schemas.reservation import (
    ReservationAdminView,
    ReservationCreate,
    ReservationView,
)

logger = structlog.get_logger()

REQUIRED_CREATE_FIELDS = ("restaurant_id", "reservation_date", "reservation_time", "guests_count")


def to_view(row: Reservation) -> ReservationView:
    """Client-facing view with restaurant display fields"""
    return ReservationView(**_view_fields(row))


def to_admin_view(row: Reservation) -> ReservationAdminView:
    """Restaurant/admin view, adds requester and owner display fields"""
    fields = _view_fields(row)
    user = row.user
    fields.update(
        restaurant_owner_id=row.restaurant.owner_id if row.restaurant else None,
        user_name=user.full_name if user else None,
        user_email=(user.email or "") if user else "",
    )
    return ReservationAdminView(**fields)


def _view_fields(row: Reservation) -> Dict[str, Any]:
    status = ReservationStatus(row.status)
    return {
        "id": row.id,
        "user_id": row.user_id,
        "restaurant_id": row.restaurant_id,
        "reservation_date": row.reservation_date,
        "reservation_time": format_time(row.reservation_time),
        "guests_count": row.guests_count,
        "status": status,
        "special_request": row.special_request,
        # Only meaningful for cancelled reservations
        "reason_cancellation": row.reason_cancellation if status == ReservationStatus.CANCELLED else None,
        "reschedule_reason": row.reschedule_reason,
        "selected_dishes": row.selected_dishes or None,
        "created_at": row.created_at,
        "updated_at": row.updated_at,
        "restaurant_name": row.restaurant.name if row.restaurant else None,
        "restaurant_logo": row.restaurant.logo_url if row.restaurant else None,
    }


def validate_create(payload: ReservationCreate, max_party_size: int, now: datetime) -> None:
    """Shape checks that need no storage access"""
    for field in REQUIRED_CREATE_FIELDS:
        if getattr(payload, field, None) in (None, ""):
            raise ValidationError(f"Missing required field: {field}")

    if not 1 <= payload.guests_count <= max_party_size:
        raise ValidationError(f"Party size must be between 1 and {max_party_size}")

    requested = datetime.combine(payload.reservation_date, payload.reservation_time)
    if requested <= now:
        raise ValidationError("Reservation date and time must be in the future")

    for dish in payload.selected_dishes or []:
        if dish.quantity < 1:
            raise ValidationError("Selected dish quantity must be at least 1")


def snapshot(row: Reservation) -> Dict[str, Any]:
    """JSON-friendly row image for change events"""
    return {
        "id": str(row.id),
        "user_id": str(row.user_id),
        "restaurant_id": str(row.restaurant_id),
        "reservation_date": row.reservation_date.isoformat() if row.reservation_date else None,
        "reservation_time": row.reservation_time.isoformat() if row.reservation_time else None,
        "guests_count": row.guests_count,
        "status": row.status,
        "special_request": row.special_request,
        "reason_cancellation": row.reason_cancellation,
        "updated_at": row.updated_at.isoformat() if row.updated_at else None,
    }


class ReservationRepository:
    """Query layer for reservations"""

    def __init__(
        self,
        db: AsyncSession,
        hub: Optional[ReservationChangeHub] = None,
        settings: Optional[Settings] = None,
        now: Optional[Callable[[], datetime]] = None,
    ):
        self.db = db
        self.hub = hub or default_hub
        self.settings = settings or default_settings
        self._now = now or datetime.now

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    async def _run(self, operation: str, fn: Callable[[], Awaitable[Any]]) -> Any:
        """Run fn, retrying storage failures with exponential backoff"""
        attempts = max(1, self.settings.backend_retry_attempts)
        for attempt in range(1, attempts + 1):
            try:
                return await fn()
            except SQLAlchemyError as e:
                await self.db.rollback()
                logger.warning(
                    "Reservation storage operation failed",
                    operation=operation,
                    attempt=attempt,
                    error=str(e),
                )
                if attempt == attempts:
                    raise BackendError(f"{operation} failed: {e}") from e
                await asyncio.sleep(self.settings.backend_retry_backoff_seconds * (2 ** (attempt - 1)))

    def _loaded_query(self):
        return select(Reservation).options(
            selectinload(Reservation.restaurant),
            selectinload(Reservation.user),
        )

    def _ordered(self, query):
        return query.order_by(
            Reservation.reservation_date.desc(),
            Reservation.reservation_time.desc(),
        )

    async def _load(self, reservation_id: UUID) -> Reservation:
        result = await self.db.execute(
            self._loaded_query()
            .where(Reservation.id == reservation_id)
            .execution_options(populate_existing=True)
        )
        row = result.scalar_one_or_none()
        if row is None:
            raise NotFoundError(f"Reservation {reservation_id} not found")
        return row

    async def _publish(self, event_type: str, row: Reservation, old: Optional[Dict[str, Any]] = None) -> None:
        await self.hub.publish(ReservationChange(event_type=event_type, new=snapshot(row), old=old))

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate_create(self, payload: ReservationCreate) -> None:
        validate_create(payload, self.settings.max_party_size, self._now())

    def validate_reschedule_date(self, new_date: date) -> None:
        if new_date < self._now().date() + timedelta(days=1):
            raise ValidationError("Reservations can only be moved to tomorrow or later")

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_reservation(self, reservation_id: UUID) -> Reservation:
        return await self._run("get_reservation", lambda: self._load(reservation_id))

    async def get_reservations_by_user_id(self, user_id: Optional[UUID]) -> List[Reservation]:
        """User's reservations, most recent first"""
        if not user_id:
            return []

        async def _query():
            result = await self.db.execute(
                self._ordered(self._loaded_query().where(Reservation.user_id == user_id))
            )
            return list(result.scalars().all())

        return await self._run("get_reservations_by_user_id", _query)

    async def get_reservations_by_restaurant_id(self, restaurant_id: Optional[UUID]) -> List[Reservation]:
        """All reservations for a restaurant, any status"""
        if not restaurant_id:
            return []

        async def _query():
            result = await self.db.execute(
                self._ordered(self._loaded_query().where(Reservation.restaurant_id == restaurant_id))
            )
            return list(result.scalars().all())

        return await self._run("get_reservations_by_restaurant_id", _query)

    async def get_all_reservations(self) -> List[Reservation]:
        """Every reservation on the platform (admin)"""
        async def _query():
            result = await self.db.execute(self._ordered(self._loaded_query()))
            return list(result.scalars().all())

        return await self._run("get_all_reservations", _query)

    async def get_pending_reservations_count(self, restaurant_id: Optional[UUID] = None) -> int:
        async def _query():
            query = select(func.count(Reservation.id)).where(
                Reservation.status == ReservationStatus.PENDING.value
            )
            if restaurant_id:
                query = query.where(Reservation.restaurant_id == restaurant_id)
            result = await self.db.execute(query)
            return result.scalar() or 0

        return await self._run("get_pending_reservations_count", _query)

    async def get_status_summary(self, restaurant_id: Optional[UUID] = None) -> Dict[str, int]:
        """Reservation counts grouped by status, every status present"""
        async def _query():
            query = select(Reservation.status, func.count(Reservation.id)).group_by(Reservation.status)
            if restaurant_id:
                query = query.where(Reservation.restaurant_id == restaurant_id)
            result = await self.db.execute(query)
            counts = {status.value: 0 for status in ReservationStatus}
            for status, count in result.all():
                counts[status] = count
            return counts

        return await self._run("get_status_summary", _query)

    async def get_restaurant_analytics(self, restaurant_id: UUID, today: Optional[date] = None) -> Dict[str, int]:
        """Dashboard counters computed from the restaurant's reservations"""
        today = today or self._now().date()
        week_start = today - timedelta(days=(today.weekday() + 1) % 7)  # weeks start on Sunday
        month_start = today.replace(day=1)

        rows = await self.get_reservations_by_restaurant_id(restaurant_id)
        statuses = [row.status for row in rows]

        return {
            "total_reservations": len(rows),
            "pending_reservations": statuses.count(ReservationStatus.PENDING.value),
            "confirmed_reservations": statuses.count(ReservationStatus.CONFIRMED.value),
            "cancelled_reservations": statuses.count(ReservationStatus.CANCELLED.value),
            "completed_reservations": statuses.count(ReservationStatus.COMPLETED.value),
            "upcoming_reservations": sum(
                1 for row in rows
                if row.reservation_date >= today and row.status != ReservationStatus.CANCELLED.value
            ),
            "today_reservations": sum(1 for row in rows if row.reservation_date == today),
            "this_week_reservations": sum(1 for row in rows if row.reservation_date >= week_start),
            "this_month_reservations": sum(1 for row in rows if row.reservation_date >= month_start),
        }

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create_reservation(self, user_id: UUID, payload: ReservationCreate) -> Reservation:
        """Insert a pending reservation"""
        self.validate_create(payload)

        restaurant = await self._run(
            "load_restaurant",
            lambda: self.db.get(Restaurant, payload.restaurant_id),
        )
        if restaurant is None:
            raise NotFoundError(f"Restaurant {payload.restaurant_id} not found")
        if restaurant.status != RestaurantStatus.ACTIVE:
            raise ValidationError("Restaurant is not accepting reservations")

        selected = (
            [{"dish_id": str(d.dish_id), "quantity": d.quantity} for d in payload.selected_dishes]
            if payload.selected_dishes
            else None
        )

        async def _insert():
            reservation = Reservation(
                user_id=user_id,
                restaurant_id=payload.restaurant_id,
                reservation_date=payload.reservation_date,
                reservation_time=slot_minute(payload.reservation_time),
                guests_count=payload.guests_count,
                status=ReservationStatus.PENDING.value,
                special_request=payload.special_request,
                selected_dishes=selected,
            )
            self.db.add(reservation)
            await self.db.commit()
            return await self._load(reservation.id)

        row = await self._run("create_reservation", _insert)
        logger.info(
            "Reservation created",
            reservation_id=str(row.id),
            restaurant_id=str(row.restaurant_id),
            guests_count=row.guests_count,
        )
        await self._publish(INSERT, row)
        return row

    async def update_reservation_status(
        self,
        reservation_id: UUID,
        status: ReservationStatus,
        reason_cancellation: Optional[str] = None,
    ) -> Reservation:
        """Write a new status; the caller owns notification side effects"""
        status = ReservationStatus(status)

        async def _update():
            row = await self._load(reservation_id)
            before = snapshot(row)
            row.status = status.value
            row.reason_cancellation = reason_cancellation if status == ReservationStatus.CANCELLED else None
            await self.db.commit()
            return await self._load(reservation_id), before

        row, before = await self._run("update_reservation_status", _update)
        logger.info("Reservation status updated", reservation_id=str(row.id), status=row.status)
        await self._publish(UPDATE, row, before)
        return row

    async def cancel_reservation(self, reservation_id: UUID, reason: Optional[str] = None) -> Reservation:
        """Set status cancelled and record the reason; date/time untouched"""
        return await self.update_reservation_status(
            reservation_id, ReservationStatus.CANCELLED, reason_cancellation=reason
        )

    async def reschedule_reservation(
        self,
        reservation_id: UUID,
        new_date: date,
        new_time: time,
        reason: Optional[str] = None,
    ) -> Reservation:
        """Move a pending/confirmed reservation to a new slot, status unchanged"""
        self.validate_reschedule_date(new_date)

        async def _update():
            row = await self._load(reservation_id)
            if not can_reschedule(row.status):
                raise InvalidTransitionError(f"Cannot reschedule a {row.status} reservation")
            before = snapshot(row)
            row.reservation_date = new_date
            row.reservation_time = slot_minute(new_time)
            row.reschedule_reason = reason
            await self.db.commit()
            return await self._load(reservation_id), before

        row, before = await self._run("reschedule_reservation", _update)
        logger.info(
            "Reservation rescheduled",
            reservation_id=str(row.id),
            reservation_date=row.reservation_date.isoformat(),
            reservation_time=format_time(row.reservation_time),
        )
        await self._publish(UPDATE, row, before)
        return row
