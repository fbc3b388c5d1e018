"""Slot availability for rescheduling"""

import asyncio
from dataclasses import dataclass
from datetime import date, time
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from foodai.config import Settings, settings as default_settings
from foodai.errors import BackendError, NotFoundError
from foodai.models.reservation import Reservation, ReservationStatus
from foodai.models.restaurant import Restaurant
from foodai.reservations.schedule import slot_minute

logger = structlog.get_logger()

AVAILABLE_MESSAGE = "Slot available"
FULL_MESSAGE = "Slot is fully booked"
UNVERIFIED_MESSAGE = "Could not verify availability"


@dataclass
class AvailabilityResult:
    available: bool
    message: str
    existing_reservations: int
    verified: bool = True

    def to_dict(self) -> dict:
        return {
            "available": self.available,
            "message": self.message,
            "existing_reservations": self.existing_reservations,
            "verified": self.verified,
        }


def slot_unchanged(reservation: Reservation, new_date: date, new_time: time) -> bool:
    """Same date and same HH:MM as the reservation's current slot"""
    return (
        reservation.reservation_date == new_date
        and reservation.reservation_time.strftime("%H:%M") == new_time.strftime("%H:%M")
    )


class AvailabilityChecker:
    """Counts the other live reservations sitting on a slot"""

    def __init__(self, db: AsyncSession, settings: Optional[Settings] = None):
        self.db = db
        self.settings = settings or default_settings

    async def check(self, reservation_id: UUID, new_date: date, new_time: time) -> AvailabilityResult:
        """
        Check a slot for the reservation's restaurant, excluding the
        reservation itself.
        """
        result = await self.db.execute(
            select(Reservation, Restaurant.slot_capacity)
            .join(Restaurant, Restaurant.id == Reservation.restaurant_id)
            .where(Reservation.id == reservation_id)
        )
        found = result.first()
        if found is None:
            raise NotFoundError(f"Reservation {reservation_id} not found")
        reservation, slot_capacity = found

        # Compared in Python at minute precision; stored times may carry seconds
        slot = slot_minute(new_time)
        times_result = await self.db.execute(
            select(Reservation.reservation_time).where(
                Reservation.restaurant_id == reservation.restaurant_id,
                Reservation.id != reservation.id,
                Reservation.reservation_date == new_date,
                Reservation.status != ReservationStatus.CANCELLED.value,
            )
        )
        existing = sum(1 for stored in times_result.scalars() if slot_minute(stored) == slot)
        capacity = slot_capacity or self.settings.default_slot_capacity
        available = existing < capacity

        logger.info(
            "Availability checked",
            reservation_id=str(reservation_id),
            date=new_date.isoformat(),
            time=new_time.strftime("%H:%M"),
            existing_reservations=existing,
            capacity=capacity,
        )

        return AvailabilityResult(
            available=available,
            message=AVAILABLE_MESSAGE if available else FULL_MESSAGE,
            existing_reservations=existing,
        )

    async def check_with_timeout(
        self,
        reservation_id: UUID,
        new_date: date,
        new_time: time,
        timeout: Optional[float] = None,
    ) -> AvailabilityResult:
        """
        Bounded check. Timeouts and storage errors come back unverified so
        the user can proceed with a warning.
        """
        timeout = timeout if timeout is not None else self.settings.availability_timeout_seconds
        try:
            return await asyncio.wait_for(self.check(reservation_id, new_date, new_time), timeout=timeout)
        except NotFoundError:
            raise
        except (asyncio.TimeoutError, SQLAlchemyError, BackendError, OSError) as e:
            logger.warning(
                "Availability check could not complete",
                reservation_id=str(reservation_id),
                error=str(e) or type(e).__name__,
            )
        return AvailabilityResult(
            available=True,
            message=UNVERIFIED_MESSAGE,
            existing_reservations=0,
            verified=False,
        )

    async def check_if_changed(
        self,
        reservation: Reservation,
        new_date: date,
        new_time: time,
    ) -> Optional[AvailabilityResult]:
        """None when the slot is the reservation's own; no query is issued"""
        if slot_unchanged(reservation, new_date, new_time):
            return None
        return await self.check_with_timeout(reservation.id, new_date, new_time)
