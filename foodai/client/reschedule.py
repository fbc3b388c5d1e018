"""Reschedule form with debounced availability checks"""

import asyncio
from datetime import date, datetime, time
from types import SimpleNamespace
from typing import Any, Dict, Optional

import structlog

from foodai.client.api import APIError, FoodAIClient
from foodai.errors import SlotUnavailableError, ValidationError
from foodai.reservations.lifecycle import can_reschedule_without_warning

logger = structlog.get_logger()


def _as_date(value) -> date:
    return value if isinstance(value, date) else date.fromisoformat(value)


def _as_time(value) -> time:
    return value if isinstance(value, time) else time.fromisoformat(value)


class RescheduleForm:
    """
    Tracks the slot a user is typing in. Each change restarts a short timer;
    when it fires the availability endpoint is asked, unless the slot is the
    reservation's current one.
    """

    def __init__(self, client: FoodAIClient, reservation: Dict[str, Any], debounce_seconds: float = 0.5):
        self.client = client
        self.reservation = reservation
        self.debounce_seconds = debounce_seconds
        self.slot_date = _as_date(reservation["reservation_date"])
        self.slot_time = _as_time(reservation["reservation_time"])
        self.availability: Optional[Dict[str, Any]] = None
        self.checking = False
        self._task: Optional[asyncio.Task] = None

    @property
    def unchanged(self) -> bool:
        current_date = _as_date(self.reservation["reservation_date"])
        current_time = _as_time(self.reservation["reservation_time"])
        return self.slot_date == current_date and self.slot_time.strftime("%H:%M") == current_time.strftime("%H:%M")

    @property
    def can_submit(self) -> bool:
        if self.checking:
            return False
        return self.availability is None or bool(self.availability.get("available"))

    def needs_warning(self, now: Optional[datetime] = None) -> bool:
        """Visit is less than a day away"""
        reservation = SimpleNamespace(
            reservation_date=_as_date(self.reservation["reservation_date"]),
            reservation_time=_as_time(self.reservation["reservation_time"]),
        )
        return not can_reschedule_without_warning(reservation, now or datetime.now())

    def set_slot(self, slot_date, slot_time) -> None:
        self.slot_date = _as_date(slot_date)
        self.slot_time = _as_time(slot_time)
        if self._task is not None and not self._task.done():
            self._task.cancel()

        if self.unchanged:
            self.availability = None
            self.checking = False
            self._task = None
            return

        self.checking = True
        self._task = asyncio.get_running_loop().create_task(self._check_later())

    async def wait(self) -> Optional[Dict[str, Any]]:
        """Wait for the pending check, if any"""
        if self._task is not None:
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        return self.availability

    async def _check_later(self) -> None:
        await asyncio.sleep(self.debounce_seconds)
        try:
            self.availability = await self.client.check_availability(
                self.reservation["id"], self.slot_date, self.slot_time
            )
        except APIError as e:
            logger.warning("Availability check failed", reservation_id=str(self.reservation["id"]), detail=e.detail)
            self.availability = {
                "available": True,
                "message": "Could not verify availability",
                "existing_reservations": 0,
                "verified": False,
            }
        finally:
            if asyncio.current_task() is self._task:
                self.checking = False

    async def submit(self, reason: Optional[str] = None) -> Optional[Dict[str, Any]]:
        """Send the reschedule; None when the slot did not change"""
        await self.wait()
        if self.unchanged:
            return None
        if not self.can_submit:
            raise SlotUnavailableError(
                self.availability.get("message", "Slot is fully booked"),
                self.availability.get("existing_reservations", 0),
            )
        if self.slot_date <= date.today():
            raise ValidationError("Reservations can only be moved to tomorrow or later")

        result = await self.client.reschedule_reservation(
            self.reservation["id"], self.slot_date, self.slot_time, reason
        )
        self.reservation = result["reservation"]
        logger.info("Reservation rescheduled from form", reservation_id=str(self.reservation["id"]))
        return result

