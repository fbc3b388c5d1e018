"""
Notification dispatcher.

Renders transactional emails and posts them to the mail API. Delivery is
best-effort: every outcome is recorded in NotificationLog, failures are
retried with backoff and finally kept as dead letters, and nothing here
raises into the caller.
"""

import asyncio
import enum
from dataclasses import dataclass
from datetime import date, time
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

import httpx
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from foodai.config import Settings, settings as default_settings
from foodai.models.dish import Dish
from foodai.models.notification import NotificationLog
from foodai.models.reservation import Reservation
from foodai.notifications import templates
from foodai.notifications.templates import DishLine, RenderedEmail, ReservationDetails

logger = structlog.get_logger()

SENT = "sent"
FAILED = "failed"


class NotificationKind(str, enum.Enum):
    CREATED = "created"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    RESCHEDULED = "rescheduled"
    WELCOME = "welcome"
    RESTAURANT_NEW_RESERVATION = "restaurant_new_reservation"


STATUS_KINDS = {
    "confirmed": NotificationKind.CONFIRMED,
    "cancelled": NotificationKind.CANCELLED,
    "completed": NotificationKind.COMPLETED,
}


@dataclass
class NotificationOutcome:
    kind: NotificationKind
    recipient: str
    sent: bool
    skipped: bool = False
    attempts: int = 0
    error: Optional[str] = None


class MailDeliveryError(Exception):
    """Mail API answered with a non-2xx status"""


def dedupe_key(kind: NotificationKind, recipient: str, reservation: Optional[Reservation] = None) -> str:
    """
    reservation_id:kind for reservation mail. A reschedule key also carries
    the new slot so each move notifies once; welcome mail is keyed by address.
    """
    if kind == NotificationKind.WELCOME or reservation is None:
        return f"{kind.value}:{recipient.lower()}"
    key = f"{reservation.id}:{kind.value}"
    if kind == NotificationKind.RESCHEDULED:
        key += f":{reservation.reservation_date.isoformat()}T{reservation.reservation_time.strftime('%H:%M')}"
    return key


class NotificationDispatcher:
    """Sends reservation lifecycle and account emails"""

    def __init__(
        self,
        db: AsyncSession,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.db = db
        self.settings = settings or default_settings
        self.transport = transport

    @property
    def endpoint(self) -> str:
        return f"{self.settings.mail_api_base_url.rstrip('/')}/email/send"

    async def send(
        self,
        kind: NotificationKind,
        recipient: Optional[str],
        reservation: Optional[Reservation] = None,
        name: Optional[str] = None,
        role: Optional[str] = None,
        previous_slot: Optional[Tuple[date, time]] = None,
    ) -> NotificationOutcome:
        """Render and deliver one notification. Never raises."""
        kind = NotificationKind(kind)
        if not recipient:
            logger.warning("Notification skipped, no recipient", kind=kind.value)
            return NotificationOutcome(kind=kind, recipient="", sent=False, skipped=True, error="missing recipient")

        try:
            key = dedupe_key(kind, recipient, reservation)
            reservation_id = reservation.id if reservation is not None else None

            existing = await self._find_log(key)
            if existing is not None and existing.status == SENT:
                logger.info("Notification already sent", kind=kind.value, dedupe_key=key)
                return NotificationOutcome(kind=kind, recipient=recipient, sent=False, skipped=True)

            email = await self._render(kind, recipient, reservation, name, role, previous_slot)
        except (SQLAlchemyError, KeyError, ValueError, AttributeError) as e:
            logger.error("Notification could not be prepared", kind=kind.value, recipient=recipient, error=str(e))
            await self._rollback()
            return NotificationOutcome(kind=kind, recipient=recipient, sent=False, error=str(e))

        attempts, error = await self._deliver(recipient, email)
        outcome = NotificationOutcome(
            kind=kind,
            recipient=recipient,
            sent=error is None,
            attempts=attempts,
            error=error,
        )

        if error is None:
            logger.info("Notification sent", kind=kind.value, recipient=recipient, attempts=attempts)
        else:
            logger.error(
                "Notification delivery failed",
                kind=kind.value,
                recipient=recipient,
                attempts=attempts,
                error=error,
            )

        await self._record(existing, key, kind, recipient, reservation_id, email, outcome)
        return outcome

    async def redeliver_failed(self, limit: int = 50) -> Dict[str, int]:
        """Retry dead-lettered notifications with their stored content"""
        stats = {"retried": 0, "delivered": 0, "failed": 0}
        try:
            result = await self.db.execute(
                select(NotificationLog)
                .where(NotificationLog.status == FAILED)
                .order_by(NotificationLog.created_at)
                .limit(limit)
            )
            logs = list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Could not load dead letters", error=str(e))
            await self._rollback()
            return stats

        for log in logs:
            stats["retried"] += 1
            attempts, error = await self._deliver(log.recipient, RenderedEmail(subject=log.subject, html=log.html))
            log.attempts = (log.attempts or 0) + attempts
            if error is None:
                log.status = SENT
                log.last_error = None
                stats["delivered"] += 1
            else:
                log.last_error = error
                stats["failed"] += 1

        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            logger.error("Could not record redelivery", error=str(e))
            await self._rollback()

        logger.info("Dead letters redelivered", **stats)
        return stats

    async def _deliver(self, recipient: str, email: RenderedEmail) -> Tuple[int, Optional[str]]:
        """POST with retries; returns (attempts, last error or None)"""
        attempts = max(1, self.settings.mail_retry_attempts)
        payload = {"to": recipient, "subject": email.subject, "html": email.html}
        error = None

        async with httpx.AsyncClient(timeout=self.settings.mail_timeout_seconds, transport=self.transport) as client:
            for attempt in range(1, attempts + 1):
                try:
                    response = await client.post(self.endpoint, json=payload)
                    if response.status_code >= 300:
                        raise MailDeliveryError(f"Mail API returned {response.status_code}")
                    return attempt, None
                except (httpx.HTTPError, MailDeliveryError) as e:
                    error = str(e) or type(e).__name__
                    logger.warning("Mail API call failed", recipient=recipient, attempt=attempt, error=error)
                    if attempt < attempts:
                        await asyncio.sleep(self.settings.mail_retry_backoff_seconds * (2 ** (attempt - 1)))

        return attempts, error

    async def _render(
        self,
        kind: NotificationKind,
        recipient: str,
        reservation: Optional[Reservation],
        name: Optional[str],
        role: Optional[str],
        previous_slot: Optional[Tuple[date, time]],
    ) -> RenderedEmail:
        locale = self.settings.mail_locale

        if kind == NotificationKind.WELCOME:
            return templates.welcome(name or recipient, role or "client")

        if reservation is None:
            raise ValueError(f"{kind.value} notification needs a reservation")

        details = await self._details(reservation, previous_slot)

        if kind == NotificationKind.RESTAURANT_NEW_RESERVATION:
            restaurant_name = name or details.restaurant_name or recipient
            return templates.restaurant_new_reservation(restaurant_name, details, locale)

        customer = name or details.customer_name or recipient
        if kind == NotificationKind.CREATED:
            return templates.reservation_created(customer, details, locale)
        if kind == NotificationKind.RESCHEDULED:
            return templates.reservation_rescheduled(customer, details, locale)
        return templates.reservation_status(customer, details, kind.value, locale)

    async def _details(
        self,
        reservation: Reservation,
        previous_slot: Optional[Tuple[date, time]] = None,
    ) -> ReservationDetails:
        user = reservation.user
        restaurant = reservation.restaurant
        previous_date, previous_time = previous_slot or (None, None)
        return ReservationDetails(
            reservation_date=reservation.reservation_date,
            reservation_time=reservation.reservation_time,
            guests_count=reservation.guests_count,
            restaurant_name=restaurant.name if restaurant else None,
            special_request=reservation.special_request,
            reason_cancellation=reservation.reason_cancellation,
            reschedule_reason=reservation.reschedule_reason,
            previous_date=previous_date,
            previous_time=previous_time,
            customer_name=user.full_name if user else None,
            customer_email=user.email if user else None,
            dishes=await self._dish_lines(reservation),
        )

    async def _dish_lines(self, reservation: Reservation) -> List[DishLine]:
        selected: List[Dict[str, Any]] = reservation.selected_dishes or []
        if not selected:
            return []

        quantities = {UUID(str(item["dish_id"])): int(item.get("quantity", 1)) for item in selected}
        result = await self.db.execute(
            select(Dish).where(
                Dish.id.in_(list(quantities)),
                Dish.restaurant_id == reservation.restaurant_id,
            )
        )
        return [
            DishLine(
                name=dish.name,
                category=dish.category,
                price_cents=dish.price_cents or 0,
                quantity=quantities[dish.id],
            )
            for dish in result.scalars().all()
        ]

    async def _find_log(self, key: str) -> Optional[NotificationLog]:
        result = await self.db.execute(select(NotificationLog).where(NotificationLog.dedupe_key == key))
        return result.scalar_one_or_none()

    async def _record(
        self,
        existing: Optional[NotificationLog],
        key: str,
        kind: NotificationKind,
        recipient: str,
        reservation_id: Optional[UUID],
        email: RenderedEmail,
        outcome: NotificationOutcome,
    ) -> None:
        log = existing or NotificationLog(
            dedupe_key=key,
            kind=kind.value,
            recipient=recipient,
            reservation_id=reservation_id,
            attempts=0,
        )
        log.subject = email.subject
        log.html = email.html
        log.status = SENT if outcome.sent else FAILED
        log.attempts = (log.attempts or 0) + outcome.attempts
        log.last_error = outcome.error
        try:
            if existing is None:
                self.db.add(log)
            await self.db.commit()
        except SQLAlchemyError as e:
            logger.error("Could not record notification", dedupe_key=key, error=str(e))
            await self._rollback()

    async def _rollback(self) -> None:
        try:
            await self.db.rollback()
        except SQLAlchemyError as e:
            logger.error("Rollback failed", error=str(e))
