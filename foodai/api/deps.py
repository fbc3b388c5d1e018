"""Shared FastAPI dependencies for the reservation services"""

from typing import Optional

from fastapi import Depends
import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from foodai.config import Settings, get_settings
from foodai.database import get_db
from foodai.notifications.dispatcher import NotificationDispatcher
from foodai.realtime.hub import ReservationChangeHub, get_change_hub
from foodai.reservations.availability import AvailabilityChecker
from foodai.reservations.repository import ReservationRepository
from foodai.reservations.workflow import ReservationWorkflow


def get_mail_transport() -> Optional[httpx.AsyncBaseTransport]:
    """Default network transport; tests swap in httpx.MockTransport"""
    return None


def get_dispatcher(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_mail_transport),
) -> NotificationDispatcher:
    return NotificationDispatcher(db, settings, transport=transport)


def get_repository(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
    hub: ReservationChangeHub = Depends(get_change_hub),
) -> ReservationRepository:
    return ReservationRepository(db, hub=hub, settings=settings)


def get_availability_checker(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> AvailabilityChecker:
    return AvailabilityChecker(db, settings)


def get_workflow(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    repository: ReservationRepository = Depends(get_repository),
    checker: AvailabilityChecker = Depends(get_availability_checker),
) -> ReservationWorkflow:
    return ReservationWorkflow(
        db,
        dispatcher=dispatcher,
        repository=repository,
        checker=checker,
        settings=settings,
    )
