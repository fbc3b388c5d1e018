"""Reservation management API endpoints"""

from datetime import date, time
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from foodai.api.auth import get_current_active_user, require_role
from foodai.api.deps import get_availability_checker, get_repository, get_workflow
from foodai.api.restaurants import ensure_restaurant_access
from foodai.database import get_db
from foodai.errors import PermissionDeniedError
from foodai.models.user import User, UserRole
from foodai.reservations.availability import AvailabilityChecker
from foodai.reservations.repository import ReservationRepository, to_admin_view, to_view
from foodai.reservations.workflow import ReservationWorkflow
from foodai.schemas.reservation import (
    ReservationCreate,
    ReservationStatusUpdate,
    ReservationCancel,
    ReservationReschedule,
    ReservationView,
    ReservationAdminView,
    ReservationListResponse,
    AvailabilityResponse,
    RescheduleResponse,
    PendingCountResponse,
    StatusSummaryResponse,
    ReservationAnalyticsResponse,
)

router = APIRouter()


def _list_response(rows, counts) -> ReservationListResponse:
    return ReservationListResponse(
        items=[to_admin_view(row) for row in rows],
        total=len(rows),
        counts=counts,
    )


async def _scope_restaurant(
    db: AsyncSession,
    restaurant_id: Optional[UUID],
    current_user: User,
) -> Optional[UUID]:
    """Admins may look platform-wide; owners only at their own restaurant"""
    if restaurant_id is None:
        if current_user.role != UserRole.ADMIN:
            raise PermissionDeniedError("restaurant_id is required")
        return None
    await ensure_restaurant_access(db, restaurant_id, current_user)
    return restaurant_id


@router.post("", response_model=ReservationView, status_code=201)
async def create_reservation(
    reservation_data: ReservationCreate,
    current_user: User = Depends(get_current_active_user),
    workflow: ReservationWorkflow = Depends(get_workflow),
):
    """Book a table; the restaurant confirms later"""
    result = await workflow.create(current_user, reservation_data)
    return to_view(result.reservation)


@router.get("/mine", response_model=List[ReservationView])
async def list_my_reservations(
    current_user: User = Depends(get_current_active_user),
    repository: ReservationRepository = Depends(get_repository),
):
    """Current user's reservations, most recent first"""
    rows = await repository.get_reservations_by_user_id(current_user.id)
    return [to_view(row) for row in rows]


@router.get("/all", response_model=ReservationListResponse)
async def list_all_reservations(
    current_user: User = Depends(require_role(UserRole.ADMIN)),
    repository: ReservationRepository = Depends(get_repository),
):
    """Every reservation on the platform (admin only)"""
    rows = await repository.get_all_reservations()
    return _list_response(rows, await repository.get_status_summary())


@router.get("/restaurant/{restaurant_id}", response_model=ReservationListResponse)
async def list_restaurant_reservations(
    restaurant_id: UUID,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
    repository: ReservationRepository = Depends(get_repository),
):
    """Reservations of one restaurant (owner or admin)"""
    await ensure_restaurant_access(db, restaurant_id, current_user)
    rows = await repository.get_reservations_by_restaurant_id(restaurant_id)
    return _list_response(rows, await repository.get_status_summary(restaurant_id))


@router.get("/pending-count", response_model=PendingCountResponse)
async def get_pending_count(
    restaurant_id: Optional[UUID] = None,
    current_user: User = Depends(require_role(UserRole.RESTAURANT, UserRole.ADMIN)),
    db: AsyncSession = Depends(get_db),
    repository: ReservationRepository = Depends(get_repository),
):
    """Pending badge for the restaurant and admin dashboards"""
    restaurant_id = await _scope_restaurant(db, restaurant_id, current_user)
    count = await repository.get_pending_reservations_count(restaurant_id)
    return PendingCountResponse(restaurant_id=restaurant_id, count=count)


@router.get("/summary", response_model=StatusSummaryResponse)
async def get_status_summary(
    restaurant_id: Optional[UUID] = None,
    current_user: User = Depends(require_role(UserRole.RESTAURANT, UserRole.ADMIN)),
    db: AsyncSession = Depends(get_db),
    repository: ReservationRepository = Depends(get_repository),
):
    """Reservation counts grouped by status"""
    restaurant_id = await _scope_restaurant(db, restaurant_id, current_user)
    counts = await repository.get_status_summary(restaurant_id)
    return StatusSummaryResponse(restaurant_id=restaurant_id, total=sum(counts.values()), counts=counts)


@router.get("/analytics/{restaurant_id}", response_model=ReservationAnalyticsResponse)
async def get_restaurant_analytics(
    restaurant_id: UUID,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
    repository: ReservationRepository = Depends(get_repository),
):
    """Dashboard counters for one restaurant"""
    await ensure_restaurant_access(db, restaurant_id, current_user)
    stats = await repository.get_restaurant_analytics(restaurant_id)
    return ReservationAnalyticsResponse(restaurant_id=restaurant_id, **stats)


@router.get("/{reservation_id}", response_model=ReservationAdminView)
async def get_reservation(
    reservation_id: UUID,
    current_user: User = Depends(get_current_active_user),
    workflow: ReservationWorkflow = Depends(get_workflow),
):
    """Get one reservation the caller may see"""
    reservation = await workflow.repository.get_reservation(reservation_id)
    workflow.authorize(current_user, reservation)
    return to_admin_view(reservation)


@router.patch("/{reservation_id}/status", response_model=ReservationAdminView)
async def update_reservation_status(
    reservation_id: UUID,
    status_data: ReservationStatusUpdate,
    current_user: User = Depends(get_current_active_user),
    workflow: ReservationWorkflow = Depends(get_workflow),
):
    """Confirm, complete or cancel a reservation"""
    result = await workflow.change_status(
        current_user,
        reservation_id,
        status_data.status,
        status_data.reason_cancellation,
    )
    return to_admin_view(result.reservation)


@router.post("/{reservation_id}/cancel", response_model=ReservationAdminView)
async def cancel_reservation(
    reservation_id: UUID,
    cancel_data: Optional[ReservationCancel] = None,
    current_user: User = Depends(get_current_active_user),
    workflow: ReservationWorkflow = Depends(get_workflow),
):
    """Cancel a reservation with an optional reason"""
    reason = cancel_data.reason if cancel_data else None
    result = await workflow.cancel(current_user, reservation_id, reason)
    return to_admin_view(result.reservation)


@router.put("/{reservation_id}/reschedule", response_model=RescheduleResponse)
async def reschedule_reservation(
    reservation_id: UUID,
    reschedule_data: ReservationReschedule,
    current_user: User = Depends(get_current_active_user),
    workflow: ReservationWorkflow = Depends(get_workflow),
):
    """Move a pending or confirmed reservation to another slot"""
    result = await workflow.reschedule(
        current_user,
        reservation_id,
        reschedule_data.reservation_date,
        reschedule_data.reservation_time,
        reschedule_data.reason,
    )
    return RescheduleResponse(
        message="Reservation rescheduled" if result.changed else "Reservation unchanged",
        reservation=to_admin_view(result.reservation),
        emails_sent=result.emails_sent,
    )


@router.get("/{reservation_id}/availability", response_model=AvailabilityResponse)
async def check_availability(
    reservation_id: UUID,
    slot_date: date = Query(..., alias="date"),
    slot_time: time = Query(..., alias="time"),
    current_user: User = Depends(get_current_active_user),
    workflow: ReservationWorkflow = Depends(get_workflow),
    checker: AvailabilityChecker = Depends(get_availability_checker),
):
    """Whether the reservation's restaurant has room at another slot"""
    reservation = await workflow.repository.get_reservation(reservation_id)
    workflow.authorize(current_user, reservation)
    result = await checker.check_with_timeout(reservation_id, slot_date, slot_time)
    return AvailabilityResponse(**result.to_dict())
