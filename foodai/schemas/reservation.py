"""Reservation schemas"""

from datetime import date, datetime, time
from typing import Optional, List, Dict
from uuid import UUID
from pydantic import BaseModel, field_validator

from foodai.models.reservation import ReservationStatus
from foodai.reservations.schedule import slot_minute


class SelectedDish(BaseModel):
    """Dish pre-selected while booking"""
    dish_id: UUID
    quantity: int = 1


class ReservationCreate(BaseModel):
    """Create reservation request"""
    restaurant_id: UUID
    reservation_date: date
    reservation_time: time
    guests_count: int
    special_request: Optional[str] = None
    selected_dishes: Optional[List[SelectedDish]] = None

    @field_validator("reservation_time")
    @classmethod
    def truncate_to_minute(cls, value: time) -> time:
        return slot_minute(value)


class ReservationStatusUpdate(BaseModel):
    """Restaurant/admin status change"""
    status: ReservationStatus
    reason_cancellation: Optional[str] = None


class ReservationCancel(BaseModel):
    """Cancel request"""
    reason: Optional[str] = None


class ReservationReschedule(BaseModel):
    """Move a reservation to a new slot"""
    reservation_date: date
    reservation_time: time
    reason: Optional[str] = None

    @field_validator("reservation_time")
    @classmethod
    def truncate_to_minute(cls, value: time) -> time:
        return slot_minute(value)


class ReservationView(BaseModel):
    """Reservation with restaurant display fields joined in"""
    id: UUID
    user_id: UUID
    restaurant_id: UUID
    reservation_date: date
    reservation_time: str  # HH:MM
    guests_count: int
    status: ReservationStatus
    special_request: Optional[str] = None
    reason_cancellation: Optional[str] = None
    reschedule_reason: Optional[str] = None
    selected_dishes: Optional[List[SelectedDish]] = None
    created_at: datetime
    updated_at: datetime
    restaurant_name: Optional[str] = None
    restaurant_logo: Optional[str] = None


class ReservationAdminView(ReservationView):
    """Reservation as seen by restaurant owners and admins"""
    restaurant_owner_id: Optional[UUID] = None
    user_name: Optional[str] = None
    user_email: str = ""


class ReservationListResponse(BaseModel):
    """Reservation list with per-status counts"""
    items: List[ReservationAdminView]
    total: int
    counts: Dict[str, int] = {}


class AvailabilityResponse(BaseModel):
    """Availability check response"""
    available: bool
    message: str
    existing_reservations: int
    verified: bool = True


class RescheduleResponse(BaseModel):
    """Reschedule result with the notification channels that fired"""
    message: str
    reservation: ReservationAdminView
    emails_sent: Dict[str, bool] = {}


class PendingCountResponse(BaseModel):
    restaurant_id: Optional[UUID] = None
    count: int


class StatusSummaryResponse(BaseModel):
    restaurant_id: Optional[UUID] = None
    total: int
    counts: Dict[str, int]


class ReservationAnalyticsResponse(BaseModel):
    """Reservation statistics for a restaurant dashboard"""
    restaurant_id: UUID
    total_reservations: int = 0
    pending_reservations: int = 0
    confirmed_reservations: int = 0
    cancelled_reservations: int = 0
    completed_reservations: int = 0
    upcoming_reservations: int = 0
    today_reservations: int = 0
    this_week_reservations: int = 0
    this_month_reservations: int = 0
