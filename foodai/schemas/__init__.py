"""Pydantic schemas for request/response validation"""

from foodai.schemas.auth import (
    Token,
    RefreshRequest,
    UserCreate,
    UserResponse,
)
from foodai.schemas.restaurant import (
    RestaurantCreate,
    RestaurantUpdate,
    RestaurantStatusUpdate,
    RestaurantResponse,
    DishCreate,
    DishUpdate,
    DishResponse,
)
from foodai.schemas.reservation import (
    SelectedDish,
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
from foodai.schemas.insights import RestaurantAIInsights

__all__ = [
    "Token",
    "RefreshRequest",
    "UserCreate",
    "UserResponse",
    "RestaurantCreate",
    "RestaurantUpdate",
    "RestaurantStatusUpdate",
    "RestaurantResponse",
    "DishCreate",
    "DishUpdate",
    "DishResponse",
    "SelectedDish",
    "ReservationCreate",
    "ReservationStatusUpdate",
    "ReservationCancel",
    "ReservationReschedule",
    "ReservationView",
    "ReservationAdminView",
    "ReservationListResponse",
    "AvailabilityResponse",
    "RescheduleResponse",
    "PendingCountResponse",
    "StatusSummaryResponse",
    "ReservationAnalyticsResponse",
    "RestaurantAIInsights",
]
