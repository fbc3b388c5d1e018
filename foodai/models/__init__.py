"""Database models"""

from foodai.models.user import User, UserRole, UserStatus
from foodai.models.restaurant import Restaurant, RestaurantStatus
from foodai.models.dish import Dish
from foodai.models.reservation import Reservation, ReservationStatus
from foodai.models.notification import NotificationLog

__all__ = [
    "User",
    "UserRole",
    "UserStatus",
    "Restaurant",
    "RestaurantStatus",
    "Dish",
    "Reservation",
    "ReservationStatus",
    "NotificationLog",
]
