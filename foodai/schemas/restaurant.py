"""Restaurant and menu schemas"""

from datetime import datetime, time
from typing import Optional, List
from uuid import UUID
from pydantic import BaseModel, EmailStr

from foodai.models.restaurant import RestaurantStatus


class RestaurantCreate(BaseModel):
    """Create restaurant request (owner onboarding)"""
    name: str
    email: EmailStr
    phone: Optional[str] = None
    description: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    cuisine_type: Optional[str] = None
    open_time: Optional[time] = None
    close_time: Optional[time] = None
    logo_url: Optional[str] = None


class RestaurantUpdate(BaseModel):
    """Update restaurant request"""
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    description: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    cuisine_type: Optional[str] = None
    open_time: Optional[time] = None
    close_time: Optional[time] = None
    logo_url: Optional[str] = None
    slot_capacity: Optional[int] = None


class RestaurantStatusUpdate(BaseModel):
    """Admin moderation"""
    status: RestaurantStatus


class RestaurantResponse(BaseModel):
    """Restaurant response"""
    id: UUID
    owner_id: Optional[UUID]
    name: str
    email: str
    phone: Optional[str]
    description: Optional[str]
    address: Optional[str]
    city: Optional[str]
    country: Optional[str]
    cuisine_type: Optional[str]
    open_time: Optional[time]
    close_time: Optional[time]
    logo_url: Optional[str]
    rating: Optional[float]
    status: RestaurantStatus
    slot_capacity: Optional[int]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class DishCreate(BaseModel):
    """Create dish request"""
    name: str
    description: Optional[str] = None
    price_cents: int
    category: Optional[str] = None
    image_url: Optional[str] = None
    is_available: bool = True
    ingredients: List[str] = []
    allergens: List[str] = []
    preparation_time_minutes: Optional[int] = None


class DishUpdate(BaseModel):
    """Update dish request"""
    name: Optional[str] = None
    description: Optional[str] = None
    price_cents: Optional[int] = None
    category: Optional[str] = None
    image_url: Optional[str] = None
    is_available: Optional[bool] = None
    ingredients: Optional[List[str]] = None
    allergens: Optional[List[str]] = None
    preparation_time_minutes: Optional[int] = None


class DishResponse(BaseModel):
    """Dish response"""
    id: UUID
    restaurant_id: UUID
    name: str
    description: Optional[str]
    price_cents: int
    category: Optional[str]
    image_url: Optional[str]
    is_available: bool
    ingredients: List[str]
    allergens: List[str]
    preparation_time_minutes: Optional[int]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
