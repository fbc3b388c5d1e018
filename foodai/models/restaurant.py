"""Restaurant model"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, Integer, Float, DateTime, Time, ForeignKey, Text, Enum
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
import enum

from foodai.database import Base


class RestaurantStatus(str, enum.Enum):
    """Only active restaurants accept reservations"""
    ACTIVE = "active"
    PENDING = "pending"
    SUSPENDED = "suspended"


class Restaurant(Base):
    """Restaurants listed on the platform"""
    __tablename__ = "restaurants"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    owner_id = Column(UUID(as_uuid=True), ForeignKey("users.id"))

    # Business information
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(20))
    description = Column(Text)
    address = Column(Text)
    city = Column(String(100))
    country = Column(String(100))
    cuisine_type = Column(String(100))
    logo_url = Column(String(500))
    rating = Column(Float)

    # Opening hours, display only
    open_time = Column(Time)
    close_time = Column(Time)

    status = Column(Enum(RestaurantStatus), default=RestaurantStatus.PENDING, nullable=False)

    # Overrides the platform default when set
    slot_capacity = Column(Integer)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    owner = relationship("User", back_populates="restaurants")
    dishes = relationship("Dish", back_populates="restaurant", cascade="all, delete-orphan")
    reservations = relationship("Reservation", back_populates="restaurant")
