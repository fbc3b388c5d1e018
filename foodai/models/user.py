"""User profile model"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Enum
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
import enum

from foodai.database import Base


class UserRole(str, enum.Enum):
    """Roles decide which reservation surface a user gets"""
    CLIENT = "client"
    RESTAURANT = "restaurant"
    ADMIN = "admin"


class UserStatus(str, enum.Enum):
    ACTIVE = "active"
    PENDING = "pending"
    SUSPENDED = "suspended"


class User(Base):
    """Platform users: diners, restaurant owners and administrators"""
    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # Authentication
    email = Column(String(255), unique=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)

    # Profile
    first_name = Column(String(100))
    last_name = Column(String(100))
    phone = Column(String(20))
    profile_image = Column(String(500))

    role = Column(Enum(UserRole), default=UserRole.CLIENT, nullable=False)
    status = Column(Enum(UserStatus), default=UserStatus.ACTIVE, nullable=False)

    # Tokens
    refresh_token = Column(String(500))

    # Timestamps
    last_login = Column(DateTime)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    restaurants = relationship("Restaurant", back_populates="owner")
    reservations = relationship("Reservation", back_populates="user")

    @property
    def full_name(self) -> str:
        """First and last name, falling back to the email"""
        pieces = [piece.strip() for piece in (self.first_name, self.last_name) if piece and piece.strip()]
        return " ".join(pieces) or self.email

    @property
    def is_active(self) -> bool:
        return self.status != UserStatus.SUSPENDED
