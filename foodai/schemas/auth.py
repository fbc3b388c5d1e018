"""Authentication schemas"""

from datetime import datetime
from typing import Optional
from uuid import UUID
from pydantic import BaseModel, EmailStr

from foodai.models.user import UserRole, UserStatus


class Token(BaseModel):
    """JWT token response"""
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int


class RefreshRequest(BaseModel):
    """Token refresh request"""
    refresh_token: str


class UserCreate(BaseModel):
    """Self-service registration; admins are never self-registered"""
    email: EmailStr
    password: str
    first_name: str
    last_name: str = ""
    phone: Optional[str] = None
    role: UserRole = UserRole.CLIENT


class UserResponse(BaseModel):
    """User response"""
    id: UUID
    email: str
    first_name: Optional[str]
    last_name: Optional[str]
    phone: Optional[str]
    profile_image: Optional[str]
    role: UserRole
    status: UserStatus
    created_at: datetime
    last_login: Optional[datetime]

    class Config:
        from_attributes = True
