"""Notification log model"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Text
from sqlalchemy.dialects.postgresql import UUID

from foodai.database import Base


class NotificationLog(Base):
    """One row per transactional email; failed rows are the dead letters"""
    __tablename__ = "notification_logs"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    reservation_id = Column(UUID(as_uuid=True), ForeignKey("reservations.id"))

    kind = Column(String(50), nullable=False)  # created, confirmed, welcome, ...
    recipient = Column(String(255), nullable=False)
    dedupe_key = Column(String(255), unique=True, nullable=False)

    # Rendered message, kept so dead letters can be redelivered as-is
    subject = Column(String(500), nullable=False)
    html = Column(Text, nullable=False)

    status = Column(String(20), nullable=False)  # sent, failed
    attempts = Column(Integer, default=0)
    last_error = Column(Text)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
