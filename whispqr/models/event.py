"""
Event model
"""

from datetime import datetime, timezone
from sqlalchemy import Column, String, Boolean, DateTime, Index
from sqlalchemy.orm import relationship

from whispqr.core.db import Base

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

class Event(Base):
    __tablename__ = "events"

    id = Column(String(32), primary_key=True)
    name = Column(String(100), nullable=False)
    description = Column(String(500), nullable=False, default="")
    location = Column(String(100), nullable=False, default="")
    host_id = Column(String(128), nullable=False, index=True)
    host_name = Column(String(255), nullable=False)
    allow_public_messages = Column(Boolean, nullable=False, default=True)
    # Denormalized from id so lookups by code can use the index
    string_code = Column(String(6), nullable=False, index=True)
    is_active = Column(Boolean, nullable=False, default=True)
    is_deleted = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    # Deleting an event is a soft delete, messages are never cascaded
    messages = relationship("Message", back_populates="event")

    __table_args__ = (
        Index("ix_events_code_live", "string_code", "is_active", "is_deleted"),
    )
