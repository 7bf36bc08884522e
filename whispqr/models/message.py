"""
Message model

Messages are anonymous: no column may identify the guest who wrote them.
"""

from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from whispqr.core.db import Base
from whispqr.models.event import utcnow

class Message(Base):
    __tablename__ = "messages"

    id = Column(String(32), primary_key=True)
    event_id = Column(String(32), ForeignKey("events.id"), nullable=False, index=True)
    content = Column(String(1000), nullable=False)
    is_public = Column(Boolean, nullable=False, default=False)
    is_deleted = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    event = relationship("Event", back_populates="messages")
