"""
Message-related Pydantic schemas
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

class MessageCreate(BaseModel):
    """Schema for posting an anonymous message"""
    content: str = Field(..., min_length=1, max_length=1000)
    is_public: bool = True

    class Config:
        str_strip_whitespace = True

class MessageResponse(BaseModel):
    """Message record"""
    id: str
    event_id: str
    content: str
    is_public: bool
    is_deleted: bool = False
    created_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None

    class Config:
        from_attributes = True
