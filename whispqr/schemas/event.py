"""
Event-related Pydantic schemas
"""

from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, Field

class EventCreate(BaseModel):
    """Schema for creating an event"""
    name: str = Field(..., min_length=3, max_length=100)
    description: str = Field("", max_length=500)
    location: str = Field("", max_length=100)
    allow_public_messages: bool = True

    class Config:
        str_strip_whitespace = True

class EventResponse(BaseModel):
    """Full event record"""
    id: str
    name: str
    description: str = ""
    location: str = ""
    host_id: str
    host_name: str
    allow_public_messages: bool
    string_code: str
    is_active: bool
    is_deleted: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class GuestEventView(BaseModel):
    """What a guest sees after joining: no host identifiers"""
    id: str
    name: str
    description: str = ""
    location: str = ""
    host_name: str
    allow_public_messages: bool
    string_code: str

    class Config:
        from_attributes = True

class HostEventList(BaseModel):
    """A host's events split by expiry"""
    active: List[EventResponse] = []
    expired: List[EventResponse] = []

class EventStatusUpdate(BaseModel):
    """Host toggle for accepting guests"""
    is_active: bool

class JoinByCodeRequest(BaseModel):
    """Guest join request using the 6-character code"""
    code: str

class JoinByUrlRequest(BaseModel):
    """Guest join request using a scanned QR payload"""
    url: str
