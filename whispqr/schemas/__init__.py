"""
Pydantic schemas package
"""

from .common import *
from .event import *
from .message import *

__all__ = [
    "StandardResponse",
    "ErrorResponse",
    "EventCreate",
    "EventResponse",
    "GuestEventView",
    "HostEventList",
    "EventStatusUpdate",
    "JoinByCodeRequest",
    "JoinByUrlRequest",
    "MessageCreate",
    "MessageResponse",
]
