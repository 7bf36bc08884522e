"""
Database models package
"""

from .event import Event
from .message import Message

__all__ = ["Event", "Message"]
