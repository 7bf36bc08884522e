"""
Event expiry classification
"""

from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any

from whispqr.core.config import settings

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class EventStatus(str, Enum):
    ACTIVE = "active"
    EXPIRED = "expired"
    DELETED = "deleted"


def as_utc(value: Any) -> datetime:
    """Coerce a stored timestamp to an aware UTC datetime.

    Accepts datetimes (naive ones are taken as UTC, Firestore timestamps are
    datetime subclasses), ISO-8601 strings and epoch seconds. Anything else
    is treated as the epoch.
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str):
        try:
            dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return EPOCH
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            dt = datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return EPOCH
    else:
        return EPOCH

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def status(
    created_at: Any,
    is_deleted: bool,
    now: datetime,
    lifetime_hours: int = settings.EVENT_LIFETIME_HOURS,
) -> EventStatus:
    """Classify an event as active, expired or deleted.

    Deletion wins over everything. An event stays active for exactly
    ``lifetime_hours`` after creation and expires strictly after that. The
    host's ``is_active`` toggle is not considered here.
    """
    if is_deleted:
        return EventStatus.DELETED
    if as_utc(now) - as_utc(created_at) > timedelta(hours=lifetime_hours):
        return EventStatus.EXPIRED
    return EventStatus.ACTIVE
