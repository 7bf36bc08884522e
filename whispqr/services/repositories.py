"""
Repository layer abstracting storage (SQLAlchemy vs Firebase Firestore).

Stores only talk to ``EventRepo`` and ``MessageRepo``; the SQL
implementations live here, the Firestore ones in ``firestore_repositories``.
"""

from __future__ import annotations

import logging
import secrets
import string
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from whispqr.models import Event, Message
from whispqr.models.event import utcnow
from whispqr.schemas.event import EventResponse
from whispqr.schemas.message import MessageResponse
from whispqr.services.errors import TransportError
from whispqr.services.live_feed import ErrorCallback, LiveFeed, Unsubscribe

logger = logging.getLogger(__name__)

ID_ALPHABET = string.ascii_letters + string.digits
ID_LENGTH = 20

Clock = Callable[[], datetime]


def generate_id() -> str:
    """Random document id in the same shape as Firestore auto ids."""
    return "".join(secrets.choice(ID_ALPHABET) for _ in range(ID_LENGTH))


# -------- Interfaces --------

class EventRepo(ABC):
    def new_id(self) -> str:
        return generate_id()

    @abstractmethod
    def insert(self, event_id: str, data: Dict[str, Any]) -> EventResponse:
        """Persist a new event in a single write."""

    @abstractmethod
    def get(self, event_id: str) -> Optional[EventResponse]:
        """Fetch an event, including deleted ones."""

    @abstractmethod
    def find_by_code(self, string_code: str) -> List[EventResponse]:
        """Active, non-deleted events carrying ``string_code``."""

    @abstractmethod
    def list_by_host(self, host_id: str) -> List[EventResponse]:
        """Non-deleted events created by ``host_id``."""

    @abstractmethod
    def update(self, event_id: str, fields: Dict[str, Any]) -> bool:
        """Update a non-deleted event; False when missing or deleted."""

    @abstractmethod
    def mark_deleted(self, event_id: str) -> bool:
        """Soft delete; False when missing or already deleted."""


class MessageRepo(ABC):
    def new_id(self) -> str:
        return generate_id()

    @abstractmethod
    def insert(self, event_id: str, content: str, is_public: bool) -> MessageResponse:
        """Append a message."""

    @abstractmethod
    def list(self, event_id: str, public_only: bool) -> List[MessageResponse]:
        """Non-deleted messages, newest first."""

    @abstractmethod
    def mark_deleted(self, event_id: str, message_id: str) -> bool:
        """Soft delete; False when missing or already deleted."""

    @abstractmethod
    def watch(
        self,
        event_id: str,
        public_only: bool,
        callback: Callable[[List[MessageResponse]], None],
        on_error: Optional[ErrorCallback] = None,
    ) -> Unsubscribe:
        """Push the filtered message list now and on every change."""


# -------- SQLAlchemy implementations --------

@contextmanager
def sql_errors(action: str):
    try:
        yield
    except SQLAlchemyError as exc:
        logger.error(f"Database error while trying to {action}: {exc}")
        raise TransportError(f"Failed to {action}", details=str(exc)) from exc


class SqlEventRepo(EventRepo):
    def __init__(self, session_factory: sessionmaker, clock: Clock = utcnow):
        self.session_factory = session_factory
        self.clock = clock

    def insert(self, event_id: str, data: Dict[str, Any]) -> EventResponse:
        now = self.clock()
        event = Event(
            id=event_id,
            is_active=True,
            is_deleted=False,
            created_at=now,
            updated_at=now,
            **data,
        )
        with sql_errors("create event"), self.session_factory() as db:
            db.add(event)
            db.commit()
            db.refresh(event)
            return EventResponse.model_validate(event)

    def get(self, event_id: str) -> Optional[EventResponse]:
        with sql_errors("load event"), self.session_factory() as db:
            event = db.get(Event, event_id)
            return EventResponse.model_validate(event) if event else None

    def find_by_code(self, string_code: str) -> List[EventResponse]:
        query = select(Event).where(
            Event.string_code == string_code,
            Event.is_active.is_(True),
            Event.is_deleted.is_(False),
        )
        with sql_errors("look up event code"), self.session_factory() as db:
            return [EventResponse.model_validate(e) for e in db.scalars(query)]

    def list_by_host(self, host_id: str) -> List[EventResponse]:
        query = select(Event).where(Event.host_id == host_id, Event.is_deleted.is_(False))
        with sql_errors("list host events"), self.session_factory() as db:
            return [EventResponse.model_validate(e) for e in db.scalars(query)]

    def update(self, event_id: str, fields: Dict[str, Any]) -> bool:
        values = dict(fields, updated_at=self.clock())
        return self._conditional_update(event_id, values, "update event")

    def mark_deleted(self, event_id: str) -> bool:
        now = self.clock()
        values = {"is_deleted": True, "deleted_at": now, "updated_at": now}
        return self._conditional_update(event_id, values, "delete event")

    def _conditional_update(self, event_id: str, values: Dict[str, Any], action: str) -> bool:
        stmt = (
            update(Event)
            .where(Event.id == event_id, Event.is_deleted.is_(False))
            .values(**values)
        )
        with sql_errors(action), self.session_factory() as db:
            result = db.execute(stmt)
            db.commit()
            return result.rowcount == 1


class SqlMessageRepo(MessageRepo):
    def __init__(
        self,
        session_factory: sessionmaker,
        feed: Optional[LiveFeed] = None,
        clock: Clock = utcnow,
    ):
        self.session_factory = session_factory
        self.feed = feed or LiveFeed()
        self.clock = clock

    def insert(self, event_id: str, content: str, is_public: bool) -> MessageResponse:
        message = Message(
            id=self.new_id(),
            event_id=event_id,
            content=content,
            is_public=is_public,
            is_deleted=False,
            created_at=self.clock(),
        )
        with sql_errors("add message"), self.session_factory() as db:
            db.add(message)
            db.commit()
            db.refresh(message)
            stored = MessageResponse.model_validate(message)
        self.feed.publish(event_id)
        return stored

    def list(self, event_id: str, public_only: bool) -> List[MessageResponse]:
        query = select(Message).where(
            Message.event_id == event_id,
            Message.is_deleted.is_(False),
        )
        if public_only:
            query = query.where(Message.is_public.is_(True))
        query = query.order_by(Message.created_at.desc(), Message.id.desc())
        with sql_errors("load messages"), self.session_factory() as db:
            return [MessageResponse.model_validate(m) for m in db.scalars(query)]

    def mark_deleted(self, event_id: str, message_id: str) -> bool:
        stmt = (
            update(Message)
            .where(
                Message.id == message_id,
                Message.event_id == event_id,
                Message.is_deleted.is_(False),
            )
            .values(is_deleted=True, deleted_at=self.clock())
        )
        with sql_errors("delete message"), self.session_factory() as db:
            result = db.execute(stmt)
            db.commit()
            deleted = result.rowcount == 1
        if deleted:
            self.feed.publish(event_id)
        return deleted

    def watch(
        self,
        event_id: str,
        public_only: bool,
        callback: Callable[[List[MessageResponse]], None],
        on_error: Optional[ErrorCallback] = None,
    ) -> Unsubscribe:
        return self.feed.watch(
            event_id,
            lambda: self.list(event_id, public_only),
            callback,
            on_error,
        )
