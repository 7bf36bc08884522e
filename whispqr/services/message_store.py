"""
Anonymous message ledger for events
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

from fastapi.concurrency import run_in_threadpool
from pydantic import ValidationError as PydanticValidationError

from whispqr.schemas.message import MessageCreate, MessageResponse
from whispqr.services.errors import AuthorizationError, NotFoundError, ValidationError
from whispqr.services.event_store import EventStore, validation_details
from whispqr.services.live_feed import Subscription
from whispqr.services.repositories import MessageRepo

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Viewer:
    """Who is reading: a guest, or the host identified by ``host_id``."""

    host_id: Optional[str] = None

    @classmethod
    def guest(cls) -> "Viewer":
        return cls()

    @classmethod
    def host(cls, host_id: str) -> "Viewer":
        return cls(host_id=host_id)

    @property
    def as_host(self) -> bool:
        return self.host_id is not None


class MessageStore:
    """Append-only, per-event messages with public/private visibility.

    Nothing about the author is stored. Hosts see every non-deleted message
    of their own events; guests only see public ones on live events.
    """

    def __init__(self, repo: MessageRepo, events: EventStore):
        self.repo = repo
        self.events = events

    async def add(self, event_id: str, content: str, requested_is_public: bool = True) -> str:
        try:
            data = MessageCreate(content=content, is_public=requested_is_public)
        except PydanticValidationError as exc:
            raise ValidationError("Invalid message", details=validation_details(exc)) from exc

        event = await self.events.get_by_id(event_id)
        is_public = data.is_public and event.allow_public_messages
        message = await run_in_threadpool(self.repo.insert, event.id, data.content, is_public)
        logger.info(f"Message {message.id} added to event {event.id} (public={is_public})")
        return message.id

    async def list(self, event_id: str, viewer: Viewer = Viewer()) -> List[MessageResponse]:
        await self._authorize(event_id, viewer)
        messages = await run_in_threadpool(self.repo.list, event_id, not viewer.as_host)
        return self._visible(messages, viewer)

    async def subscribe(
        self,
        event_id: str,
        viewer: Viewer,
        on_update: Callable[[List[MessageResponse]], None],
        on_error: Optional[Callable[[Exception], None]] = None,
    ) -> Subscription:
        """Start a live feed of full, filtered snapshots.

        ``on_update`` is called right away with the current list and again on
        every insert or soft delete, possibly from another thread.
        """
        await self._authorize(event_id, viewer)
        subscription = Subscription()

        def deliver(messages: List[MessageResponse]) -> None:
            subscription.deliver(on_update, self._visible(messages, viewer))

        error_callback = None
        if on_error is not None:
            def error_callback(exc: Exception) -> None:
                subscription.deliver(on_error, exc)

        unsubscribe = await run_in_threadpool(
            self.repo.watch, event_id, not viewer.as_host, deliver, error_callback
        )
        subscription.attach(unsubscribe)
        logger.info(f"Live feed opened for event {event_id} (host={viewer.as_host})")
        return subscription

    async def soft_delete(self, event_id: str, message_id: str, viewer: Viewer) -> None:
        if not viewer.as_host:
            raise AuthorizationError("Only the host can delete messages")
        await self.events.get_for_host(event_id, viewer.host_id)
        if not await run_in_threadpool(self.repo.mark_deleted, event_id, message_id):
            raise NotFoundError("Message not found")
        logger.info(f"Message {message_id} deleted from event {event_id}")

    async def _authorize(self, event_id: str, viewer: Viewer) -> None:
        if viewer.as_host:
            await self.events.get_for_host(event_id, viewer.host_id)
        else:
            await self.events.get_by_id(event_id)

    @staticmethod
    def _visible(messages: List[MessageResponse], viewer: Viewer) -> List[MessageResponse]:
        if viewer.as_host:
            return messages
        return [m for m in messages if m.is_public]
