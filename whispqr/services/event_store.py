"""
Event lifecycle service: creation, code lookup, host listing and soft delete
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Union

from fastapi.concurrency import run_in_threadpool
from pydantic import ValidationError as PydanticValidationError

from whispqr.core.config import settings
from whispqr.models.event import utcnow
from whispqr.schemas.event import EventCreate, EventResponse, HostEventList
from whispqr.services import code_codec, expiry_policy
from whispqr.services.errors import AuthorizationError, NotFoundError, ValidationError, event_unavailable
from whispqr.services.expiry_policy import EventStatus, as_utc
from whispqr.services.repositories import Clock, EventRepo

logger = logging.getLogger(__name__)

DEFAULT_HOST_NAME = "Unknown Host"


def newest_first(events: List[EventResponse]) -> List[EventResponse]:
    return sorted(events, key=lambda e: (as_utc(e.created_at), e.id), reverse=True)


def validation_details(exc: PydanticValidationError) -> List[Dict[str, Any]]:
    return [
        {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
        for err in exc.errors()
    ]


class EventStore:
    """Persistence and queries for events.

    Every read goes to the repository; nothing is cached between calls.
    Repository calls block, so they run in the threadpool.
    """

    def __init__(
        self,
        repo: EventRepo,
        clock: Clock = utcnow,
        lifetime_hours: int = settings.EVENT_LIFETIME_HOURS,
        code_retries: int = settings.CODE_COLLISION_RETRIES,
    ):
        self.repo = repo
        self.clock = clock
        self.lifetime_hours = lifetime_hours
        self.code_retries = code_retries

    def status(self, event: EventResponse) -> EventStatus:
        return expiry_policy.status(
            event.created_at, event.is_deleted, self.clock(), self.lifetime_hours
        )

    def is_live(self, event: EventResponse) -> bool:
        return self.status(event) == EventStatus.ACTIVE

    async def create(
        self,
        host_id: str,
        event_data: Union[EventCreate, Dict[str, Any]],
        host_name: Optional[str] = None,
    ) -> str:
        """Create an event and return its id.

        The id is allocated before the write so the string code goes out in
        the same write as the rest of the record. When the code already
        belongs to a live event a fresh id is drawn, up to ``code_retries``
        times; past that the collision is kept and lookups pick the newest.
        """
        if isinstance(event_data, dict):
            try:
                event_data = EventCreate.model_validate(event_data)
            except PydanticValidationError as exc:
                raise ValidationError("Invalid event details", details=validation_details(exc)) from exc

        event_id = self.repo.new_id()
        string_code = code_codec.derive(event_id)
        for _ in range(self.code_retries):
            if not await self._live_matches(string_code):
                break
            logger.info(f"String code {string_code} already in use, drawing a new event id")
            event_id = self.repo.new_id()
            string_code = code_codec.derive(event_id)

        data = event_data.model_dump()
        data.update(
            host_id=host_id,
            host_name=host_name or DEFAULT_HOST_NAME,
            string_code=string_code,
        )
        await run_in_threadpool(self.repo.insert, event_id, data)
        logger.info(f"Event {event_id} created by host {host_id} with code {string_code}")
        return event_id

    async def get_by_id(self, event_id: str) -> EventResponse:
        event = await run_in_threadpool(self.repo.get, event_id) if event_id else None
        if event is None or not self.is_live(event):
            raise event_unavailable()
        return event

    async def join(self, event_id: str) -> EventResponse:
        """Guest entry by id (QR scan): the event must be live and accepting guests."""
        event = await self.get_by_id(event_id)
        if not event.is_active:
            raise event_unavailable()
        return event

    async def get_by_code(self, code: str) -> EventResponse:
        matches = await self._live_matches(code_codec.normalize(code))
        if not matches:
            raise event_unavailable()
        if len(matches) > 1:
            logger.warning(f"String code {matches[0].string_code} matches {len(matches)} live events")
        return matches[0]

    async def get_for_host(self, event_id: str, host_id: str) -> EventResponse:
        """Host view of one of their events; expired ones included."""
        event = await run_in_threadpool(self.repo.get, event_id)
        if event is None or event.is_deleted:
            raise NotFoundError("Event not found")
        if event.host_id != host_id:
            raise AuthorizationError("You are not the host of this event")
        return event

    async def list_by_host(self, host_id: str) -> HostEventList:
        active, expired = [], []
        for event in await run_in_threadpool(self.repo.list_by_host, host_id):
            state = self.status(event)
            if state == EventStatus.ACTIVE:
                active.append(event)
            elif state == EventStatus.EXPIRED:
                expired.append(event)
        return HostEventList(active=newest_first(active), expired=newest_first(expired))

    async def set_active(self, event_id: str, is_active: bool, host_id: str) -> None:
        await self.get_for_host(event_id, host_id)
        if not await run_in_threadpool(self.repo.update, event_id, {"is_active": is_active}):
            raise NotFoundError("Event not found")
        logger.info(f"Event {event_id} is_active set to {is_active}")

    async def soft_delete(self, event_id: str, host_id: str) -> None:
        await self.get_for_host(event_id, host_id)
        if not await run_in_threadpool(self.repo.mark_deleted, event_id):
            raise NotFoundError("Event not found")
        logger.info(f"Event {event_id} deleted by host {host_id}")

    async def _live_matches(self, string_code: str) -> List[EventResponse]:
        candidates = await run_in_threadpool(self.repo.find_by_code, string_code)
        return newest_first([e for e in candidates if e.is_active and self.is_live(e)])
