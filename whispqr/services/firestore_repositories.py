"""
Firestore-backed repositories.

Document shape matches what the mobile app writes: ``events/{id}`` with
camelCase fields and messages under ``events/{id}/messages/{id}``.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Callable, Dict, List, Optional

from firebase_admin import firestore
from google.api_core import exceptions as google_exceptions

from whispqr.schemas.event import EventResponse
from whispqr.schemas.message import MessageResponse
from whispqr.services.errors import TransportError
from whispqr.services.expiry_policy import as_utc
from whispqr.services.live_feed import ErrorCallback, Unsubscribe
from whispqr.services.repositories import EventRepo, MessageRepo

logger = logging.getLogger(__name__)

EVENTS = "events"
MESSAGES = "messages"

# snake_case record field -> Firestore document field
EVENT_FIELDS = {
    "name": "name",
    "description": "description",
    "location": "location",
    "host_id": "hostId",
    "host_name": "hostName",
    "allow_public_messages": "allowPublicMessages",
    "string_code": "stringCode",
    "is_active": "isActive",
    "is_deleted": "isDeleted",
    "created_at": "createdAt",
    "updated_at": "updatedAt",
    "deleted_at": "deletedAt",
}


@contextmanager
def firestore_errors(action: str):
    try:
        yield
    except google_exceptions.GoogleAPIError as exc:
        logger.error(f"Firestore error while trying to {action}: {exc}")
        raise TransportError(f"Failed to {action}", details=str(exc)) from exc


def event_from_doc(doc) -> EventResponse:
    data = doc.to_dict() or {}
    return EventResponse(
        id=doc.id,
        name=data.get("name", ""),
        description=data.get("description") or "",
        location=data.get("location") or "",
        host_id=data.get("hostId", ""),
        host_name=data.get("hostName") or "Unknown Host",
        allow_public_messages=bool(data.get("allowPublicMessages", False)),
        string_code=data.get("stringCode", ""),
        is_active=bool(data.get("isActive", False)),
        is_deleted=bool(data.get("isDeleted", False)),
        created_at=as_utc(data.get("createdAt")),
        updated_at=data.get("updatedAt"),
        deleted_at=data.get("deletedAt"),
    )


def message_from_doc(event_id: str, doc) -> MessageResponse:
    data = doc.to_dict() or {}
    return MessageResponse(
        id=doc.id,
        event_id=event_id,
        content=data.get("content", ""),
        is_public=bool(data.get("isPublic", False)),
        is_deleted=bool(data.get("isDeleted", False)),
        created_at=as_utc(data.get("createdAt")),
        deleted_at=data.get("deletedAt"),
    )


def newest_first(records: List[Any]) -> List[Any]:
    return sorted(records, key=lambda r: (as_utc(r.created_at), r.id), reverse=True)


def _update_if_live(client, ref, values: Dict[str, Any]) -> bool:
    @firestore.transactional
    def apply(transaction, ref):
        snapshot = ref.get(transaction=transaction)
        if not snapshot.exists or (snapshot.to_dict() or {}).get("isDeleted"):
            return False
        transaction.update(ref, values)
        return True

    return apply(client.transaction(), ref)


class FirestoreEventRepo(EventRepo):
    def __init__(self, client):
        self.client = client

    def _events(self):
        return self.client.collection(EVENTS)

    def new_id(self) -> str:
        # Firestore hands out ids without writing anything
        return self._events().document().id

    def insert(self, event_id: str, data: Dict[str, Any]) -> EventResponse:
        doc = {EVENT_FIELDS[key]: value for key, value in data.items()}
        doc.update(
            isActive=True,
            isDeleted=False,
            createdAt=firestore.SERVER_TIMESTAMP,
            updatedAt=firestore.SERVER_TIMESTAMP,
        )
        ref = self._events().document(event_id)
        with firestore_errors("create event"):
            ref.create(doc)
            return event_from_doc(ref.get())

    def get(self, event_id: str) -> Optional[EventResponse]:
        with firestore_errors("load event"):
            doc = self._events().document(event_id).get()
        return event_from_doc(doc) if doc.exists else None

    def find_by_code(self, string_code: str) -> List[EventResponse]:
        query = (
            self._events()
            .where(filter=firestore.FieldFilter("stringCode", "==", string_code))
            .where(filter=firestore.FieldFilter("isActive", "==", True))
        )
        with firestore_errors("look up event code"):
            events = [event_from_doc(doc) for doc in query.stream()]
        return [e for e in events if not e.is_deleted]

    def list_by_host(self, host_id: str) -> List[EventResponse]:
        query = self._events().where(filter=firestore.FieldFilter("hostId", "==", host_id))
        with firestore_errors("list host events"):
            events = [event_from_doc(doc) for doc in query.stream()]
        # Older documents may lack isDeleted, so filter here rather than in the query
        return [e for e in events if not e.is_deleted]

    def update(self, event_id: str, fields: Dict[str, Any]) -> bool:
        values = {EVENT_FIELDS[key]: value for key, value in fields.items()}
        values["updatedAt"] = firestore.SERVER_TIMESTAMP
        ref = self._events().document(event_id)
        with firestore_errors("update event"):
            return _update_if_live(self.client, ref, values)

    def mark_deleted(self, event_id: str) -> bool:
        values = {
            "isDeleted": True,
            "deletedAt": firestore.SERVER_TIMESTAMP,
            "updatedAt": firestore.SERVER_TIMESTAMP,
        }
        ref = self._events().document(event_id)
        with firestore_errors("delete event"):
            return _update_if_live(self.client, ref, values)


class FirestoreMessageRepo(MessageRepo):
    def __init__(self, client):
        self.client = client

    def _messages(self, event_id: str):
        return self.client.collection(EVENTS).document(event_id).collection(MESSAGES)

    def _query(self, event_id: str, public_only: bool):
        query = self._messages(event_id).where(filter=firestore.FieldFilter("isDeleted", "==", False))
        if public_only:
            query = query.where(filter=firestore.FieldFilter("isPublic", "==", True))
        return query

    def insert(self, event_id: str, content: str, is_public: bool) -> MessageResponse:
        ref = self._messages(event_id).document()
        with firestore_errors("add message"):
            ref.create({
                "content": content,
                "isPublic": is_public,
                "isDeleted": False,
                "createdAt": firestore.SERVER_TIMESTAMP,
            })
            return message_from_doc(event_id, ref.get())

    def list(self, event_id: str, public_only: bool) -> List[MessageResponse]:
        with firestore_errors("load messages"):
            docs = list(self._query(event_id, public_only).stream())
        return newest_first([message_from_doc(event_id, doc) for doc in docs])

    def mark_deleted(self, event_id: str, message_id: str) -> bool:
        values = {"isDeleted": True, "deletedAt": firestore.SERVER_TIMESTAMP}
        ref = self._messages(event_id).document(message_id)
        with firestore_errors("delete message"):
            return _update_if_live(self.client, ref, values)

    def watch(
        self,
        event_id: str,
        public_only: bool,
        callback: Callable[[List[MessageResponse]], None],
        on_error: Optional[ErrorCallback] = None,
    ) -> Unsubscribe:
        def on_snapshot(docs, changes, read_time):
            # Runs on the Firestore listener thread
            try:
                messages = newest_first([message_from_doc(event_id, doc) for doc in docs])
            except Exception as exc:
                if on_error is None:
                    logger.error(f"Failed to read message snapshot for event {event_id}: {exc}")
                else:
                    on_error(exc)
                return
            callback(messages)

        with firestore_errors("watch messages"):
            watch = self._query(event_id, public_only).on_snapshot(on_snapshot)
        return watch.unsubscribe
