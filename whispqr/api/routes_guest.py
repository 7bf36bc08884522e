"""
Guest-facing API routes

Guests are anonymous: nothing from the request is stored with their
messages. The client IP is only used for in-memory rate limiting.
"""

from fastapi import APIRouter, Depends, Request

from whispqr.schemas.event import EventResponse, GuestEventView, JoinByCodeRequest, JoinByUrlRequest
from whispqr.schemas.message import MessageCreate
from whispqr.services.event_store import EventStore
from whispqr.services.message_store import MessageStore, Viewer
from whispqr.services.qr_service import QRService
from whispqr.api.deps import get_event_store, get_message_store
from whispqr.utils.security import rate_limit_check, get_client_ip
from whispqr.utils.responses import success_response, rate_limit_response

router = APIRouter()

def guest_view(event: EventResponse) -> dict:
    return GuestEventView(**event.model_dump()).model_dump()

@router.post("/join")
async def join_by_code(
    request: Request,
    join_data: JoinByCodeRequest,
    events: EventStore = Depends(get_event_store)
):
    """Resolve a typed 6-character code to its event"""
    if not rate_limit_check(get_client_ip(request)):
        return rate_limit_response()

    event = await events.get_by_code(join_data.code)

    return success_response(
        message="Event found",
        data=guest_view(event)
    )

@router.post("/scan")
async def join_by_qr(
    request: Request,
    scan_data: JoinByUrlRequest,
    events: EventStore = Depends(get_event_store)
):
    """Resolve a scanned QR payload to its event"""
    if not rate_limit_check(get_client_ip(request)):
        return rate_limit_response()

    event_id = QRService.parse_event_url(scan_data.url)
    event = await events.join(event_id)

    return success_response(
        message="Event found",
        data=guest_view(event)
    )

@router.get("/events/{event_id}")
async def get_event(
    event_id: str,
    events: EventStore = Depends(get_event_store)
):
    """Event details for a guest who already has the id"""
    event = await events.join(event_id)

    return success_response(
        message="Event found",
        data=guest_view(event)
    )

@router.post("/events/{event_id}/messages", status_code=201)
async def post_message(
    request: Request,
    event_id: str,
    message_data: MessageCreate,
    messages: MessageStore = Depends(get_message_store)
):
    """Leave an anonymous message"""
    if not rate_limit_check(get_client_ip(request)):
        return rate_limit_response()

    message_id = await messages.add(
        event_id,
        message_data.content,
        requested_is_public=message_data.is_public
    )

    return success_response(
        message="Message sent",
        data={"id": message_id},
        status_code=201
    )

@router.get("/events/{event_id}/messages")
async def list_public_messages(
    event_id: str,
    messages: MessageStore = Depends(get_message_store)
):
    """Public messages of a live event, newest first"""
    items = await messages.list(event_id, Viewer.guest())

    return success_response(
        message="Messages retrieved",
        data=[m.model_dump(exclude={"is_deleted", "deleted_at"}) for m in items]
    )
