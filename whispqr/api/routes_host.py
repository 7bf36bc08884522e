"""
Host API routes - requires authentication
"""

from fastapi import APIRouter, Depends

from whispqr.schemas.event import EventCreate, EventResponse, EventStatusUpdate
from whispqr.services.event_store import EventStore
from whispqr.services.identity import HostIdentity
from whispqr.services.message_store import MessageStore, Viewer
from whispqr.services.qr_service import QRService
from whispqr.api.deps import get_event_store, get_message_store
from whispqr.utils.security import get_current_host
from whispqr.utils.responses import success_response

router = APIRouter()

def host_view(events: EventStore, event: EventResponse) -> dict:
    data = event.model_dump()
    data["status"] = events.status(event).value
    return data

@router.post("/events", status_code=201)
async def create_event(
    event_data: EventCreate,
    events: EventStore = Depends(get_event_store),
    host: HostIdentity = Depends(get_current_host)
):
    """Create a new event"""
    event_id = await events.create(host.host_id, event_data, host_name=host.display_name)
    event = await events.get_for_host(event_id, host.host_id)

    return success_response(
        message="Event created successfully",
        data=host_view(events, event),
        status_code=201
    )

@router.get("/events")
async def list_events(
    events: EventStore = Depends(get_event_store),
    host: HostIdentity = Depends(get_current_host)
):
    """List the host's events, split into active and expired"""
    listing = await events.list_by_host(host.host_id)

    return success_response(
        message="Events retrieved",
        data={
            "active": [host_view(events, e) for e in listing.active],
            "expired": [host_view(events, e) for e in listing.expired],
        }
    )

@router.get("/events/{event_id}")
async def get_event_details(
    event_id: str,
    events: EventStore = Depends(get_event_store),
    host: HostIdentity = Depends(get_current_host)
):
    """Get event details"""
    event = await events.get_for_host(event_id, host.host_id)

    return success_response(
        message="Event details retrieved",
        data=host_view(events, event)
    )

@router.get("/events/{event_id}/share")
async def get_share_info(
    event_id: str,
    events: EventStore = Depends(get_event_store),
    host: HostIdentity = Depends(get_current_host)
):
    """Everything needed to share an event: deep link, code and QR image URL"""
    event = await events.get_for_host(event_id, host.host_id)

    return success_response(
        message="Share details retrieved",
        data={
            "url": QRService.event_url(event.id),
            "string_code": event.string_code,
            "share_text": QRService.share_text(event.name, event.id),
            "qr_image": f"/events/{event.id}/qr.png",
        }
    )

@router.patch("/events/{event_id}/status")
async def update_event_status(
    event_id: str,
    status_data: EventStatusUpdate,
    events: EventStore = Depends(get_event_store),
    host: HostIdentity = Depends(get_current_host)
):
    """Pause or resume accepting guests"""
    await events.set_active(event_id, status_data.is_active, host.host_id)

    return success_response(
        message="Event status updated",
        data={"id": event_id, "is_active": status_data.is_active}
    )

@router.delete("/events/{event_id}")
async def delete_event(
    event_id: str,
    events: EventStore = Depends(get_event_store),
    host: HostIdentity = Depends(get_current_host)
):
    """Delete an event (soft delete, permanent)"""
    await events.soft_delete(event_id, host.host_id)

    return success_response(message="Event deleted")

@router.get("/events/{event_id}/messages")
async def list_messages(
    event_id: str,
    messages: MessageStore = Depends(get_message_store),
    host: HostIdentity = Depends(get_current_host)
):
    """All non-deleted messages, public and private, newest first"""
    items = await messages.list(event_id, Viewer.host(host.host_id))

    return success_response(
        message="Messages retrieved",
        data=[m.model_dump() for m in items]
    )

@router.delete("/events/{event_id}/messages/{message_id}")
async def delete_message(
    event_id: str,
    message_id: str,
    messages: MessageStore = Depends(get_message_store),
    host: HostIdentity = Depends(get_current_host)
):
    """Remove a message from the event (soft delete)"""
    await messages.soft_delete(event_id, message_id, Viewer.host(host.host_id))

    return success_response(message="Message deleted")
