"""
Public API routes - no authentication required
"""

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from whispqr.services.event_store import EventStore
from whispqr.services.qr_service import QRService
from whispqr.api.deps import get_event_store

router = APIRouter()

@router.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "ok"}

@router.get("/events/{event_id}/qr.png")
async def get_qr_code(
    event_id: str,
    events: EventStore = Depends(get_event_store)
):
    """Get QR code image for a live event"""
    await events.get_by_id(event_id)

    qr_bytes = QRService.generate_event_qr(event_id)

    return Response(
        content=qr_bytes,
        media_type="image/png",
        headers={"Content-Disposition": f"inline; filename=qr_{event_id}.png"}
    )
