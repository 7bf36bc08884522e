"""
WebSocket endpoint streaming live message snapshots
"""

import asyncio
import json
import logging
from typing import Dict, List, Optional
from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from fastapi.concurrency import run_in_threadpool
from fastapi.encoders import jsonable_encoder

from whispqr.services.errors import AuthorizationError, WhispqrError
from whispqr.services.message_store import Viewer

logger = logging.getLogger(__name__)

class WebSocketManager:
    """Tracks open WebSocket connections per event"""

    def __init__(self):
        # event_id -> list of websockets
        self.active_connections: Dict[str, List[WebSocket]] = {}

    async def connect(self, websocket: WebSocket, event_id: str):
        """Accept WebSocket connection and add to event room"""
        await websocket.accept()

        if event_id not in self.active_connections:
            self.active_connections[event_id] = []

        self.active_connections[event_id].append(websocket)
        logger.info(f"WebSocket connected to event {event_id}. Total connections: {len(self.active_connections[event_id])}")

    def disconnect(self, websocket: WebSocket, event_id: str):
        """Remove WebSocket connection from event room"""
        connections = self.active_connections.get(event_id)
        if not connections or websocket not in connections:
            return

        connections.remove(websocket)
        logger.info(f"WebSocket disconnected from event {event_id}. Remaining connections: {len(connections)}")

        # Clean up empty rooms
        if not connections:
            del self.active_connections[event_id]

    async def send_personal_message(self, message: dict, websocket: WebSocket):
        """Send message to specific WebSocket"""
        await websocket.send_text(json.dumps(message))

    def get_connection_count(self, event_id: str) -> int:
        """Get number of active connections for an event"""
        return len(self.active_connections.get(event_id, []))

    def get_all_connection_counts(self) -> Dict[str, int]:
        """Get connection counts for all events"""
        return {
            event_id: len(connections)
            for event_id, connections in self.active_connections.items()
        }

# Global WebSocket manager instance
websocket_manager = WebSocketManager()

# Router for WebSocket endpoints
router = APIRouter()

@router.websocket("/events/{event_id}/messages")
async def message_feed(
    websocket: WebSocket,
    event_id: str,
    token: Optional[str] = None
):
    """Live feed of an event's messages.

    With a valid host token the feed carries every message, otherwise only
    public ones. Each push is the full current list, newest first.
    """
    services = websocket.app.state.services

    viewer = Viewer.guest()
    if token:
        try:
            identity = await run_in_threadpool(services.identity.resolve, token)
            viewer = Viewer.host(identity.host_id)
        except AuthorizationError:
            await websocket.close(code=4001, reason="Invalid host token")
            return

    loop = asyncio.get_running_loop()
    outbox: asyncio.Queue = asyncio.Queue()

    # Feed callbacks may arrive on a backend thread
    def on_update(messages):
        payload = {"type": "messages", "messages": jsonable_encoder(messages)}
        loop.call_soon_threadsafe(outbox.put_nowait, payload)

    def on_error(exc):
        logger.error(f"Live feed error for event {event_id}: {exc}")
        loop.call_soon_threadsafe(outbox.put_nowait, {"type": "error", "message": "Live updates interrupted"})

    try:
        subscription = await services.message_store.subscribe(event_id, viewer, on_update, on_error)
    except WhispqrError as exc:
        await websocket.close(code=4004, reason=exc.message)
        return

    await websocket_manager.connect(websocket, event_id)

    async def pump():
        while True:
            payload = await outbox.get()
            await websocket_manager.send_personal_message(payload, websocket)

    sender = asyncio.create_task(pump())
    try:
        while True:
            data = await websocket.receive_text()

            try:
                client_message = json.loads(data)
            except json.JSONDecodeError:
                logger.warning(f"Invalid JSON received from WebSocket on event {event_id}")
                continue

            # Handle heartbeat/ping
            if isinstance(client_message, dict) and client_message.get("type") == "ping":
                await websocket_manager.send_personal_message({
                    "type": "pong",
                    "timestamp": client_message.get("timestamp")
                }, websocket)

    except WebSocketDisconnect:
        pass
    finally:
        subscription.cancel()
        sender.cancel()
        websocket_manager.disconnect(websocket, event_id)
        try:
            await sender
        except asyncio.CancelledError:
            pass
        except Exception as exc:
            logger.warning(f"Live feed sender for event {event_id} stopped: {exc}")

@router.get("/stats")
async def websocket_stats():
    """Get WebSocket connection statistics (for debugging)"""
    counts = websocket_manager.get_all_connection_counts()
    return {
        "total_events_with_connections": len(counts),
        "connection_counts": counts,
        "total_connections": sum(counts.values())
    }
