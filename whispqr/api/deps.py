"""
Request dependencies: stores and identity live on app.state
"""

from dataclasses import dataclass

from fastapi import Request

from whispqr.services.event_store import EventStore
from whispqr.services.identity import IdentityGateway
from whispqr.services.message_store import MessageStore

@dataclass
class Services:
    """Everything the routers need, built once at startup"""
    event_store: EventStore
    message_store: MessageStore
    identity: IdentityGateway

def get_event_store(request: Request) -> EventStore:
    return request.app.state.services.event_store

def get_message_store(request: Request) -> MessageStore:
    return request.app.state.services.message_store
