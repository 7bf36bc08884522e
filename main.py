"""
whispqr - anonymous event messaging backend
Main application entry point
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
import uvicorn

from whispqr.core.config import settings
from whispqr.api import routes_host, routes_guest, routes_public, ws
from whispqr.api.deps import Services
from whispqr.services.errors import WhispqrError
from whispqr.services.event_store import EventStore
from whispqr.services.message_store import MessageStore
from whispqr.utils.responses import store_error_response

# Configure logging
logging.basicConfig(level=settings.LOG_LEVEL.upper())
logger = logging.getLogger(__name__)

def build_services() -> Services:
    """Wire stores to the configured backend"""
    if settings.USE_FIREBASE:
        from whispqr.services.firebase_client import get_firebase_app, get_firestore_client
        from whispqr.services.firestore_repositories import FirestoreEventRepo, FirestoreMessageRepo
        from whispqr.services.identity import FirebaseIdentityGateway

        client = get_firestore_client()
        event_store = EventStore(FirestoreEventRepo(client))
        message_store = MessageStore(FirestoreMessageRepo(client), event_store)
        identity = FirebaseIdentityGateway(get_firebase_app())
        logger.info("Using Firestore backend")
    else:
        from whispqr.core.db import engine, Base, SessionLocal
        from whispqr.services.identity import StaticTokenIdentityGateway
        from whispqr.services.live_feed import LiveFeed
        from whispqr.services.repositories import SqlEventRepo, SqlMessageRepo

        # Create database tables
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created")
        event_store = EventStore(SqlEventRepo(SessionLocal))
        message_store = MessageStore(SqlMessageRepo(SessionLocal, LiveFeed()), event_store)
        identity = StaticTokenIdentityGateway()

    return Services(event_store=event_store, message_store=message_store, identity=identity)

def create_app(services: Optional[Services] = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan management"""
        app.state.services = services or build_services()
        yield
        logger.info("Application shutdown")

    app = FastAPI(
        title="whispqr",
        description="Anonymous messaging for events: create an event, share its QR code, read what guests say",
        version="1.0.0",
        lifespan=lifespan
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOW_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(WhispqrError)
    async def store_error_handler(request: Request, exc: WhispqrError):
        return store_error_response(exc)

    # Include routers
    app.include_router(routes_public.router, tags=["public"])
    app.include_router(routes_guest.router, prefix="/guest", tags=["guest"])
    app.include_router(routes_host.router, prefix="/host", tags=["host"])
    app.include_router(ws.router, prefix="/ws", tags=["websocket"])

    return app

app = create_app()

# Note: Run this ASGI app directly with Uvicorn or Hypercorn. For Gunicorn,
# use `uvicorn.workers.UvicornWorker` instead of wrapping the app.

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="127.0.0.1",
        port=8000,
        reload=True
    )
