"""
Shared fixtures: in-memory SQLite stores driven by a controllable clock
"""

import pytest
from datetime import datetime, timedelta, timezone
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from whispqr.core.db import Base
from whispqr.services.event_store import EventStore
from whispqr.services.live_feed import LiveFeed
from whispqr.services.message_store import MessageStore
from whispqr.services.repositories import SqlEventRepo, SqlMessageRepo

class FakeClock:
    """Clock whose time only moves when a test says so"""

    def __init__(self, start=datetime(2026, 3, 14, 18, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)

@pytest.fixture
def clock():
    return FakeClock()

@pytest.fixture
def session_factory():
    """Create a fresh in-memory database per test"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()

@pytest.fixture
def feed():
    return LiveFeed()

@pytest.fixture
def event_repo(session_factory, clock):
    return SqlEventRepo(session_factory, clock=clock)

@pytest.fixture
def message_repo(session_factory, feed, clock):
    return SqlMessageRepo(session_factory, feed, clock=clock)

@pytest.fixture
def event_store(event_repo, clock):
    return EventStore(event_repo, clock=clock)

@pytest.fixture
def message_store(message_repo, event_store):
    return MessageStore(message_repo, event_store)

@pytest.fixture
def launch_party():
    return {
        "name": "Launch Party",
        "description": "Celebrating the v1 release",
        "location": "Rooftop",
        "allow_public_messages": True,
    }
