"""
Tests for anonymous messages: visibility, validation and soft delete
"""

import asyncio
from concurrent.futures import ThreadPoolExecutor

import pytest
import pytest_asyncio
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from whispqr.core.db import Base
from whispqr.models import Message
from whispqr.schemas.message import MessageResponse
from whispqr.services.code_codec import derive
from whispqr.services.errors import AuthorizationError, NotFoundError, ValidationError
from whispqr.services.event_store import EventStore
from whispqr.services.live_feed import LiveFeed
from whispqr.services.message_store import MessageStore, Viewer
from whispqr.services.repositories import SqlEventRepo, SqlMessageRepo

HOST = "host-1"
GUEST = Viewer.guest()
HOST_VIEW = Viewer.host(HOST)

@pytest_asyncio.fixture
async def event_id(event_store, launch_party):
    return await event_store.create(HOST, launch_party)

@pytest_asyncio.fixture
async def private_event_id(event_store):
    return await event_store.create(HOST, {"name": "Team Retro", "allow_public_messages": False})

@pytest.mark.asyncio
async def test_launch_party_scenario(event_store, message_store, event_id):
    event = await event_store.get_by_id(event_id)
    assert event.string_code == derive(event_id)

    await message_store.add(event_id, "hi", requested_is_public=True)

    messages = await message_store.list(event_id, GUEST)
    assert len(messages) == 1
    assert messages[0].content == "hi"
    assert messages[0].is_public is True

@pytest.mark.asyncio
async def test_private_only_event_forces_private_messages(message_store, private_event_id):
    await message_store.add(private_event_id, "can everyone see this?", requested_is_public=True)

    hosted = await message_store.list(private_event_id, Viewer.host(HOST))
    assert len(hosted) == 1
    assert hosted[0].is_public is False
    assert await message_store.list(private_event_id, GUEST) == []

@pytest.mark.asyncio
async def test_guest_listing_never_shows_private_messages(message_store, event_id, clock):
    await message_store.add(event_id, "public one", requested_is_public=True)
    clock.advance(seconds=1)
    await message_store.add(event_id, "for the host only", requested_is_public=False)
    clock.advance(seconds=1)
    await message_store.add(event_id, "public two", requested_is_public=True)

    guest_view = await message_store.list(event_id, GUEST)
    assert [m.content for m in guest_view] == ["public two", "public one"]
    assert all(m.is_public for m in guest_view)

    host_view = await message_store.list(event_id, HOST_VIEW)
    assert [m.content for m in host_view] == ["public two", "for the host only", "public one"]

@pytest.mark.asyncio
async def test_add_trims_content(message_store, event_id):
    await message_store.add(event_id, "   spaced out   ")
    messages = await message_store.list(event_id, HOST_VIEW)
    assert messages[0].content == "spaced out"

@pytest.mark.asyncio
@pytest.mark.parametrize("content", ["", "    ", "x" * 1001, None])
async def test_add_rejects_invalid_content(message_store, event_id, content):
    with pytest.raises(ValidationError):
        await message_store.add(event_id, content)

@pytest.mark.asyncio
async def test_add_accepts_maximum_length(message_store, event_id):
    await message_store.add(event_id, "x" * 1000)
    assert len((await message_store.list(event_id, HOST_VIEW))[0].content) == 1000

@pytest.mark.asyncio
async def test_add_requires_live_event(message_store, event_store, event_id, clock):
    with pytest.raises(NotFoundError):
        await message_store.add("missing0000", "hello")

    clock.advance(hours=49)
    with pytest.raises(NotFoundError):
        await message_store.add(event_id, "too late")

@pytest.mark.asyncio
async def test_add_to_deleted_event_fails(message_store, event_store, event_id):
    await event_store.soft_delete(event_id, HOST)
    with pytest.raises(NotFoundError):
        await message_store.add(event_id, "anyone here?")

@pytest.mark.asyncio
async def test_empty_event_lists_no_messages(message_store, event_id):
    assert await message_store.list(event_id, GUEST) == []
    assert await message_store.list(event_id, HOST_VIEW) == []

@pytest.mark.asyncio
async def test_host_can_read_expired_event_but_guest_cannot(message_store, event_id, clock):
    await message_store.add(event_id, "before the end", requested_is_public=False)
    clock.advance(hours=50)

    assert [m.content for m in await message_store.list(event_id, HOST_VIEW)] == ["before the end"]
    with pytest.raises(NotFoundError):
        await message_store.list(event_id, GUEST)

@pytest.mark.asyncio
async def test_messages_of_deleted_event_are_unreachable(message_store, event_store, event_id):
    await message_store.add(event_id, "hello")
    await event_store.soft_delete(event_id, HOST)

    with pytest.raises(NotFoundError):
        await message_store.list(event_id, HOST_VIEW)
    with pytest.raises(NotFoundError):
        await message_store.list(event_id, GUEST)

@pytest.mark.asyncio
async def test_only_the_owner_reads_host_view(message_store, event_id):
    with pytest.raises(AuthorizationError):
        await message_store.list(event_id, Viewer.host("intruder"))

@pytest.mark.asyncio
async def test_soft_delete_hides_message_and_is_not_repeatable(message_store, message_repo, event_id):
    message_id = await message_store.add(event_id, "regrettable")

    await message_store.soft_delete(event_id, message_id, HOST_VIEW)
    assert await message_store.list(event_id, HOST_VIEW) == []

    with pytest.raises(NotFoundError):
        await message_store.soft_delete(event_id, message_id, HOST_VIEW)
    assert message_repo.list(event_id, public_only=False) == []

@pytest.mark.asyncio
async def test_soft_delete_unknown_message(message_store, event_id):
    with pytest.raises(NotFoundError):
        await message_store.soft_delete(event_id, "nope000000", HOST_VIEW)

@pytest.mark.asyncio
async def test_soft_delete_checks_message_belongs_to_event(message_store, event_store, event_id):
    other_event = await event_store.create(HOST, {"name": "Other event"})
    message_id = await message_store.add(other_event, "elsewhere")

    with pytest.raises(NotFoundError):
        await message_store.soft_delete(event_id, message_id, HOST_VIEW)

@pytest.mark.asyncio
async def test_soft_delete_is_host_only(message_store, event_id):
    message_id = await message_store.add(event_id, "keep me")

    with pytest.raises(AuthorizationError):
        await message_store.soft_delete(event_id, message_id, GUEST)
    with pytest.raises(AuthorizationError):
        await message_store.soft_delete(event_id, message_id, Viewer.host("intruder"))
    assert len(await message_store.list(event_id, GUEST)) == 1

def test_messages_carry_no_author_fields():
    columns = {c.name for c in Message.__table__.columns}
    assert columns == {"id", "event_id", "content", "is_public", "is_deleted", "created_at", "deleted_at"}
    assert set(MessageResponse.model_fields) == columns

def test_concurrent_adds_keep_every_message(tmp_path, clock):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'concurrent.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    events = EventStore(SqlEventRepo(factory, clock=clock), clock=clock)
    store = MessageStore(SqlMessageRepo(factory, LiveFeed(), clock=clock), events)
    event_id = asyncio.run(events.create(HOST, {"name": "Busy Night"}))

    def post(n):
        return asyncio.run(store.add(event_id, f"message {n}"))

    try:
        with ThreadPoolExecutor(max_workers=8) as pool:
            ids = list(pool.map(post, range(40)))

        listed = asyncio.run(store.list(event_id, Viewer.host(HOST)))
        assert len(set(ids)) == 40
        assert {m.id for m in listed} == set(ids)
        assert {m.content for m in listed} == {f"message {n}" for n in range(40)}
    finally:
        engine.dispose()
