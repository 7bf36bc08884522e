"""
Tests for live message subscriptions
"""

import threading

import pytest
import pytest_asyncio

from whispqr.services.errors import AuthorizationError, NotFoundError
from whispqr.services.live_feed import LiveFeed, Subscription
from whispqr.services.message_store import Viewer

HOST = "host-1"

@pytest_asyncio.fixture
async def event_id(event_store, launch_party):
    return await event_store.create(HOST, launch_party)

class Recorder:
    """Collects every snapshot pushed to it"""

    def __init__(self):
        self.snapshots = []

    def __call__(self, messages):
        self.snapshots.append([m.content for m in messages])

    @property
    def latest(self):
        return self.snapshots[-1]

@pytest.mark.asyncio
async def test_subscribe_pushes_current_snapshot(message_store, event_id):
    await message_store.add(event_id, "already here")
    recorder = Recorder()

    subscription = await message_store.subscribe(event_id, Viewer.guest(), recorder)

    assert recorder.snapshots == [["already here"]]
    subscription.cancel()

@pytest.mark.asyncio
async def test_inserts_and_deletes_push_full_snapshots(message_store, event_id, clock):
    recorder = Recorder()
    subscription = await message_store.subscribe(event_id, Viewer.host(HOST), recorder)

    first = await message_store.add(event_id, "first")
    clock.advance(seconds=1)
    await message_store.add(event_id, "second", requested_is_public=False)
    await message_store.soft_delete(event_id, first, Viewer.host(HOST))

    assert recorder.snapshots == [[], ["first"], ["second", "first"], ["second"]]
    subscription.cancel()

@pytest.mark.asyncio
async def test_guest_feed_excludes_private_messages(message_store, event_id):
    recorder = Recorder()
    subscription = await message_store.subscribe(event_id, Viewer.guest(), recorder)

    await message_store.add(event_id, "secret", requested_is_public=False)
    await message_store.add(event_id, "hello all", requested_is_public=True)

    assert all("secret" not in snapshot for snapshot in recorder.snapshots)
    assert recorder.latest == ["hello all"]
    subscription.cancel()

@pytest.mark.asyncio
async def test_feeds_are_scoped_to_their_event(message_store, event_store, event_id):
    other = await event_store.create(HOST, {"name": "Another party"})
    recorder = Recorder()
    subscription = await message_store.subscribe(event_id, Viewer.guest(), recorder)

    await message_store.add(other, "not for you")

    assert recorder.snapshots == [[]]
    subscription.cancel()

@pytest.mark.asyncio
async def test_no_callbacks_after_cancel(message_store, feed, event_id):
    recorder = Recorder()
    subscription = await message_store.subscribe(event_id, Viewer.guest(), recorder)
    assert feed.watcher_count(event_id) == 1

    subscription.cancel()
    subscription.cancel()
    await message_store.add(event_id, "nobody listening")

    assert recorder.snapshots == [[]]
    assert subscription.cancelled
    assert feed.watcher_count(event_id) == 0

@pytest.mark.asyncio
async def test_cancel_from_inside_callback(message_store, event_id):
    calls = []
    holder = {}

    def on_update(messages):
        calls.append(len(messages))
        if messages:
            holder["subscription"].cancel()

    holder["subscription"] = await message_store.subscribe(event_id, Viewer.guest(), on_update)
    await message_store.add(event_id, "one")
    await message_store.add(event_id, "two")

    assert calls == [0, 1]

@pytest.mark.asyncio
async def test_subscribe_requires_reachable_event(message_store, event_id):
    with pytest.raises(NotFoundError):
        await message_store.subscribe("missing0000", Viewer.guest(), Recorder())
    with pytest.raises(AuthorizationError):
        await message_store.subscribe(event_id, Viewer.host("intruder"), Recorder())

def test_failed_refresh_goes_to_error_callback():
    feed = LiveFeed()
    errors = []

    def fetch():
        raise RuntimeError("backend unavailable")

    unsubscribe = feed.watch("evt", fetch, lambda messages: None, errors.append)

    assert len(errors) == 1
    assert isinstance(errors[0], RuntimeError)
    unsubscribe()
    assert feed.watcher_count("evt") == 0

def test_attach_after_cancel_unsubscribes_immediately():
    subscription = Subscription()
    subscription.cancel()
    unsubscribed = []

    subscription.attach(lambda: unsubscribed.append(True))

    assert unsubscribed == [True]
    assert subscription.deliver(lambda: None) is False

def test_cancel_waits_for_inflight_delivery():
    subscription = Subscription()
    started = threading.Event()
    release = threading.Event()
    delivered = []

    def slow_callback():
        started.set()
        release.wait(timeout=5)
        delivered.append("first")

    worker = threading.Thread(target=subscription.deliver, args=(slow_callback,))
    worker.start()
    started.wait(timeout=5)

    canceller = threading.Thread(target=subscription.cancel)
    canceller.start()
    canceller.join(timeout=0.1)
    # cancel is blocked behind the running delivery
    assert canceller.is_alive()

    release.set()
    worker.join(timeout=5)
    canceller.join(timeout=5)

    assert delivered == ["first"]
    assert subscription.deliver(lambda: delivered.append("late")) is False
    assert delivered == ["first"]
