"""
Live message feeds

``Subscription`` is the cancel handle handed back to subscribers. ``LiveFeed``
is the in-process fan-out used by the SQL backend, which has no native change
notifications: writers call ``publish`` and every watcher of that event
re-queries and receives a full snapshot.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

Unsubscribe = Callable[[], None]
ErrorCallback = Callable[[Exception], None]


class Subscription:
    """Cancel handle for a live feed.

    Deliveries and cancellation share a re-entrant lock: once ``cancel``
    returns, no callback will run, and a subscriber may cancel from inside
    its own callback.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._cancelled = False
        self._unsubscribe: Optional[Unsubscribe] = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def attach(self, unsubscribe: Unsubscribe) -> None:
        """Bind the backend unsubscribe call; runs it at once if already cancelled."""
        with self._lock:
            if not self._cancelled:
                self._unsubscribe = unsubscribe
                return
        unsubscribe()

    def deliver(self, callback: Callable[..., Any], *args: Any) -> bool:
        with self._lock:
            if self._cancelled:
                return False
            callback(*args)
            return True

    def cancel(self) -> None:
        with self._lock:
            if self._cancelled:
                return
            self._cancelled = True
            unsubscribe, self._unsubscribe = self._unsubscribe, None
        if unsubscribe is not None:
            unsubscribe()


class _Watcher:
    def __init__(
        self,
        fetch: Callable[[], List[Any]],
        callback: Callable[[List[Any]], None],
        on_error: Optional[ErrorCallback],
    ) -> None:
        self.fetch = fetch
        self.callback = callback
        self.on_error = on_error
        # fetch and delivery happen together so a stale snapshot never lands last
        self.lock = threading.Lock()

    def push(self) -> None:
        with self.lock:
            try:
                snapshot = self.fetch()
            except Exception as exc:
                if self.on_error is None:
                    logger.error(f"Live feed refresh failed: {exc}")
                else:
                    self.on_error(exc)
                return
            self.callback(snapshot)


class LiveFeed:
    """Per-event watcher registry with snapshot fan-out."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._watchers: Dict[str, List[_Watcher]] = {}

    def watch(
        self,
        event_id: str,
        fetch: Callable[[], List[Any]],
        callback: Callable[[List[Any]], None],
        on_error: Optional[ErrorCallback] = None,
    ) -> Unsubscribe:
        """Register a watcher and push the current snapshot to it."""
        watcher = _Watcher(fetch, callback, on_error)
        with self._lock:
            self._watchers.setdefault(event_id, []).append(watcher)
        logger.debug(f"Watcher added for event {event_id}")
        watcher.push()

        def unsubscribe() -> None:
            self._remove(event_id, watcher)

        return unsubscribe

    def publish(self, event_id: str) -> None:
        with self._lock:
            watchers = list(self._watchers.get(event_id, []))
        for watcher in watchers:
            watcher.push()

    def watcher_count(self, event_id: str) -> int:
        with self._lock:
            return len(self._watchers.get(event_id, []))

    def _remove(self, event_id: str, watcher: _Watcher) -> None:
        with self._lock:
            watchers = self._watchers.get(event_id)
            if not watchers or watcher not in watchers:
                return
            watchers.remove(watcher)
            if not watchers:
                del self._watchers[event_id]
        logger.debug(f"Watcher removed for event {event_id}")
