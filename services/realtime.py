"""
services/realtime.py

In-process publish/subscribe for notification inserts, streamed to clients as SSE.
- Events carry the notification id; consumers de-duplicate on it.
- Delivery is best effort: a full subscriber queue drops the event (logged).
"""

import asyncio
import json
import logging
import threading
from typing import AsyncIterator, Collection, Dict, Optional, Set

logger = logging.getLogger(__name__)

BROADCAST = "ALL"


def _running_loop():
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


class Subscription:
    def __init__(self, broker: "EventBroker", school_id: int, targets: Collection[str], maxsize: int = 100):
        self.broker = broker
        self.school_id = school_id
        self.targets: Set[str] = set(targets) | {BROADCAST}
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self.loop = _running_loop()
        self.closed = False

    def matches(self, event: dict) -> bool:
        return event.get("school_id") == self.school_id and event.get("target_user_id") in self.targets

    def deliver(self, event: dict) -> bool:
        # sync routes publish from the threadpool; hand the event to the subscriber's loop
        if self.loop is not None and self.loop.is_running() and _running_loop() is not self.loop:
            self.loop.call_soon_threadsafe(self._put, event)
            return True
        return self._put(event)

    def _put(self, event: dict) -> bool:
        try:
            self.queue.put_nowait(event)
            return True
        except asyncio.QueueFull:
            logger.warning("realtime queue full, dropping event %s", event.get("id"))
            return False

    async def get(self, timeout: Optional[float] = None) -> Optional[dict]:
        """Next event, or None when the timeout passes first."""
        try:
            return await asyncio.wait_for(self.queue.get(), timeout=timeout)
        except asyncio.TimeoutError:
            return None

    def unsubscribe(self) -> None:
        if not self.closed:
            self.closed = True
            self.broker._remove(self)


class EventBroker:
    def __init__(self):
        self._subs: Dict[int, Set[Subscription]] = {}
        self._lock = threading.Lock()

    def subscribe(self, school_id: int, targets: Collection[str]) -> Subscription:
        sub = Subscription(self, school_id, targets)
        with self._lock:
            self._subs.setdefault(school_id, set()).add(sub)
        logger.debug("realtime subscribe school=%s targets=%s", school_id, sorted(sub.targets))
        return sub

    def _remove(self, sub: Subscription) -> None:
        with self._lock:
            subs = self._subs.get(sub.school_id)
            if subs is not None:
                subs.discard(sub)
                if not subs:
                    del self._subs[sub.school_id]

    def publish(self, event: dict) -> int:
        """Fan out one insert event; returns how many subscribers received it."""
        with self._lock:
            subs = list(self._subs.get(event.get("school_id"), ()))
        delivered = 0
        for sub in subs:
            if not sub.matches(event):
                continue
            if sub.deliver(event):
                delivered += 1
        return delivered

    def subscriber_count(self, school_id: Optional[int] = None) -> int:
        with self._lock:
            if school_id is None:
                return sum(len(s) for s in self._subs.values())
            return len(self._subs.get(school_id, ()))


def sse_format(event: dict) -> str:
    return f"id: {event.get('id')}\nevent: notification\ndata: {json.dumps(event, ensure_ascii=False, default=str)}\n\n"


async def sse_stream(sub: Subscription, keepalive: float = 15.0) -> AsyncIterator[str]:
    """Yields SSE frames until the client goes away; always unsubscribes."""
    try:
        yield ": connected\n\n"
        while True:
            event = await sub.get(timeout=keepalive)
            if event is None:
                yield ": keepalive\n\n"
                continue
            yield sse_format(event)
    finally:
        sub.unsubscribe()


# ✅ shared broker
broker = EventBroker()
