import asyncio
import logging
import threading
import time
from typing import Optional

logger = logging.getLogger("artisign.notifier")


def session_topic(session_id: str) -> str:
    return f"/realtime/sign/{session_id}"


class Subscription:
    """
    One subscriber's mailbox. When full, the oldest event is dropped so
    a slow reader sees the latest state instead of an ever-growing lag.
    """
    def __init__(self, topic: str, maxsize: int = 64):
        self.topic = topic
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self.loop = asyncio.get_running_loop()
        self.dropped = 0

    def offer(self, event: dict):
        if self.queue.full():
            self.dropped += 1
            try:
                self.queue.get_nowait()
            except asyncio.QueueEmpty:
                pass
        self.queue.put_nowait(event)

    async def get(self) -> dict:
        return await self.queue.get()


class TopicHub:
    """In-process pub/sub keyed by topic string."""

    def __init__(self, maxsize: int = 64):
        self.maxsize = maxsize
        self._subs: dict[str, set[Subscription]] = {}
        self._lock = threading.Lock()

    def subscribe(self, topic: str) -> Subscription:
        sub = Subscription(topic, maxsize=self.maxsize)
        with self._lock:
            self._subs.setdefault(topic, set()).add(sub)
        return sub

    def unsubscribe(self, sub: Subscription):
        with self._lock:
            subs = self._subs.get(sub.topic)
            if not subs:
                return
            subs.discard(sub)
            if not subs:
                del self._subs[sub.topic]

    def subscriber_count(self, topic: str) -> int:
        with self._lock:
            return len(self._subs.get(topic, ()))

    def publish(self, topic: str, event: dict) -> int:
        with self._lock:
            subs = list(self._subs.get(topic, ()))

        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        for sub in subs:
            if sub.loop is running:
                sub.offer(event)
            else:
                sub.loop.call_soon_threadsafe(sub.offer, event)
        return len(subs)


class Notifier:
    """
    Fire-and-forget publisher of session updates.

    Nothing here raises to the caller: a missing transport or a failing
    one only gets logged.
    """
    def __init__(self, hub: Optional[TopicHub] = None):
        self.hub = hub

    def init(self, hub: TopicHub):
        self.hub = hub

    def publish(self, session_id: str, event: dict):
        if self.hub is None:
            logger.error("Transport not initialized for realtime updates")
            return

        payload = {"timestamp": int(time.time() * 1000), **event}
        try:
            self.hub.publish(session_topic(session_id), payload)
        except Exception:
            logger.exception(f"Failed to publish {event.get('type')} update for {session_id}")
