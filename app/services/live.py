"""In-process publish/subscribe for record snapshots.

Pipeline runs publish from worker threads; SSE handlers subscribe from the
event loop. Each subscriber owns a bounded asyncio queue. When a slow reader
lets its queue fill up, the oldest snapshot is dropped so the reader always
converges on the latest state of the record.
"""
import asyncio
import logging
import threading
from contextlib import asynccontextmanager

logger = logging.getLogger(__name__)

FEED_CHANNEL = "feed"


def research_channel(research_id: str) -> str:
    return f"research:{research_id}"


def _offer(queue: asyncio.Queue, payload: dict) -> None:
    if queue.full():
        queue.get_nowait()
    queue.put_nowait(payload)


class Broadcaster:
    def __init__(self, queue_size: int = 32):
        self.queue_size = queue_size
        self._subscribers: dict[str, set[tuple[asyncio.AbstractEventLoop, asyncio.Queue]]] = {}
        self._lock = threading.Lock()

    @asynccontextmanager
    async def subscribe(self, channel: str):
        entry = (asyncio.get_running_loop(), asyncio.Queue(maxsize=self.queue_size))
        with self._lock:
            self._subscribers.setdefault(channel, set()).add(entry)
        try:
            yield entry[1]
        finally:
            with self._lock:
                subscribers = self._subscribers.get(channel)
                if subscribers is not None:
                    subscribers.discard(entry)
                    if not subscribers:
                        del self._subscribers[channel]

    def subscriber_count(self, channel: str) -> int:
        with self._lock:
            return len(self._subscribers.get(channel, ()))

    def publish(self, channel: str, payload: dict) -> int:
        """Push a snapshot to every subscriber of ``channel``. Safe from any thread."""
        with self._lock:
            targets = list(self._subscribers.get(channel, ()))

        delivered = 0
        for loop, queue in targets:
            try:
                loop.call_soon_threadsafe(_offer, queue, payload)
                delivered += 1
            except RuntimeError:
                # Subscriber's loop already closed; its context manager cleans up
                logger.debug("Dropped snapshot for closed subscriber on %s", channel)
        return delivered


broadcaster = Broadcaster()
