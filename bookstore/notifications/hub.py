import asyncio
import logging
import threading
from typing import Set, Tuple

logger = logging.getLogger(__name__)

QUEUE_SIZE = 100


class NotificationHub:
    """In-process fan-out of staff alerts to connected WebSocket clients.

    ``publish`` is called from sync request handlers running in the
    threadpool, so every hand-off to a subscriber goes through its event
    loop's ``call_soon_threadsafe``.
    """

    def __init__(self):
        self._subscribers: Set[Tuple[asyncio.AbstractEventLoop, asyncio.Queue]] = set()
        self._lock = threading.Lock()

    def subscribe(self) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue(maxsize=QUEUE_SIZE)
        with self._lock:
            self._subscribers.add((asyncio.get_running_loop(), queue))
        return queue

    def unsubscribe(self, queue: asyncio.Queue):
        with self._lock:
            self._subscribers = {s for s in self._subscribers if s[1] is not queue}

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def publish(self, message: dict) -> int:
        with self._lock:
            subscribers = list(self._subscribers)

        delivered = 0
        for loop, queue in subscribers:
            if loop.is_closed():
                self.unsubscribe(queue)
                continue
            loop.call_soon_threadsafe(self._offer, queue, message)
            delivered += 1
        return delivered

    @staticmethod
    def _offer(queue: asyncio.Queue, message: dict):
        try:
            queue.put_nowait(message)
        except asyncio.QueueFull:
            logger.warning(f"Dropping alert {message.get('id')}: subscriber queue full")


hub = NotificationHub()
