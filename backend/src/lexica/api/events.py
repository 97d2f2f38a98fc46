"""In-process fan-out of word updates to connected UI clients.

The StatusNotifier callback is ``WordUpdateBroadcaster.publish``; each websocket
connection subscribes its own bounded queue and drains it.
"""

import asyncio

import structlog

from lexica.services.status_notifier import WordUpdate

logger = structlog.get_logger(__name__)


class WordUpdateBroadcaster:
    """Publish/subscribe hub for ``wordUpdated`` events."""

    def __init__(self, max_queue_size: int = 100):
        self.max_queue_size = max_queue_size
        self._subscribers: set[asyncio.Queue[WordUpdate]] = set()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self) -> asyncio.Queue[WordUpdate]:
        """Register a new subscriber and return its queue."""
        queue: asyncio.Queue[WordUpdate] = asyncio.Queue(maxsize=self.max_queue_size)
        self._subscribers.add(queue)
        logger.debug("broadcast.subscribed", subscribers=len(self._subscribers))
        return queue

    def unsubscribe(self, queue: asyncio.Queue[WordUpdate]) -> None:
        self._subscribers.discard(queue)
        logger.debug("broadcast.unsubscribed", subscribers=len(self._subscribers))

    def publish(self, update: WordUpdate) -> None:
        """Deliver ``update`` to every subscriber without blocking.

        A subscriber whose queue is full loses its oldest pending update; the
        newest state of a word always gets through.
        """
        for queue in list(self._subscribers):
            if queue.full():
                queue.get_nowait()
                logger.warning("broadcast.subscriber_lagging", word_id=update.word_id)
            queue.put_nowait(update)
