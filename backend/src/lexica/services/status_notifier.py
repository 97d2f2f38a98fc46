"""Word status change notifications.

The worker and the queue service call ``StatusNotifier.notify`` after every
change to a word's processing status or sentence count. The injected callback
pushes the update to the UI; its failures are logged and never reach the caller.
"""

import inspect
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Union

import structlog

from lexica.models.word import WordProcessingStatus
from lexica.uow import UnitOfWorkFactory

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class WordUpdate:
    """Payload of the ``wordUpdated`` event."""

    word_id: int
    processing_status: WordProcessingStatus
    sentence_count: int

    def to_event(self) -> dict[str, Any]:
        """Serialize for the UI (camelCase keys, status as plain string)."""
        return {
            "type": "wordUpdated",
            "wordId": self.word_id,
            "processingStatus": self.processing_status.value,
            "sentenceCount": self.sentence_count,
        }


WordUpdateCallback = Callable[[WordUpdate], Union[None, Awaitable[None]]]


class StatusNotifier:
    """Fire-and-forget delivery of word updates to a single callback."""

    def __init__(self, uow_factory: UnitOfWorkFactory, callback: WordUpdateCallback | None = None):
        """Initialize notifier.

        Args:
            uow_factory: Factory used to read the word's current status
            callback: Sync or async callable receiving WordUpdate (None disables)
        """
        self.uow_factory = uow_factory
        self.callback = callback

    async def notify(self, word_id: int) -> None:
        """Read the word's current status and deliver it to the callback.

        Unknown words are skipped. Any exception (database read or callback) is
        logged and swallowed.
        """
        if self.callback is None:
            return

        try:
            async with await self.uow_factory() as uow:
                status = await uow.words.get_status(word_id)
            if status is None:
                return

            update = WordUpdate(
                word_id=word_id,
                processing_status=status.processing_status,
                sentence_count=status.sentence_count,
            )
            outcome = self.callback(update)
            if inspect.isawaitable(outcome):
                await outcome
        except Exception as e:
            logger.warning(
                "notifier.delivery_failed",
                word_id=word_id,
                error_type=type(e).__name__,
                error_message=str(e),
            )
