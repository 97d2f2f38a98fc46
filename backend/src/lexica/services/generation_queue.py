"""Public API of the word generation queue.

Used by the HTTP routes (and anything else in the app) to request content for a
word and to read generation progress. Processing happens in WordGenerationRunner.
"""

import structlog

from lexica.models.word import WordProcessingStatus
from lexica.repositories.generation_job import QueueSummary
from lexica.repositories.word import WordStatus
from lexica.services.exceptions import WordNotFoundError
from lexica.services.status_notifier import StatusNotifier
from lexica.uow import UnitOfWorkFactory

logger = structlog.get_logger(__name__)


class GenerationQueueService:
    """Enqueue generation jobs and report word/queue status."""

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        notifier: StatusNotifier,
        default_sentence_count: int = 3,
    ):
        """Initialize queue service.

        Args:
            uow_factory: Factory for database units of work
            notifier: Receives a word update after each enqueue
            default_sentence_count: Used when the caller does not specify a count
        """
        self.uow_factory = uow_factory
        self.notifier = notifier
        self.default_sentence_count = default_sentence_count

    async def enqueue(
        self,
        word_id: int,
        language: str | None = None,
        topic: str | None = None,
        desired_sentence_count: int | None = None,
    ) -> WordStatus:
        """Queue (or re-queue) content generation for a word.

        Overwrites any existing job for the word, including one that is currently
        processing; the worker discards the superseded run's outcome. The word's
        processing status becomes 'queued' in the same transaction.

        Args:
            word_id: Word to generate content for
            language: Target language (default: the word's language)
            topic: Optional topic hint for sentence generation
            desired_sentence_count: Sentences wanted (default: configured count)

        Returns:
            The word's status after enqueueing

        Raises:
            WordNotFoundError: If the word does not exist
            ValueError: If desired_sentence_count is not positive
        """
        count = (
            desired_sentence_count
            if desired_sentence_count is not None
            else self.default_sentence_count
        )
        if count < 1:
            raise ValueError("desired_sentence_count must be at least 1")

        async with await self.uow_factory() as uow:
            word = await uow.words.get_by_id(word_id)
            if word is None:
                raise WordNotFoundError(word_id)

            job = await uow.generation_jobs.enqueue(
                word_id=word_id,
                language=language or word.language,
                topic=topic,
                desired_sentence_count=count,
            )
            await uow.words.set_processing_status(word_id, WordProcessingStatus.QUEUED)
            status = await uow.words.get_status(word_id)

        logger.info(
            "job.enqueued",
            job_id=job.id,
            word_id=word_id,
            language=job.language,
            topic=topic,
            desired_sentence_count=count,
            version=job.version,
        )
        await self.notifier.notify(word_id)

        assert status is not None
        return status

    async def get_status(self, word_id: int) -> WordStatus | None:
        """Return a word's processing status and sentence count (None if unknown)."""
        async with await self.uow_factory() as uow:
            return await uow.words.get_status(word_id)

    async def get_queue_summary(self, language: str | None = None) -> QueueSummary:
        """Return per-status counts and the queued/processing word lists."""
        async with await self.uow_factory() as uow:
            return await uow.generation_jobs.get_queue_summary(language)
