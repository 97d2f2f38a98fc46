"""GenerationQueueService tests.

Tests focus on the public queue API:
- enqueue creates/overwrites the job and marks the word queued
- defaults for language and sentence count
- unknown words and invalid counts are rejected
- status and summary reads
"""

import pytest

from lexica.models.generation_job import JobStatus
from lexica.models.word import WordProcessingStatus
from lexica.services.exceptions import WordNotFoundError


@pytest.mark.asyncio
async def test_enqueue_marks_word_queued_and_notifies(
    queue_service, uow_factory, make_word, word_updates
):
    word_id = await make_word("puerta", "spanish")

    status = await queue_service.enqueue(word_id)

    assert status.processing_status == WordProcessingStatus.QUEUED
    assert status.sentence_count == 0
    async with await uow_factory() as uow:
        job = await uow.generation_jobs.get_by_word(word_id)
    assert job.status == JobStatus.QUEUED
    assert job.language == "spanish"  # defaults to the word's language
    assert job.desired_sentence_count == 3  # configured default
    assert [(u.word_id, u.processing_status) for u in word_updates] == [
        (word_id, WordProcessingStatus.QUEUED)
    ]


@pytest.mark.asyncio
async def test_enqueue_overrides(queue_service, uow_factory, make_word):
    word_id = await make_word("porta", "spanish")

    await queue_service.enqueue(
        word_id, language="italian", topic="architecture", desired_sentence_count=5
    )

    async with await uow_factory() as uow:
        job = await uow.generation_jobs.get_by_word(word_id)
    assert job.language == "italian"
    assert job.topic == "architecture"
    assert job.desired_sentence_count == 5


@pytest.mark.asyncio
async def test_enqueue_is_idempotent(queue_service, uow_factory, make_word):
    """Enqueueing twice leaves exactly one queued job for the word."""
    word_id = await make_word()

    await queue_service.enqueue(word_id)
    await queue_service.enqueue(word_id)

    summary = await queue_service.get_queue_summary()
    assert summary.queued == 1
    assert [w.word_id for w in summary.queued_words] == [word_id]


@pytest.mark.asyncio
async def test_enqueue_unknown_word_raises(queue_service):
    with pytest.raises(WordNotFoundError) as exc_info:
        await queue_service.enqueue(4242)
    assert exc_info.value.word_id == 4242


@pytest.mark.asyncio
async def test_enqueue_rejects_non_positive_count(queue_service, make_word):
    word_id = await make_word()

    with pytest.raises(ValueError, match="at least 1"):
        await queue_service.enqueue(word_id, desired_sentence_count=0)


@pytest.mark.asyncio
async def test_get_status(queue_service, make_word):
    word_id = await make_word()

    status = await queue_service.get_status(word_id)

    assert status.processing_status == WordProcessingStatus.READY
    assert await queue_service.get_status(999) is None
