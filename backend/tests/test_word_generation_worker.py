"""Word generation worker tests.

Scenarios:
- A: New word, generation succeeds on the first attempt → completed, word ready
- B: Generation fails twice then succeeds → completed on attempt 3
- C: Generation always fails → failed after max_attempts with the last error kept

Also covered: retry gate, superseding re-enqueue, deleted words, notifier
failures, infrastructure errors stopping the loop, orphan recovery and
start/stop of the background task.
"""

import asyncio

import pytest

from lexica.models.generation_job import JobStatus
from lexica.models.word import WordProcessingStatus
from lexica.repositories.word import WordRepository
from lexica.services.exceptions import LLMUnavailableError, StoreUnavailableError
from lexica.services.generation.base import GeneratedSentence
from lexica.services.status_notifier import StatusNotifier
from lexica.workers.word_generation_worker import WordGenerationRunner


async def get_job(uow_factory, word_id):
    async with await uow_factory() as uow:
        return await uow.generation_jobs.get_by_word(word_id)


async def get_word_status(uow_factory, word_id):
    async with await uow_factory() as uow:
        return await uow.words.get_status(word_id)


@pytest.mark.asyncio
async def test_run_once_on_empty_queue_returns_false(runner):
    assert await runner.run_once() is False


@pytest.mark.asyncio
async def test_scenario_a_first_attempt_succeeds(
    runner, queue_service, uow_factory, make_word, word_updates
):
    """New word, generator succeeds → completed, 3 sentences, word ready."""
    word_id = await make_word()
    await queue_service.enqueue(word_id)

    assert await runner.run_once() is True

    job = await get_job(uow_factory, word_id)
    assert job.status == JobStatus.COMPLETED
    assert job.attempts == 1
    status = await get_word_status(uow_factory, word_id)
    assert status.processing_status == WordProcessingStatus.READY
    assert status.sentence_count == 3

    statuses = [u.processing_status for u in word_updates]
    assert statuses[0] == WordProcessingStatus.QUEUED
    assert WordProcessingStatus.PROCESSING in statuses
    assert statuses[-1] == WordProcessingStatus.READY
    assert word_updates[-1].sentence_count == 3


@pytest.mark.asyncio
async def test_scenario_b_two_failures_then_success(
    runner, queue_service, uow_factory, make_word, generator
):
    """Generator fails twice then succeeds → completed after attempt 3."""
    word_id = await make_word()
    generator.failures = [LLMUnavailableError("ollama down"), LLMUnavailableError("ollama down")]
    await queue_service.enqueue(word_id)

    await runner.run_once()
    job = await get_job(uow_factory, word_id)
    assert job.status == JobStatus.QUEUED
    assert job.attempts == 1
    assert job.last_error == "ollama down"
    status = await get_word_status(uow_factory, word_id)
    assert status.processing_status == WordProcessingStatus.QUEUED

    await runner.run_once()
    await runner.run_once()

    job = await get_job(uow_factory, word_id)
    assert job.status == JobStatus.COMPLETED
    assert job.attempts == 3
    status = await get_word_status(uow_factory, word_id)
    assert status.processing_status == WordProcessingStatus.READY
    assert status.sentence_count >= 3


@pytest.mark.asyncio
async def test_scenario_c_exhausts_attempts(
    runner, queue_service, uow_factory, make_word, generator
):
    """Generator always fails → failed after max_attempts, word failed."""
    word_id = await make_word()
    generator.failures = [LLMUnavailableError(f"failure {i}") for i in range(1, 10)]
    await queue_service.enqueue(word_id)

    for _ in range(3):
        assert await runner.run_once() is True

    job = await get_job(uow_factory, word_id)
    assert job.status == JobStatus.FAILED
    assert job.attempts == 3
    assert job.last_error == "failure 3"
    status = await get_word_status(uow_factory, word_id)
    assert status.processing_status == WordProcessingStatus.FAILED
    assert status.sentence_count == 0

    # Terminal: nothing left to claim
    assert await runner.run_once() is False
    assert len(generator.calls) == 3


@pytest.mark.asyncio
async def test_incomplete_generation_is_retried_for_the_remainder(
    runner, queue_service, uow_factory, make_word, generator
):
    word_id = await make_word()
    generator.replies.append([GeneratedSentence(text="Una."), GeneratedSentence(text="Dos.")])
    await queue_service.enqueue(word_id)

    await runner.run_once()
    job = await get_job(uow_factory, word_id)
    assert job.status == JobStatus.QUEUED
    assert job.last_error == "Sentence generation incomplete. Have 2, wanted 3."

    await runner.run_once()

    job = await get_job(uow_factory, word_id)
    assert job.status == JobStatus.COMPLETED
    assert [call["count"] for call in generator.calls] == [3, 1]


@pytest.mark.asyncio
async def test_retry_delay_gates_rescheduled_job(
    uow_factory, pipeline, notifier, settings, queue_service, make_word, generator
):
    """With a real backoff the failed job is not claimed again immediately."""
    settings.retry_backoff_seconds = 60
    runner = WordGenerationRunner(uow_factory, pipeline, notifier, settings)
    word_id = await make_word()
    generator.failures = [LLMUnavailableError("ollama down")]
    await queue_service.enqueue(word_id)

    assert await runner.run_once() is True
    assert await runner.run_once() is False

    settings.enforce_retry_delay = False
    ungated = WordGenerationRunner(uow_factory, pipeline, notifier, settings)
    assert await ungated.run_once() is True
    assert (await get_job(uow_factory, word_id)).status == JobStatus.COMPLETED


@pytest.mark.asyncio
async def test_reenqueue_during_processing_supersedes_outcome(
    runner, queue_service, uow_factory, make_word, generator
):
    """A word re-enqueued mid-run keeps its new queued job; the stale outcome is dropped."""
    word_id = await make_word()
    original_generate = generator.generate_sentences

    async def generate_and_reenqueue(word, language, count, topic=None):
        await queue_service.enqueue(word_id, topic="second request")
        return await original_generate(word, language, count, topic)

    generator.generate_sentences = generate_and_reenqueue
    await queue_service.enqueue(word_id)

    await runner.run_once()

    job = await get_job(uow_factory, word_id)
    assert job.status == JobStatus.QUEUED
    assert job.attempts == 0
    assert job.topic == "second request"
    status = await get_word_status(uow_factory, word_id)
    assert status.processing_status == WordProcessingStatus.QUEUED
    assert status.sentence_count == 3

    # The fresh job finds the sentences already stored
    generator.generate_sentences = original_generate
    await runner.run_once()

    job = await get_job(uow_factory, word_id)
    assert job.status == JobStatus.COMPLETED
    assert len(generator.calls) == 1
    status = await get_word_status(uow_factory, word_id)
    assert status.processing_status == WordProcessingStatus.READY


@pytest.mark.asyncio
async def test_missing_word_completes_job(
    runner, queue_service, uow_factory, make_word, generator, monkeypatch
):
    """If the word vanished since enqueue, the job completes without generation."""
    word_id = await make_word()
    await queue_service.enqueue(word_id)

    async def no_word(self, word_id):
        return None

    monkeypatch.setattr(WordRepository, "get_by_id", no_word)

    assert await runner.run_once() is True

    job = await get_job(uow_factory, word_id)
    assert job.status == JobStatus.COMPLETED
    assert generator.calls == []


@pytest.mark.asyncio
async def test_notifier_failure_does_not_break_processing(
    uow_factory, pipeline, settings, queue_service, make_word
):
    def broken_callback(update):
        raise RuntimeError("renderer gone")

    runner = WordGenerationRunner(
        uow_factory, pipeline, StatusNotifier(uow_factory, broken_callback), settings
    )
    word_id = await make_word()
    await queue_service.enqueue(word_id)

    assert await runner.run_once() is True
    assert (await get_job(uow_factory, word_id)).status == JobStatus.COMPLETED


@pytest.mark.asyncio
async def test_infrastructure_error_propagates_from_run_once(
    runner, queue_service, uow_factory, make_word, generator
):
    """Store failures are not recorded as job failures."""
    word_id = await make_word()
    generator.failures = [StoreUnavailableError("database is closed")]
    await queue_service.enqueue(word_id)

    with pytest.raises(StoreUnavailableError):
        await runner.run_once()

    job = await get_job(uow_factory, word_id)
    assert job.status == JobStatus.PROCESSING
    assert job.last_error is None


@pytest.mark.asyncio
async def test_infrastructure_error_stops_loop_and_orphan_is_recovered(
    uow_factory, pipeline, notifier, settings, queue_service, make_word, generator
):
    """The loop exits on a store failure; the next runner requeues the orphan."""
    word_id = await make_word()
    generator.failures = [StoreUnavailableError("database is closed")]
    await queue_service.enqueue(word_id)

    runner = WordGenerationRunner(uow_factory, pipeline, notifier, settings)
    runner.start()
    await asyncio.wait_for(runner.wait(), timeout=5)
    assert runner.is_running is False
    assert (await get_job(uow_factory, word_id)).status == JobStatus.PROCESSING

    restarted = WordGenerationRunner(uow_factory, pipeline, notifier, settings)
    assert await restarted.recover_orphaned_jobs() == 1

    job = await get_job(uow_factory, word_id)
    assert job.status == JobStatus.QUEUED
    assert job.attempts == 1
    status = await get_word_status(uow_factory, word_id)
    assert status.processing_status == WordProcessingStatus.QUEUED


@pytest.mark.asyncio
async def test_start_processes_queue_and_stop_drains(
    runner, queue_service, uow_factory, make_word
):
    first = await make_word("uno")
    second = await make_word("dos")
    await queue_service.enqueue(first)
    await queue_service.enqueue(second)

    runner.start()
    runner.start()  # idempotent
    assert runner.is_running

    for _ in range(500):
        statuses = [await get_word_status(uow_factory, w) for w in (first, second)]
        if all(s.processing_status == WordProcessingStatus.READY for s in statuses):
            break
        await asyncio.sleep(0.01)

    await asyncio.wait_for(runner.stop(), timeout=5)

    assert runner.is_running is False
    for word_id in (first, second):
        assert (await get_job(uow_factory, word_id)).status == JobStatus.COMPLETED


@pytest.mark.asyncio
async def test_stop_wakes_sleeping_loop(uow_factory, pipeline, notifier, settings):
    settings.poll_interval_seconds = 60
    runner = WordGenerationRunner(uow_factory, pipeline, notifier, settings)

    runner.start()
    await asyncio.sleep(0.05)
    await asyncio.wait_for(runner.stop(), timeout=2)

    assert runner.is_running is False


@pytest.mark.asyncio
async def test_stop_lets_in_flight_job_finish(runner, queue_service, uow_factory, make_word, generator):
    """stop() during generation waits for the job instead of cancelling it."""
    word_id = await make_word()
    original_generate = generator.generate_sentences
    generating = asyncio.Event()
    release = asyncio.Event()

    async def blocking_generate(word, language, count, topic=None):
        generating.set()
        await release.wait()
        return await original_generate(word, language, count, topic)

    generator.generate_sentences = blocking_generate
    await queue_service.enqueue(word_id)

    runner.start()
    await asyncio.wait_for(generating.wait(), timeout=5)

    stopping = asyncio.create_task(runner.stop())
    await asyncio.sleep(0.05)
    assert not stopping.done()
    assert (await get_job(uow_factory, word_id)).status == JobStatus.PROCESSING

    release.set()
    await asyncio.wait_for(stopping, timeout=5)

    assert runner.is_running is False
    assert (await get_job(uow_factory, word_id)).status == JobStatus.COMPLETED
    status = await get_word_status(uow_factory, word_id)
    assert status.processing_status == WordProcessingStatus.READY
