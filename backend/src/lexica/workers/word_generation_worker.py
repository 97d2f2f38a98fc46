"""Word generation worker for queued content generation jobs.

Polls word_generation_jobs for the oldest eligible queued row, claims it, runs
the ContentPipeline for the word and records the outcome.

## Execution model

One runner per process, one job at a time. The runner owns an asyncio task;
``stop()`` signals it and waits for the current iteration to finish instead of
cancelling it, so a sentence is never half written.

## Outcomes

- Pipeline success → job completed, word ready
- Pipeline failure, attempts < max_attempts → job rescheduled with linear
  backoff (retry_backoff_seconds * attempt), word queued
- Pipeline failure, attempts >= max_attempts → job failed, word failed
- Word deleted since enqueue → job completed without running the pipeline
- Job store unreachable → runner stops (no retry loop against a dead database)

## Superseded claims

Every state write is guarded by the version captured at claim time. If the word
was re-enqueued while its job was processing, the write matches no row, the
outcome is dropped and the fresh job runs on a later iteration.

## Crash recovery

On start, rows left in 'processing' longer than orphaned_job_threshold_seconds
are requeued before polling begins.
"""

import asyncio

import structlog

from lexica.core.config import Settings
from lexica.core.timezone import utc_after, utcnow
from lexica.models.generation_job import WordGenerationJob
from lexica.models.word import WordProcessingStatus
from lexica.services.content_pipeline import ContentPipeline
from lexica.services.exceptions import is_infrastructure_error
from lexica.services.status_notifier import StatusNotifier
from lexica.uow import UnitOfWorkFactory

logger = structlog.get_logger(__name__)


class WordGenerationRunner:
    """Single sequential consumer of the word generation queue."""

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        pipeline: ContentPipeline,
        notifier: StatusNotifier,
        settings: Settings,
    ):
        """Initialize runner.

        Args:
            uow_factory: Factory for database units of work
            pipeline: Content pipeline run for each claimed job
            notifier: Receives a word update after every status change
            settings: Poll interval, retry policy and orphan threshold
        """
        self.uow_factory = uow_factory
        self.pipeline = pipeline
        self.notifier = notifier

        self.poll_interval = settings.poll_interval_seconds
        self.max_attempts = settings.max_attempts
        self.retry_backoff = settings.retry_backoff_seconds
        self.enforce_retry_delay = settings.enforce_retry_delay
        self.orphan_threshold = settings.orphaned_job_threshold_seconds

        self._task: asyncio.Task | None = None
        self._stop_event = asyncio.Event()

    @property
    def is_running(self) -> bool:
        """True while the loop task is alive."""
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the worker loop (no-op if already running)."""
        if self.is_running:
            return

        self._stop_event.clear()
        self._task = asyncio.create_task(self._run_loop(), name="word-generation-runner")

    async def stop(self) -> None:
        """Stop the loop after the current iteration completes.

        An in-flight job is allowed to finish; a sleeping loop wakes immediately.
        """
        self._stop_event.set()
        if self._task is not None:
            await self._task
            self._task = None

    async def wait(self) -> None:
        """Wait until the loop exits on its own (e.g. after a store failure)."""
        if self._task is not None:
            await self._task

    async def recover_orphaned_jobs(self) -> int:
        """Requeue jobs stuck in 'processing' from a previous process.

        Returns:
            Number of jobs requeued
        """
        stale_before = utc_after(-self.orphan_threshold)

        async with await self.uow_factory() as uow:
            word_ids = await uow.generation_jobs.requeue_orphaned(stale_before)
            for word_id in word_ids:
                await uow.words.set_processing_status(word_id, WordProcessingStatus.QUEUED)

        if word_ids:
            logger.info("worker.recovery", orphaned_jobs_requeued=len(word_ids))
            for word_id in word_ids:
                await self.notifier.notify(word_id)

        return len(word_ids)

    async def run_once(self) -> bool:
        """Claim and process the next eligible job.

        Returns:
            True if a job was found, False if the queue had nothing eligible

        Raises:
            Exception: Only infrastructure errors (job-local failures are recorded
                on the job)
        """
        eligible_before = utcnow() if self.enforce_retry_delay else None

        async with await self.uow_factory() as uow:
            job = await uow.generation_jobs.get_next(eligible_before)

        if job is None:
            return False

        logger.debug(
            "job.found",
            job_id=job.id,
            word_id=job.word_id,
            attempts=job.attempts,
            desired_sentence_count=job.desired_sentence_count,
        )
        await self.process_job(job)
        return True

    async def process_job(self, job: WordGenerationJob) -> None:
        """Claim ``job`` and drive it to completed, rescheduled or failed.

        Workflow:
        1. Claim: queued → processing (attempts + 1), word processing
        2. Load the word; a deleted word completes the job immediately
        3. Run the content pipeline
        4. Record success or failure (version-guarded)
        """
        assert job.id is not None

        async with await self.uow_factory() as uow:
            claimed = await uow.generation_jobs.mark_processing(job.id, job.version)
            if claimed is not None:
                await uow.words.set_processing_status(
                    job.word_id, WordProcessingStatus.PROCESSING
                )

        if claimed is None:
            logger.info("job.claim_lost", job_id=job.id, word_id=job.word_id)
            return

        await self.notifier.notify(claimed.word_id)
        logger.info(
            "job.claimed",
            job_id=claimed.id,
            word_id=claimed.word_id,
            language=claimed.language,
            attempt_number=claimed.attempts,
        )

        try:
            async with await self.uow_factory() as uow:
                word = await uow.words.get_by_id(claimed.word_id)

            if word is None:
                logger.warning("job.word_missing", job_id=claimed.id, word_id=claimed.word_id)
                async with await self.uow_factory() as uow:
                    await uow.generation_jobs.complete(claimed.id, claimed.version)  # type: ignore[arg-type]
                return

            await self.pipeline.run(
                word,
                claimed.language,
                claimed.topic,
                claimed.desired_sentence_count,
            )

        except Exception as e:
            if is_infrastructure_error(e):
                raise
            await self._record_failure(claimed, e)
            return

        await self._record_success(claimed)

    async def _record_success(self, job: WordGenerationJob) -> None:
        async with await self.uow_factory() as uow:
            applied = await uow.generation_jobs.complete(job.id, job.version)  # type: ignore[arg-type]
            if applied:
                await uow.words.set_processing_status(job.word_id, WordProcessingStatus.READY)

        if applied:
            logger.info(
                "job.completed",
                job_id=job.id,
                word_id=job.word_id,
                attempt_number=job.attempts,
            )
        else:
            logger.info("job.superseded", job_id=job.id, word_id=job.word_id, outcome="completed")

        await self.notifier.notify(job.word_id)

    async def _record_failure(self, job: WordGenerationJob, error: Exception) -> None:
        """Reschedule with linear backoff, or fail once attempts are exhausted."""
        attempt_number = job.attempts
        error_message = str(error) or type(error).__name__
        will_retry = attempt_number < self.max_attempts

        async with await self.uow_factory() as uow:
            if will_retry:
                delay = self.retry_backoff * attempt_number
                applied = await uow.generation_jobs.reschedule(
                    job.id, job.version, delay, error_message  # type: ignore[arg-type]
                )
                word_status = WordProcessingStatus.QUEUED
            else:
                applied = await uow.generation_jobs.fail(
                    job.id, job.version, error_message  # type: ignore[arg-type]
                )
                word_status = WordProcessingStatus.FAILED

            if applied:
                await uow.words.set_processing_status(job.word_id, word_status)

        if not applied:
            logger.info(
                "job.superseded",
                job_id=job.id,
                word_id=job.word_id,
                outcome=word_status.value,
                error_message=error_message,
            )
        elif will_retry:
            logger.warning(
                "job.retry_scheduled",
                job_id=job.id,
                word_id=job.word_id,
                error_type=type(error).__name__,
                error_message=error_message,
                attempt_number=attempt_number,
                retry_in_seconds=self.retry_backoff * attempt_number,
            )
        else:
            logger.error(
                "job.failed",
                job_id=job.id,
                word_id=job.word_id,
                error_type=type(error).__name__,
                error_message=error_message,
                attempt_number=attempt_number,
            )

        await self.notifier.notify(job.word_id)

    async def _run_loop(self) -> None:
        """Main worker loop.

        Workflow:
        1. Requeue orphaned jobs
        2. Process jobs back to back while the queue has work
        3. Sleep poll_interval when it is empty (woken early by stop())
        4. Exit on stop() or on an infrastructure error
        """
        try:
            await self.recover_orphaned_jobs()
        except Exception as e:
            if is_infrastructure_error(e):
                logger.error("worker.store_unavailable", error_message=str(e), phase="recovery")
                return
            logger.error(
                "worker.recovery_failed",
                error_type=type(e).__name__,
                error_message=str(e),
                exc_info=True,
            )

        logger.info(
            "worker.started",
            poll_interval=self.poll_interval,
            max_attempts=self.max_attempts,
            retry_backoff=self.retry_backoff,
        )

        while not self._stop_event.is_set():
            try:
                handled = await self.run_once()
            except Exception as e:
                if is_infrastructure_error(e):
                    logger.error(
                        "worker.store_unavailable",
                        error_type=type(e).__name__,
                        error_message=str(e),
                    )
                    break
                logger.error(
                    "worker.error",
                    error_type=type(e).__name__,
                    error_message=str(e),
                    exc_info=True,
                )
                handled = False

            if not handled:
                await self._sleep(self.poll_interval)

        logger.info("worker.stopped")

    async def _sleep(self, seconds: float) -> None:
        """Sleep without busy-waiting; returns early when stop() is called."""
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass
