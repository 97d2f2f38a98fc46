"""WordGenerationJob repository for Lexica backend.

Provides the durable job store used by the word generation worker: upsert on
enqueue, oldest-first polling, version-guarded state transitions and startup
recovery of orphaned rows.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta

from sqlalchemy import func, select, update
from sqlalchemy.dialects.sqlite import insert
from sqlalchemy.ext.asyncio import AsyncSession

from lexica.core.timezone import utcnow
from lexica.models.generation_job import JobStatus, WordGenerationJob
from lexica.models.word import Word, WordProcessingStatus


@dataclass
class JobWordInfo:
    """Word listed in the queue summary."""

    word_id: int
    word: str
    status: JobStatus
    language: str
    topic: str | None = None


@dataclass
class QueueSummary:
    """Counts per job status plus the words currently queued or in progress."""

    queued: int = 0
    processing: int = 0
    failed: int = 0
    queued_words: list[JobWordInfo] = field(default_factory=list)
    processing_words: list[JobWordInfo] = field(default_factory=list)


class WordGenerationJobRepository:
    """Repository for WordGenerationJob entities.

    State-changing methods take the ``version`` captured when the job was read and
    only write if the stored row still carries it. A mismatch means the word was
    re-enqueued in the meantime; the method returns a falsy value and leaves the
    row untouched.
    """

    def __init__(self, session: AsyncSession):
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy async session for database operations
        """
        self.session = session

    async def get_by_id(self, job_id: int) -> WordGenerationJob | None:
        """Retrieve job by primary key, refreshing any stale identity-map copy."""
        result = await self.session.execute(
            select(WordGenerationJob)
            .where(WordGenerationJob.id == job_id)  # type: ignore[arg-type]
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_by_word(self, word_id: int) -> WordGenerationJob | None:
        """Retrieve the job row for a word (at most one exists)."""
        result = await self.session.execute(
            select(WordGenerationJob)
            .where(WordGenerationJob.word_id == word_id)  # type: ignore[arg-type]
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def enqueue(
        self,
        word_id: int,
        language: str,
        topic: str | None,
        desired_sentence_count: int,
    ) -> WordGenerationJob:
        """Create or overwrite the job row for a word (UPSERT).

        Uses INSERT ... ON CONFLICT(word_id) DO UPDATE so a word never has more than
        one row. An existing row is reset regardless of its status, including a row
        that is currently processing; its version is bumped so the in-flight worker
        discards its outcome.

        Args:
            word_id: Word to generate content for
            language: Target language
            topic: Optional topic hint for sentence generation
            desired_sentence_count: Number of sentences the word should end up with

        Returns:
            The queued job row
        """
        now = utcnow()
        stmt = insert(WordGenerationJob).values(
            word_id=word_id,
            language=language,
            topic=topic,
            desired_sentence_count=desired_sentence_count,
            status=JobStatus.QUEUED,
            attempts=0,
            last_error=None,
            version=1,
            created_at=now,
            updated_at=now,
            started_at=None,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["word_id"],
            set_={
                "language": language,
                "topic": topic,
                "desired_sentence_count": desired_sentence_count,
                "status": stmt.excluded.status,
                "attempts": 0,
                "last_error": None,
                "version": WordGenerationJob.version + 1,
                "updated_at": now,
                "started_at": None,
            },
        )
        await self.session.execute(stmt)
        await self.session.flush()

        job = await self.get_by_word(word_id)
        assert job is not None
        return job

    async def get_next(self, eligible_before: datetime | None = None) -> WordGenerationJob | None:
        """Retrieve the oldest queued job.

        Query explanation:
        - WHERE status = 'queued': Only jobs waiting for a worker
        - AND updated_at <= :eligible_before: Optional retry gate (rescheduled jobs
          carry a future updated_at until their backoff elapses)
        - ORDER BY updated_at ASC, created_at ASC: Oldest first

        Args:
            eligible_before: If set, skip jobs whose backoff has not elapsed yet

        Returns:
            Next job to process, or None if the queue is empty
        """
        stmt = select(WordGenerationJob).where(
            WordGenerationJob.status == JobStatus.QUEUED  # type: ignore[arg-type]
        )
        if eligible_before is not None:
            stmt = stmt.where(WordGenerationJob.updated_at <= eligible_before)  # type: ignore[arg-type]
        stmt = stmt.order_by(
            WordGenerationJob.updated_at.asc(),  # type: ignore[attr-defined]
            WordGenerationJob.created_at.asc(),  # type: ignore[attr-defined]
        ).limit(1)

        result = await self.session.execute(stmt.execution_options(populate_existing=True))
        return result.scalar_one_or_none()

    async def mark_processing(self, job_id: int, version: int) -> WordGenerationJob | None:
        """Claim a queued job: status processing, attempts + 1, started_at now.

        Args:
            job_id: Job to claim
            version: Version captured by get_next()

        Returns:
            The claimed job, or None if it was re-enqueued or claimed since it was read
        """
        job = await self._load_detached(job_id)
        if job is None or job.version != version or job.status != JobStatus.QUEUED:
            return None

        job.mark_processing()
        if not await self._write_guarded(job, version):
            return None
        return job

    async def reschedule(
        self,
        job_id: int,
        version: int,
        delay_seconds: float,
        last_error: str | None = None,
    ) -> bool:
        """Put a failed attempt back in the queue behind a backoff delay.

        Sets updated_at = now + delay so the job sorts behind fresher work (and is
        gated out of get_next(eligible_before=now) until the delay elapses).

        Returns:
            True if the row was updated, False if the claim is stale
        """
        job = await self._load_detached(job_id)
        if job is None or job.version != version:
            return False

        job.mark_rescheduled(utcnow() + timedelta(seconds=delay_seconds), last_error)
        return await self._write_guarded(job, version)

    async def complete(self, job_id: int, version: int) -> bool:
        """Mark a claimed job as completed.

        Returns:
            True if the row was updated, False if the claim is stale
        """
        job = await self._load_detached(job_id)
        if job is None or job.version != version:
            return False

        job.mark_completed()
        return await self._write_guarded(job, version)

    async def fail(self, job_id: int, version: int, error_message: str) -> bool:
        """Mark a claimed job as permanently failed.

        Returns:
            True if the row was updated, False if the claim is stale
        """
        job = await self._load_detached(job_id)
        if job is None or job.version != version:
            return False

        job.mark_failed(error_message)
        return await self._write_guarded(job, version)

    async def requeue_orphaned(self, stale_before: datetime) -> list[int]:
        """Reset jobs left in 'processing' by a worker that is no longer running.

        Query:
            UPDATE word_generation_jobs
            SET status = 'queued', started_at = NULL, version = version + 1
            WHERE status = 'processing' AND started_at <= :stale_before

        Attempts are kept so an orphan still counts towards max_attempts.

        Args:
            stale_before: Rows claimed at or before this time are considered orphaned

        Returns:
            Word IDs of the requeued jobs
        """
        result = await self.session.execute(
            select(WordGenerationJob.word_id).where(
                WordGenerationJob.status == JobStatus.PROCESSING,  # type: ignore[arg-type]
                WordGenerationJob.started_at <= stale_before,  # type: ignore[arg-type,operator]
            )
        )
        word_ids = list(result.scalars().all())
        if not word_ids:
            return []

        await self.session.execute(
            update(WordGenerationJob)
            .where(
                WordGenerationJob.status == JobStatus.PROCESSING,  # type: ignore[arg-type]
                WordGenerationJob.word_id.in_(word_ids),  # type: ignore[attr-defined]
            )
            .values(
                status=JobStatus.QUEUED,
                started_at=None,
                version=WordGenerationJob.version + 1,
                updated_at=utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        await self.session.flush()
        return word_ids

    async def get_queue_summary(self, language: str | None = None) -> QueueSummary:
        """Summarize the queue for the UI.

        Counts are taken per job status. The word lists only include queued and
        processing jobs whose word is not already marked failed, which hides rows
        left inconsistent by a partially applied failure.

        Args:
            language: Optional language filter (job language)

        Returns:
            QueueSummary with counts and word lists (oldest first)
        """
        count_stmt = select(WordGenerationJob.status, func.count(WordGenerationJob.id)).group_by(  # type: ignore[arg-type]
            WordGenerationJob.status
        )
        if language:
            count_stmt = count_stmt.where(WordGenerationJob.language == language)  # type: ignore[arg-type]
        counts = {status: count for status, count in (await self.session.execute(count_stmt)).all()}

        list_stmt = (
            select(WordGenerationJob, Word.word)
            .join(Word, Word.id == WordGenerationJob.word_id)  # type: ignore[arg-type]
            .where(
                WordGenerationJob.status.in_([JobStatus.QUEUED, JobStatus.PROCESSING]),  # type: ignore[attr-defined]
                Word.processing_status != WordProcessingStatus.FAILED,  # type: ignore[arg-type]
            )
            .order_by(
                WordGenerationJob.updated_at.asc(),  # type: ignore[attr-defined]
                WordGenerationJob.created_at.asc(),  # type: ignore[attr-defined]
            )
        )
        if language:
            list_stmt = list_stmt.where(WordGenerationJob.language == language)  # type: ignore[arg-type]

        summary = QueueSummary(
            queued=counts.get(JobStatus.QUEUED, 0),
            processing=counts.get(JobStatus.PROCESSING, 0),
            failed=counts.get(JobStatus.FAILED, 0),
        )
        for job, word_text in (await self.session.execute(list_stmt)).all():
            info = JobWordInfo(
                word_id=job.word_id,
                word=word_text,
                status=job.status,
                language=job.language,
                topic=job.topic,
            )
            if job.status == JobStatus.QUEUED:
                summary.queued_words.append(info)
            else:
                summary.processing_words.append(info)

        return summary

    async def _load_detached(self, job_id: int) -> WordGenerationJob | None:
        """Load a fresh copy of the job that the session will not flush on its own."""
        job = await self.get_by_id(job_id)
        if job is not None:
            self.session.expunge(job)
        return job

    async def _write_guarded(self, job: WordGenerationJob, expected_version: int) -> bool:
        """Persist the job's mutable fields only if the stored version is unchanged."""
        result = await self.session.execute(
            update(WordGenerationJob)
            .where(
                WordGenerationJob.id == job.id,  # type: ignore[arg-type]
                WordGenerationJob.version == expected_version,  # type: ignore[arg-type]
            )
            .values(
                status=job.status,
                attempts=job.attempts,
                last_error=job.last_error,
                started_at=job.started_at,
                updated_at=job.updated_at,
            )
            .execution_options(synchronize_session=False)
        )
        await self.session.flush()
        return result.rowcount == 1  # type: ignore[attr-defined]
