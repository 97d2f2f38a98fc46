"""WordGenerationJob entity - one content generation request per word."""

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import Index
from sqlmodel import Field, SQLModel

from lexica.core.timezone import utcnow


class JobStatus(str, Enum):
    """Generation job lifecycle status."""

    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class InvalidStateTransition(Exception):
    """Raised when attempting an invalid job state transition."""

    pass


class WordGenerationJob(SQLModel, table=True):
    """WordGenerationJob tracks sentence/audio generation for a single word.

    The row is unique per word and is overwritten on every enqueue. ``version`` is
    bumped on each overwrite so a worker holding an older claim can detect that its
    outcome no longer applies.

    ``updated_at`` doubles as the retry schedule: a rescheduled job gets an
    ``updated_at`` in the future and queued jobs are served oldest first.
    """

    __tablename__ = "word_generation_jobs"  # type: ignore[assignment]
    __table_args__ = (Index("idx_word_generation_jobs_status", "status", "updated_at"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    word_id: int = Field(foreign_key="words.id", unique=True, ondelete="CASCADE")
    language: str = Field(max_length=50)
    topic: Optional[str] = Field(default=None, max_length=255)
    desired_sentence_count: int = Field(default=3, ge=1)
    status: JobStatus = Field(default=JobStatus.QUEUED)
    attempts: int = Field(default=0, ge=0)
    last_error: Optional[str] = Field(default=None, max_length=1000)
    version: int = Field(default=1, ge=1)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    started_at: Optional[datetime] = Field(default=None)

    def mark_processing(self) -> None:
        """Transition from queued to processing and count the attempt.

        Raises:
            InvalidStateTransition: If current status is not queued
        """
        if self.status != JobStatus.QUEUED:
            raise InvalidStateTransition(
                f"Cannot mark processing from {self.status.value}. Job must be in queued state."
            )
        now = utcnow()
        self.status = JobStatus.PROCESSING
        self.attempts += 1
        self.started_at = now
        self.updated_at = now

    def mark_rescheduled(self, eligible_at: datetime, error_message: str | None = None) -> None:
        """Transition from processing back to queued for a later retry.

        Args:
            eligible_at: New ``updated_at`` value (now + backoff delay)
            error_message: Error from the failed attempt (truncated to 1000 characters)

        Raises:
            InvalidStateTransition: If current status is not processing
        """
        if self.status != JobStatus.PROCESSING:
            raise InvalidStateTransition(
                f"Cannot reschedule from {self.status.value}. Job must be in processing state."
            )
        self.status = JobStatus.QUEUED
        self.updated_at = eligible_at
        self.started_at = None
        if error_message is not None:
            self.last_error = error_message[:1000]

    def mark_completed(self) -> None:
        """Transition from processing to completed.

        Raises:
            InvalidStateTransition: If current status is not processing
        """
        if self.status != JobStatus.PROCESSING:
            raise InvalidStateTransition(
                f"Cannot mark completed from {self.status.value}. "
                "Job must be in processing state."
            )
        self.status = JobStatus.COMPLETED
        self.started_at = None
        self.updated_at = utcnow()

    def mark_failed(self, error_message: str) -> None:
        """Transition from processing to failed.

        Args:
            error_message: Final error (truncated to 1000 characters)

        Raises:
            InvalidStateTransition: If current status is not processing
        """
        if self.status != JobStatus.PROCESSING:
            raise InvalidStateTransition(
                f"Cannot mark failed from {self.status.value}. Job must be in processing state."
            )
        self.status = JobStatus.FAILED
        self.last_error = error_message[:1000]
        self.started_at = None
        self.updated_at = utcnow()
