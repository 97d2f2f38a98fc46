"""Word entity - vocabulary item with denormalized generation status."""

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlmodel import Field, SQLModel

from lexica.core.timezone import utcnow


class WordProcessingStatus(str, Enum):
    """Word-level summary of its generation job lifecycle."""

    QUEUED = "queued"
    PROCESSING = "processing"
    READY = "ready"
    FAILED = "failed"


class Word(SQLModel, table=True):
    """Word is a vocabulary item the learner studies.

    ``processing_status`` mirrors the state of the word's generation job so the UI
    can read it without joining the job table. ``sentence_count`` is a cached count
    maintained in the same transaction as sentence inserts and deletes.
    """

    __tablename__ = "words"  # type: ignore[assignment]

    id: Optional[int] = Field(default=None, primary_key=True)
    word: str = Field(max_length=255, index=True)
    language: str = Field(default="spanish", max_length=50, index=True)
    translation: str = Field(default="")
    processing_status: WordProcessingStatus = Field(default=WordProcessingStatus.READY)
    sentence_count: int = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=utcnow)
