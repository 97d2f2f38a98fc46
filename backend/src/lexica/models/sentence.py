"""Sentence entity - example sentence with audio and provenance."""

import re
from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, Column, UniqueConstraint
from sqlmodel import Field, SQLModel

from lexica.core.timezone import utcnow

_WHITESPACE = re.compile(r"\s+")


def normalize_sentence(text: str) -> str:
    """Collapse whitespace, trim and lower-case a sentence for duplicate detection."""
    return _WHITESPACE.sub(" ", text.strip()).lower()


class Sentence(SQLModel, table=True):
    """Sentence is an example sentence attached to one word.

    Provenance columns record which service/model produced the text and the audio.
    ``tokens`` caches precomputed dictionary annotations (see DictionaryAnnotator).
    """

    __tablename__ = "sentences"  # type: ignore[assignment]
    __table_args__ = (
        UniqueConstraint("word_id", "normalized_text", name="uq_sentences_word_normalized"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    word_id: int = Field(foreign_key="words.id", index=True, ondelete="CASCADE")
    sentence: str
    translation: str = Field(default="")
    normalized_text: str = Field(default="")
    audio_path: Optional[str] = Field(default=None)

    # Provenance
    text_service: Optional[str] = Field(default=None, max_length=50)
    text_model: Optional[str] = Field(default=None, max_length=255)
    audio_service: Optional[str] = Field(default=None, max_length=50)
    audio_model: Optional[str] = Field(default=None, max_length=255)

    tokens: Optional[list] = Field(default=None, sa_column=Column(JSON))
    created_at: datetime = Field(default_factory=utcnow)
