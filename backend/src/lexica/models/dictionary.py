"""DictionaryEntry entity - imported bilingual dictionary rows (read-only here)."""

from typing import Optional

from sqlalchemy import JSON, Column, Index
from sqlmodel import Field, SQLModel


class DictionaryEntry(SQLModel, table=True):
    """One headword sense from an imported dictionary."""

    __tablename__ = "dictionary_entries"  # type: ignore[assignment]
    __table_args__ = (Index("idx_dictionary_word_language", "word", "language"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    word: str = Field(max_length=255)
    language: str = Field(max_length=50)
    pos: Optional[str] = Field(default=None, max_length=50)
    glosses: list = Field(default_factory=list, sa_column=Column(JSON))
