"""Word repository for Lexica backend.

Provides data access methods for Word entities, including the denormalized
processing status and cached sentence count read by the UI.
"""

from dataclasses import dataclass

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from lexica.models.word import Word, WordProcessingStatus


@dataclass(frozen=True)
class WordStatus:
    """Generation state of a word as seen by the UI."""

    processing_status: WordProcessingStatus
    sentence_count: int


class WordRepository:
    """Repository for Word entities."""

    def __init__(self, session: AsyncSession):
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy async session for database operations
        """
        self.session = session

    async def add(self, word: Word) -> Word:
        """Persist new word to database.

        Args:
            word: Word entity to persist

        Returns:
            Persisted word with generated ID
        """
        self.session.add(word)
        await self.session.flush()
        return word

    async def get_by_id(self, word_id: int) -> Word | None:
        """Retrieve word by ID.

        Args:
            word_id: Word's unique identifier

        Returns:
            Word if found, None otherwise
        """
        result = await self.session.execute(
            select(Word)
            .where(Word.id == word_id)  # type: ignore[arg-type]
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_by_language(self, language: str) -> list[Word]:
        """Retrieve all words of a language, ordered by ID."""
        result = await self.session.execute(
            select(Word)
            .where(Word.language == language)  # type: ignore[arg-type]
            .order_by(Word.id.asc())  # type: ignore[union-attr]
        )
        return list(result.scalars().all())

    async def get_ids_by_status(
        self, status: WordProcessingStatus, language: str | None = None
    ) -> list[int]:
        """Retrieve IDs of words in a processing status, optionally for one language."""
        stmt = select(Word.id).where(Word.processing_status == status)  # type: ignore[arg-type]
        if language:
            stmt = stmt.where(Word.language == language)  # type: ignore[arg-type]
        result = await self.session.execute(stmt.order_by(Word.id.asc()))  # type: ignore[union-attr]
        return [word_id for word_id in result.scalars().all() if word_id is not None]

    async def get_status(self, word_id: int) -> WordStatus | None:
        """Read a word's processing status and cached sentence count.

        Args:
            word_id: Word's unique identifier

        Returns:
            WordStatus if the word exists, None otherwise
        """
        result = await self.session.execute(
            select(Word.processing_status, Word.sentence_count).where(Word.id == word_id)  # type: ignore[arg-type]
        )
        row = result.one_or_none()
        if row is None:
            return None
        return WordStatus(processing_status=row[0], sentence_count=row[1])

    async def set_processing_status(self, word_id: int, status: WordProcessingStatus) -> None:
        """Update the denormalized processing status (no-op for unknown words).

        Args:
            word_id: Word's unique identifier
            status: New processing status
        """
        await self.session.execute(
            update(Word)
            .where(Word.id == word_id)  # type: ignore[arg-type]
            .values(processing_status=status)
            .execution_options(synchronize_session=False)
        )
        await self.session.flush()

    async def adjust_sentence_count(self, word_id: int, delta: int) -> None:
        """Increment or decrement the cached sentence count atomically in SQL.

        Must run in the same transaction as the sentence insert/delete it mirrors.
        The count never drops below zero.
        """
        # SQLite scalar max() clamps at zero
        await self.session.execute(
            update(Word)
            .where(Word.id == word_id)  # type: ignore[arg-type]
            .values(sentence_count=func.max(Word.sentence_count + delta, 0))
            .execution_options(synchronize_session=False)
        )
        await self.session.flush()
