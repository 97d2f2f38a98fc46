"""Sentence repository for Lexica backend.

Sentence inserts and deletes keep ``Word.sentence_count`` in step within the
same transaction.
"""

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from lexica.models.sentence import Sentence, normalize_sentence
from lexica.repositories.word import WordRepository


class SentenceRepository:
    """Repository for Sentence entities."""

    def __init__(self, session: AsyncSession):
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy async session for database operations
        """
        self.session = session
        self._words = WordRepository(session)

    async def get_by_id(self, sentence_id: int) -> Sentence | None:
        """Retrieve sentence by ID."""
        result = await self.session.execute(
            select(Sentence).where(Sentence.id == sentence_id)  # type: ignore[arg-type]
        )
        return result.scalar_one_or_none()

    async def get_by_word(self, word_id: int) -> list[Sentence]:
        """Retrieve all sentences for a word, oldest first.

        Args:
            word_id: Word's unique identifier

        Returns:
            List of sentences ordered by ID
        """
        result = await self.session.execute(
            select(Sentence)
            .where(Sentence.word_id == word_id)  # type: ignore[arg-type]
            .order_by(Sentence.id.asc())  # type: ignore[union-attr]
        )
        return list(result.scalars().all())

    async def get_normalized_texts(self, word_id: int) -> set[str]:
        """Return the normalized texts already stored for a word."""
        result = await self.session.execute(
            select(Sentence.normalized_text).where(Sentence.word_id == word_id)  # type: ignore[arg-type]
        )
        return set(result.scalars().all())

    async def add_for_word(self, sentence: Sentence) -> Sentence:
        """Insert a sentence and increment its word's cached count.

        ``normalized_text`` is derived from ``sentence.sentence``. The unique
        (word_id, normalized_text) constraint rejects duplicates at flush time.

        Args:
            sentence: Sentence entity to persist

        Returns:
            Persisted sentence with generated ID
        """
        sentence.normalized_text = normalize_sentence(sentence.sentence)
        self.session.add(sentence)
        await self.session.flush()
        await self._words.adjust_sentence_count(sentence.word_id, 1)
        return sentence

    async def delete(self, sentence: Sentence) -> None:
        """Delete a sentence and decrement its word's cached count."""
        word_id = sentence.word_id
        await self.session.delete(sentence)
        await self.session.flush()
        await self._words.adjust_sentence_count(word_id, -1)

    async def update_audio(
        self,
        sentence_id: int,
        audio_path: str,
        audio_service: str | None = None,
        audio_model: str | None = None,
    ) -> None:
        """Store audio (and its provenance) for a sentence that was saved without it."""
        await self.session.execute(
            update(Sentence)
            .where(Sentence.id == sentence_id)  # type: ignore[arg-type]
            .values(audio_path=audio_path, audio_service=audio_service, audio_model=audio_model)
            .execution_options(synchronize_session=False)
        )
        await self.session.flush()

    async def update_tokens(self, sentence_id: int, tokens: list[dict]) -> None:
        """Cache precomputed token annotations for a sentence."""
        await self.session.execute(
            update(Sentence)
            .where(Sentence.id == sentence_id)  # type: ignore[arg-type]
            .values(tokens=tokens)
            .execution_options(synchronize_session=False)
        )
        await self.session.flush()
