"""DictionaryEntry repository for Lexica backend."""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from lexica.models.dictionary import DictionaryEntry


class DictionaryRepository:
    """Repository for DictionaryEntry lookups."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(self, entry: DictionaryEntry) -> DictionaryEntry:
        """Persist a dictionary entry."""
        self.session.add(entry)
        await self.session.flush()
        return entry

    async def lookup(self, word: str, language: str) -> list[DictionaryEntry]:
        """Find entries for a headword, case-insensitively.

        Args:
            word: Surface form or phrase to look up
            language: Dictionary language

        Returns:
            Matching entries (empty list if none)
        """
        result = await self.session.execute(
            select(DictionaryEntry)
            .where(
                func.lower(DictionaryEntry.word) == word.lower(),
                DictionaryEntry.language == language,  # type: ignore[arg-type]
            )
            .order_by(DictionaryEntry.id.asc())  # type: ignore[union-attr]
        )
        return list(result.scalars().all())
