"""Unit of Work for the Lexica backend.

One UnitOfWork is one database transaction. Services open a short-lived unit
per step (claim a job, store a sentence, record an outcome) so that nothing is
held open while waiting on Ollama or the TTS service.
"""

from typing import Awaitable, Callable

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from lexica.repositories.dictionary import DictionaryRepository
from lexica.repositories.generation_job import WordGenerationJobRepository
from lexica.repositories.sentence import SentenceRepository
from lexica.repositories.word import WordRepository

logger = structlog.get_logger()


class UnitOfWork:
    """Transaction scope exposing every repository over a single session.

    Example:
        async with await uow_factory() as uow:
            sentence = await uow.sentences.add_for_word(sentence)
            # sentence insert and sentence_count increment commit together
    """

    def __init__(self, session: AsyncSession):
        self.session = session

        self.words = WordRepository(session)
        self.sentences = SentenceRepository(session)
        self.generation_jobs = WordGenerationJobRepository(session)
        self.dictionary = DictionaryRepository(session)

    async def __aenter__(self) -> "UnitOfWork":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Commit if the block finished normally, roll back otherwise.

        The session is always closed afterwards. Exceptions from the block are
        never suppressed.
        """
        try:
            if exc_type is None:
                await self.session.commit()
                logger.debug("transaction.committed")
            else:
                await self.session.rollback()
                logger.debug("transaction.rolled_back", exc_type=exc_type.__name__)
        finally:
            await self.session.close()

        return False


UnitOfWorkFactory = Callable[[], Awaitable[UnitOfWork]]


def create_uow_factory(session_factory: async_sessionmaker[AsyncSession]) -> UnitOfWorkFactory:
    """Bind a session factory into an awaitable UnitOfWork factory.

    Args:
        session_factory: Result of setup_db_session()

    Returns:
        Coroutine function returning a UnitOfWork on a fresh session

    Example:
        uow_factory = create_uow_factory(setup_db_session(settings.database_url))

        async with await uow_factory() as uow:
            await uow.words.add(word)
    """

    async def _create_uow() -> UnitOfWork:
        return UnitOfWork(session_factory())

    return _create_uow
