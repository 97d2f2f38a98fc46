"""pytest fixtures for Lexica backend tests.

Provides:
- utc_timezone: Autouse fixture enforcing UTC timezone
- session_factory: Function-scoped SQLite database (file in tmp_path) with schema
- session: Function-scoped database session
- uow_factory: Function-scoped UnitOfWork factory
- settings: Test settings (fast polling, zero backoff)
- Fakes for the content pipeline collaborators (generator, synthesizer,
  downloader, annotator) with scriptable failures
- pipeline / queue_service / runner: Real services wired to the fakes
"""

import os
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession

from lexica.core.config import Settings
from lexica.core.database import create_schema, setup_db_session
from lexica.models.word import Word
from lexica.services.annotation import PrecomputedToken
from lexica.services.content_pipeline import ContentPipeline
from lexica.services.generation.base import GeneratedSentence
from lexica.services.generation_queue import GenerationQueueService
from lexica.services.status_notifier import StatusNotifier, WordUpdate
from lexica.uow import create_uow_factory
from lexica.workers.word_generation_worker import WordGenerationRunner


@pytest.fixture(scope="session", autouse=True)
def utc_timezone():
    """Enforce UTC timezone for all tests."""
    os.environ["TZ"] = "UTC"
    yield


@pytest.fixture
def database_url(tmp_path) -> str:
    """SQLite file URL unique to the test."""
    return f"sqlite+aiosqlite:///{tmp_path / 'lexica_test.db'}"


@pytest_asyncio.fixture(scope="function")
async def session_factory(database_url):
    """Provide a session factory over a fresh database with all tables created."""
    factory = setup_db_session(database_url)
    await create_schema(factory)
    yield factory
    await factory.kw["bind"].dispose()


@pytest_asyncio.fixture(scope="function")
async def session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Provide function-scoped database session."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def uow_factory(session_factory):
    """Provide function-scoped UnitOfWork factory."""
    return create_uow_factory(session_factory)


@pytest.fixture
def settings(database_url, tmp_path) -> Settings:
    """Settings tuned for tests: no real services, fast polling, zero backoff."""
    return Settings(  # type: ignore[call-arg]
        DATABASE_URL=database_url,
        APP_ENV="test",
        POLL_INTERVAL_SECONDS=0.01,
        MAX_ATTEMPTS=3,
        RETRY_BACKOFF_SECONDS=0,
        DESIRED_SENTENCE_COUNT=3,
        AUDIO_DIR=str(tmp_path / "audio"),
    )


@pytest.fixture
def make_word(uow_factory):
    """Create a word and return its ID."""

    async def _make_word(word: str = "puerta", language: str = "spanish", **kwargs) -> int:
        async with await uow_factory() as uow:
            created = await uow.words.add(Word(word=word, language=language, **kwargs))
            assert created.id is not None
            return created.id

    return _make_word


# Collaborator fakes


class FakeSentenceGenerator:
    """Returns numbered sentences; pops scripted failures/replies first."""

    service_name = "fake-llm"
    model_name = "fake-model-1"

    def __init__(self):
        self.calls: list[dict] = []
        self.failures: list[Exception] = []
        self.replies: list[list[GeneratedSentence]] = []
        self._counter = 0

    async def generate_sentences(self, word, language, count, topic=None):
        self.calls.append({"word": word, "language": language, "count": count, "topic": topic})
        if self.failures:
            raise self.failures.pop(0)
        if self.replies:
            return self.replies.pop(0)

        sentences = []
        for _ in range(count):
            self._counter += 1
            sentences.append(
                GeneratedSentence(
                    text=f"La {word} número {self._counter} está abierta.",
                    translation=f"Door number {self._counter} is open.",
                )
            )
        return sentences


class FakeAudioSynthesizer:
    service_name = "fake-tts"
    model_name = "fake-voice"

    def __init__(self):
        self.calls: list[str] = []
        self.failures: list[Exception] = []
        self.always_fail: Exception | None = None

    async def synthesize(self, text, language, word):
        self.calls.append(text)
        if self.always_fail is not None:
            raise self.always_fail
        if self.failures:
            raise self.failures.pop(0)
        return f"/audio/{language}_{word}_{len(self.calls)}.mp3"


class FakeAudioDownloader:
    def __init__(self):
        self.calls: list[str] = []
        self.failures: list[Exception] = []

    async def download_from_url(self, url, text, language, word):
        self.calls.append(url)
        if self.failures:
            raise self.failures.pop(0)
        return f"/audio/downloaded_{len(self.calls)}.mp3"


class FakeAnnotator:
    def __init__(self):
        self.calls: list[str] = []
        self.error: Exception | None = None

    async def annotate(self, sentence_text, target_word, all_words, dictionary_lookup):
        self.calls.append(sentence_text)
        if self.error is not None:
            raise self.error
        return [
            PrecomputedToken(text=part, is_target_word=part.lower() == target_word.word)
            for part in sentence_text.rstrip(".").split()
        ]


@pytest.fixture
def generator() -> FakeSentenceGenerator:
    return FakeSentenceGenerator()


@pytest.fixture
def synthesizer() -> FakeAudioSynthesizer:
    return FakeAudioSynthesizer()


@pytest.fixture
def downloader() -> FakeAudioDownloader:
    return FakeAudioDownloader()


@pytest.fixture
def annotator() -> FakeAnnotator:
    return FakeAnnotator()


@pytest.fixture
def word_updates() -> list[WordUpdate]:
    """Every WordUpdate delivered by the notifier, in order."""
    return []


@pytest.fixture
def notifier(uow_factory, word_updates) -> StatusNotifier:
    return StatusNotifier(uow_factory, word_updates.append)


@pytest.fixture
def pipeline(uow_factory, generator, synthesizer, downloader, annotator, notifier):
    return ContentPipeline(
        uow_factory=uow_factory,
        sentence_generator=generator,
        audio_synthesizer=synthesizer,
        audio_downloader=downloader,
        annotator=annotator,
        notifier=notifier,
    )


@pytest.fixture
def queue_service(uow_factory, notifier, settings) -> GenerationQueueService:
    return GenerationQueueService(
        uow_factory, notifier, default_sentence_count=settings.desired_sentence_count
    )


@pytest.fixture
def runner(uow_factory, pipeline, notifier, settings) -> WordGenerationRunner:
    return WordGenerationRunner(uow_factory, pipeline, notifier, settings)
