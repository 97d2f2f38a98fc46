"""FastAPI application factory.

Run with: uvicorn lexica.app:app --host 127.0.0.1 --port 8765
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Response, status
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from lexica.api.events import WordUpdateBroadcaster
from lexica.api.routes import jobs
from lexica.core.config import Settings, configure_logging
from lexica.core.database import create_schema, setup_db_session
from lexica.services.annotation import DictionaryAnnotator
from lexica.services.audio import ElevenLabsSynthesizer, HttpAudioDownloader
from lexica.services.content_pipeline import ContentPipeline
from lexica.services.generation import (
    OllamaSentenceGenerator,
    SentenceGenerator,
    SupplementedSentenceGenerator,
    TatoebaSentenceSource,
)
from lexica.services.generation_queue import GenerationQueueService
from lexica.services.status_notifier import StatusNotifier
from lexica.uow import UnitOfWorkFactory, create_uow_factory
from lexica.workers.word_generation_worker import WordGenerationRunner

logger = structlog.get_logger()


def build_sentence_generator(settings: Settings) -> SentenceGenerator:
    """Ollama, optionally preceded by recorded Tatoeba sentences."""
    ollama = OllamaSentenceGenerator(
        base_url=settings.ollama_url,
        model=settings.ollama_model,
        timeout=settings.http_timeout_seconds * 2,
    )
    if not settings.tatoeba_enabled:
        return ollama

    tatoeba = TatoebaSentenceSource(
        search_url=settings.tatoeba_url, timeout=settings.http_timeout_seconds
    )
    return SupplementedSentenceGenerator(primary=ollama, supplement=tatoeba)


def build_content_pipeline(
    settings: Settings, uow_factory: UnitOfWorkFactory, notifier: StatusNotifier
) -> ContentPipeline:
    """Wire the content pipeline to the configured backing services."""
    return ContentPipeline(
        uow_factory=uow_factory,
        sentence_generator=build_sentence_generator(settings),
        audio_synthesizer=ElevenLabsSynthesizer(
            api_key=settings.elevenlabs_api_key,
            voice_id=settings.elevenlabs_voice_id,
            model=settings.elevenlabs_model,
            audio_dir=settings.audio_dir,
            timeout=settings.http_timeout_seconds,
        ),
        audio_downloader=HttpAudioDownloader(
            audio_dir=settings.audio_dir,
            timeout=settings.http_timeout_seconds,
        ),
        annotator=DictionaryAnnotator(max_phrase_words=settings.annotation_max_phrase_words),
        notifier=notifier,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the store and run the generation worker for the app lifetime.

    Steps:
    - Startup: Configure logging, open the database, build services, start the runner
    - Shutdown: Stop the runner (the in-flight job finishes), dispose the engine
    """
    settings: Settings = app.state.settings

    configure_logging(settings)

    session_factory = setup_db_session(settings.database_url)
    await create_schema(session_factory)
    uow_factory = create_uow_factory(session_factory)

    broadcaster = WordUpdateBroadcaster()
    notifier = StatusNotifier(uow_factory, broadcaster.publish)
    pipeline = build_content_pipeline(settings, uow_factory, notifier)
    runner = WordGenerationRunner(uow_factory, pipeline, notifier, settings)

    # Route dependencies read these from app.state
    app.state.session_factory = session_factory
    app.state.uow_factory = uow_factory
    app.state.broadcaster = broadcaster
    app.state.queue_service = GenerationQueueService(
        uow_factory, notifier, default_sentence_count=settings.desired_sentence_count
    )
    app.state.runner = runner

    runner.start()
    logger.info("application.startup", db_url=settings.database_url)

    yield

    logger.info("application.shutdown")
    await runner.stop()
    await session_factory.kw["bind"].dispose()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the FastAPI application for the local UI shell.

    Args:
        settings: Settings to use (default: loaded from environment / .env)

    Returns:
        Configured FastAPI application instance
    """
    settings = settings or Settings()  # type: ignore[call-arg]

    app = FastAPI(
        title="Lexica Backend API",
        description="Vocabulary content generation queue",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(jobs.router)  # prefix="/api/jobs" in definition

    @app.get("/health")
    async def health_check(response: Response):
        """Report whether the SQLite database answers a trivial query.

        Returns:
            200: {"status": "healthy"}
            503: {"status": "unhealthy", "error": {"type", "message"}}
        """
        try:
            async with app.state.session_factory() as session:
                result = await session.execute(text("SELECT 1"))
                result.scalar()

            logger.debug("health_check.success")
            return {"status": "healthy"}

        except Exception as e:
            logger.error(
                "health_check.failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
            return {
                "status": "unhealthy",
                "error": {
                    "type": type(e).__name__,
                    "message": str(e),
                },
            }

    return app


# Module-level instance for uvicorn
app = create_app()
