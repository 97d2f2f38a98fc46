"""Runtime configuration for the Lexica backend (environment variables and .env)."""

import logging

import structlog
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings resolved once at startup and passed to the services that need them."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database Configuration (single-user desktop app, SQLite file)
    database_url: str = Field(default="sqlite+aiosqlite:///./lexica.db", alias="DATABASE_URL")

    # Application Environment
    app_env: str = Field(default="development", alias="APP_ENV")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Local API server (UI shell talks to this)
    cors_origins: str = Field(default="http://localhost:5173", alias="CORS_ORIGINS")
    host: str = Field(default="127.0.0.1", alias="HOST")
    port: int = Field(default=8765, alias="PORT")

    # Word generation worker
    poll_interval_seconds: float = Field(default=3.0, alias="POLL_INTERVAL_SECONDS")
    max_attempts: int = Field(default=3, ge=1, alias="MAX_ATTEMPTS")
    retry_backoff_seconds: float = Field(default=2.0, ge=0, alias="RETRY_BACKOFF_SECONDS")
    desired_sentence_count: int = Field(default=3, ge=1, alias="DESIRED_SENTENCE_COUNT")
    enforce_retry_delay: bool = Field(default=True, alias="ENFORCE_RETRY_DELAY")
    orphaned_job_threshold_seconds: float = Field(
        default=0.0, ge=0, alias="ORPHANED_JOB_THRESHOLD_SECONDS"
    )

    # Sentence generation (Ollama)
    ollama_url: str = Field(default="http://localhost:11434", alias="OLLAMA_URL")
    ollama_model: str = Field(default="llama3.1:8b", alias="OLLAMA_MODEL")

    # Recorded native sentences tried before the LLM (Tatoeba)
    tatoeba_enabled: bool = Field(default=True, alias="TATOEBA_ENABLED")
    tatoeba_url: str = Field(default="https://tatoeba.org/en/api_v0/search", alias="TATOEBA_URL")

    # Audio (ElevenLabs TTS + external downloads)
    audio_dir: str = Field(default="./audio", alias="AUDIO_DIR")
    elevenlabs_api_key: str = Field(default="", alias="ELEVENLABS_API_KEY")
    elevenlabs_voice_id: str = Field(default="21m00Tcm4TlvDq8ikWAM", alias="ELEVENLABS_VOICE_ID")
    elevenlabs_model: str = Field(default="eleven_multilingual_v2", alias="ELEVENLABS_MODEL")
    http_timeout_seconds: float = Field(default=30.0, alias="HTTP_TIMEOUT_SECONDS")

    # Sentence annotation
    annotation_max_phrase_words: int = Field(default=3, ge=1, alias="ANNOTATION_MAX_PHRASE_WORDS")

    @property
    def cors_origins_list(self) -> list[str]:
        """Allowed UI origins (CORS_ORIGINS is comma-separated)."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @model_validator(mode="after")
    def check_production_credentials(self) -> "Settings":
        """Fail fast when a production build is missing service credentials.

        Development and test environments run against a local Ollama and fakes,
        so the check only applies when APP_ENV=production.
        """
        if self.app_env != "production":
            return self

        problems = []
        if not self.elevenlabs_api_key:
            problems.append(
                "ELEVENLABS_API_KEY: Create an API key at https://elevenlabs.io/app/settings/api-keys"
            )
        if not self.ollama_url:
            problems.append("OLLAMA_URL: Point to a running Ollama server")

        if problems:
            raise ValueError(
                "Lexica cannot start, required settings are missing:\n"
                + "\n".join(f"  - {p}" for p in problems)
                + "\nSet them in the environment or in .env and restart."
            )

        return self


def configure_logging(settings: Settings) -> None:
    """Set up structlog for the process.

    APP_ENV=production renders one JSON object per line; every other
    environment gets the colored console renderer.
    """
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    processors: list = [
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if settings.app_env == "production":
        processors += [
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
