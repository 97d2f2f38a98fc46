"""Settings tests: defaults, environment overrides and production validation."""

import pytest
from pydantic import ValidationError

from lexica import main as main_module
from lexica.core.config import Settings


def test_defaults(monkeypatch):
    for name in ("POLL_INTERVAL_SECONDS", "MAX_ATTEMPTS", "RETRY_BACKOFF_SECONDS", "APP_ENV"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings(_env_file=None)  # type: ignore[call-arg]

    assert settings.poll_interval_seconds == 3.0
    assert settings.max_attempts == 3
    assert settings.retry_backoff_seconds == 2.0
    assert settings.desired_sentence_count == 3
    assert settings.enforce_retry_delay is True
    assert settings.orphaned_job_threshold_seconds == 0.0
    assert settings.database_url.startswith("sqlite+aiosqlite://")


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("MAX_ATTEMPTS", "5")
    monkeypatch.setenv("ENFORCE_RETRY_DELAY", "false")
    monkeypatch.setenv("CORS_ORIGINS", "http://localhost:5173, app://lexica")

    settings = Settings(_env_file=None)  # type: ignore[call-arg]

    assert settings.max_attempts == 5
    assert settings.enforce_retry_delay is False
    assert settings.cors_origins_list == ["http://localhost:5173", "app://lexica"]


def test_invalid_retry_policy_rejected():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, MAX_ATTEMPTS=0)  # type: ignore[call-arg]


def test_production_requires_tts_credentials(monkeypatch):
    monkeypatch.delenv("ELEVENLABS_API_KEY", raising=False)

    with pytest.raises(ValidationError, match="ELEVENLABS_API_KEY"):
        Settings(_env_file=None, APP_ENV="production")  # type: ignore[call-arg]

    settings = Settings(  # type: ignore[call-arg]
        _env_file=None, APP_ENV="production", ELEVENLABS_API_KEY="sk-test"
    )
    assert settings.app_env == "production"


def test_server_entry_point_binds_configured_address(monkeypatch):
    calls = []
    monkeypatch.setattr(main_module.uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs)))

    main_module.main(Settings(_env_file=None, HOST="0.0.0.0", PORT=9000))  # type: ignore[call-arg]

    [(app, kwargs)] = calls
    assert app == "lexica.app:app"
    assert kwargs["host"] == "0.0.0.0"
    assert kwargs["port"] == 9000
