"""Alembic migration tests.

Applies the migration chain to an empty SQLite file and checks the resulting
schema works with the repositories (enum columns, upsert, unique constraints).
"""

import asyncio
import sqlite3
from pathlib import Path

from alembic import command
from alembic.config import Config

from lexica.core.database import setup_db_session
from lexica.models.generation_job import JobStatus
from lexica.models.word import Word
from lexica.uow import create_uow_factory

BACKEND_DIR = Path(__file__).resolve().parents[1]


def alembic_config() -> Config:
    config = Config()
    config.set_main_option("script_location", str(BACKEND_DIR / "alembic"))
    return config


def test_upgrade_creates_all_tables(tmp_path, monkeypatch):
    db_path = tmp_path / "migrated.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{db_path}")

    command.upgrade(alembic_config(), "head")

    with sqlite3.connect(db_path) as conn:
        tables = {row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}
    assert {"words", "sentences", "dictionary_entries", "word_generation_jobs"} <= tables


def test_migrated_schema_supports_job_store(tmp_path, monkeypatch):
    db_url = f"sqlite+aiosqlite:///{tmp_path / 'migrated.db'}"
    monkeypatch.setenv("DATABASE_URL", db_url)
    command.upgrade(alembic_config(), "head")

    async def exercise() -> None:
        session_factory = setup_db_session(db_url)
        uow_factory = create_uow_factory(session_factory)
        try:
            async with await uow_factory() as uow:
                word = await uow.words.add(Word(word="puerta", language="spanish"))
                await uow.generation_jobs.enqueue(word.id, "spanish", None, 3)
                job = await uow.generation_jobs.enqueue(word.id, "spanish", None, 3)

            assert job.version == 2
            async with await uow_factory() as uow:
                summary = await uow.generation_jobs.get_queue_summary()
                assert summary.queued == 1
                assert summary.queued_words[0].status == JobStatus.QUEUED
        finally:
            await session_factory.kw["bind"].dispose()

    asyncio.run(exercise())


def test_downgrade_drops_tables(tmp_path, monkeypatch):
    db_path = tmp_path / "migrated.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{db_path}")
    config = alembic_config()

    command.upgrade(config, "head")
    command.downgrade(config, "base")

    with sqlite3.connect(db_path) as conn:
        tables = {row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}
    assert "word_generation_jobs" not in tables
    assert "words" not in tables
