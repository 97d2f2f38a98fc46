"""enqueue_words CLI tests."""

import pytest

from lexica.cli.enqueue_words import async_main
from lexica.models.generation_job import JobStatus
from lexica.models.word import WordProcessingStatus


@pytest.mark.asyncio
async def test_enqueue_words_by_id(settings, uow_factory, make_word):
    first = await make_word("uno")
    second = await make_word("dos")

    exit_code = await async_main(
        [str(first), str(second), "--topic", "numbers", "--count", "2"], settings=settings
    )

    assert exit_code == 0
    async with await uow_factory() as uow:
        jobs = [await uow.generation_jobs.get_by_word(w) for w in (first, second)]
    assert all(job.status == JobStatus.QUEUED for job in jobs)
    assert all(job.topic == "numbers" and job.desired_sentence_count == 2 for job in jobs)


@pytest.mark.asyncio
async def test_requeue_failed_words(settings, uow_factory, make_word):
    failed = await make_word("uno", processing_status=WordProcessingStatus.FAILED)
    await make_word("dos")

    assert await async_main(["--failed"], settings=settings) == 0

    summary_words = []
    async with await uow_factory() as uow:
        summary = await uow.generation_jobs.get_queue_summary()
        summary_words = [w.word_id for w in summary.queued_words]
    assert summary_words == [failed]


@pytest.mark.asyncio
async def test_unknown_word_exit_code(settings, make_word):
    word_id = await make_word()

    assert await async_main([str(word_id), "9999"], settings=settings) == 2


@pytest.mark.asyncio
async def test_summary(settings, make_word, capsys):
    word_id = await make_word("puerta")
    await async_main([str(word_id)], settings=settings)

    assert await async_main(["--summary"], settings=settings) == 0

    output = capsys.readouterr().out
    assert "queued=1 processing=0 failed=0" in output
    assert f"[queued] {word_id} puerta (spanish)" in output


@pytest.mark.asyncio
async def test_malformed_arguments_exit_code(settings, capsys):
    assert await async_main(["notanint"], settings=settings) == 1
    assert await async_main(["--no-such-flag"], settings=settings) == 1
    assert "usage:" in capsys.readouterr().err


@pytest.mark.asyncio
async def test_missing_production_credentials_exit_code(monkeypatch):
    monkeypatch.setenv("APP_ENV", "production")
    monkeypatch.delenv("ELEVENLABS_API_KEY", raising=False)

    assert await async_main(["1"]) == 1
