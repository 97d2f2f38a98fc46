"""CLI command for queueing content generation outside the desktop UI.

Usage:
    python -m lexica.cli.enqueue_words [WORD_ID ...] [OPTIONS]

Examples:
    # Queue two words with the configured sentence count
    python -m lexica.cli.enqueue_words 12 15

    # Queue a word with a topic and five sentences
    python -m lexica.cli.enqueue_words 12 --topic travel --count 5

    # Re-queue every word whose last generation failed
    python -m lexica.cli.enqueue_words --failed --language spanish

    # Only print the queue summary
    python -m lexica.cli.enqueue_words --summary

The running application's worker picks the jobs up on its next poll.
"""

import asyncio
import sys
from argparse import ArgumentParser, Namespace

import structlog
from pydantic import ValidationError

from lexica.core.config import Settings, configure_logging
from lexica.core.database import create_schema, setup_db_session
from lexica.models.word import WordProcessingStatus
from lexica.services.exceptions import WordNotFoundError
from lexica.services.generation_queue import GenerationQueueService
from lexica.services.status_notifier import StatusNotifier
from lexica.uow import create_uow_factory

logger = structlog.get_logger()


class EnqueueArgumentParser(ArgumentParser):
    """ArgumentParser that reports usage errors as ValueError instead of exiting with 2.

    Exit code 2 is reserved for unknown word IDs.
    """

    def error(self, message: str):  # type: ignore[override]
        self.print_usage(sys.stderr)
        raise ValueError(message)


def parse_args(argv: list[str] | None = None) -> Namespace:
    """Parse command-line arguments.

    Raises:
        ValueError: Unknown option or malformed value
    """
    parser = EnqueueArgumentParser(
        description="Queue example sentence and audio generation for words",
        epilog="Jobs are processed by the application's background worker",
    )

    parser.add_argument("word_ids", nargs="*", type=int, help="Word IDs to queue")

    parser.add_argument(
        "--failed",
        action="store_true",
        help="Also queue every word whose processing status is 'failed'",
    )

    parser.add_argument("--language", help="Target language (default: each word's language)")
    parser.add_argument("--topic", help="Topic hint for sentence generation")

    parser.add_argument(
        "--count",
        type=int,
        help="Desired sentences per word (default: DESIRED_SENTENCE_COUNT)",
    )

    parser.add_argument(
        "--summary",
        action="store_true",
        help="Print the queue summary and exit",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging (DEBUG level)",
    )

    return parser.parse_args(argv)


async def async_main(argv: list[str] | None = None, settings: Settings | None = None) -> int:
    """Main CLI entry point (async).

    Returns:
        Exit code: 0 (success), 1 (bad arguments or configuration),
        2 (some words not found)
    """
    try:
        args = parse_args(argv)
        settings = settings or Settings()  # type: ignore[call-arg]
    except (ValidationError, ValueError) as e:
        logger.error("cli.invalid_configuration", error=str(e))
        return 1

    if args.verbose:
        settings.log_level = "DEBUG"
    configure_logging(settings)

    session_factory = setup_db_session(settings.database_url)
    await create_schema(session_factory)
    uow_factory = create_uow_factory(session_factory)
    queue_service = GenerationQueueService(
        uow_factory,
        StatusNotifier(uow_factory),
        default_sentence_count=settings.desired_sentence_count,
    )

    try:
        if args.summary:
            summary = await queue_service.get_queue_summary(args.language)
            print(
                f"queued={summary.queued} processing={summary.processing} failed={summary.failed}"
            )
            for info in summary.processing_words + summary.queued_words:
                print(f"  [{info.status.value}] {info.word_id} {info.word} ({info.language})")
            return 0

        word_ids = list(args.word_ids)
        if args.failed:
            async with await uow_factory() as uow:
                word_ids += await uow.words.get_ids_by_status(
                    WordProcessingStatus.FAILED, args.language
                )

        if not word_ids:
            logger.warning("cli.nothing_to_enqueue")
            return 0

        missing = 0
        for word_id in dict.fromkeys(word_ids):
            try:
                await queue_service.enqueue(
                    word_id,
                    language=args.language,
                    topic=args.topic,
                    desired_sentence_count=args.count,
                )
            except WordNotFoundError:
                logger.error("cli.word_not_found", word_id=word_id)
                missing += 1

        logger.info("cli.enqueue_completed", queued=len(set(word_ids)) - missing, missing=missing)
        return 2 if missing else 0

    except ValueError as e:
        logger.error("cli.invalid_arguments", error=str(e))
        return 1
    finally:
        await session_factory.kw["bind"].dispose()


def main() -> None:
    """Synchronous entry point for CLI."""
    sys.exit(asyncio.run(async_main()))


if __name__ == "__main__":
    main()
