"""Content pipeline: example sentences and audio for one word.

Every step is idempotent so a retried job only fills the remaining gap:
existing sentences are detected by normalized text and never re-inserted,
and sentences stored without audio are repaired at the start of the next run.

Each sentence is committed in its own unit of work together with its word's
``sentence_count`` increment, so progress survives a failure later in the run.
"""

from typing import Sequence

import structlog

from lexica.models.sentence import Sentence, normalize_sentence
from lexica.models.word import Word
from lexica.services.annotation import Annotator
from lexica.services.audio.base import AudioDownloader, AudioSynthesizer
from lexica.services.exceptions import IncompleteGenerationError, is_infrastructure_error
from lexica.services.generation.base import GeneratedSentence, SentenceGenerator
from lexica.services.status_notifier import StatusNotifier
from lexica.uow import UnitOfWorkFactory

logger = structlog.get_logger(__name__)

EXTERNAL_AUDIO_SERVICE = "external"


class ContentPipeline:
    """Generates missing sentences (with audio and annotations) for a word."""

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        sentence_generator: SentenceGenerator,
        audio_synthesizer: AudioSynthesizer,
        audio_downloader: AudioDownloader,
        annotator: Annotator,
        notifier: StatusNotifier,
    ):
        self.uow_factory = uow_factory
        self.sentence_generator = sentence_generator
        self.audio_synthesizer = audio_synthesizer
        self.audio_downloader = audio_downloader
        self.annotator = annotator
        self.notifier = notifier

    async def run(
        self,
        word: Word,
        language: str,
        topic: str | None,
        desired_count: int,
    ) -> int:
        """Bring ``word`` up to ``desired_count`` sentences.

        Workflow:
        1. Backfill audio for stored sentences that have none
        2. Compute the gap against existing (normalized) sentences
        3. Request the gap from the sentence generator, store new sentences
           with audio and provenance
        4. Precompute token annotations for each new sentence (non-fatal)
        5. Verify the cached sentence count reached ``desired_count``

        Args:
            word: Word to generate content for
            language: Target language
            topic: Optional topic hint
            desired_count: Number of sentences the word should have

        Returns:
            The word's sentence count after the run

        Raises:
            IncompleteGenerationError: Fewer than ``desired_count`` sentences stored
            ServiceError: Generation or synthesis failure (job should retry)
        """
        assert word.id is not None
        await self._backfill_audio(word, language)

        async with await self.uow_factory() as uow:
            existing = await uow.sentences.get_normalized_texts(word.id)

        needed = desired_count - len(existing)
        logger.info(
            "pipeline.sentence_status",
            word_id=word.id,
            existing_sentences=len(existing),
            desired_count=desired_count,
            needed=max(needed, 0),
        )

        if needed > 0:
            candidates = await self.sentence_generator.generate_sentences(
                word.word, language, needed, topic
            )
            for candidate in candidates:
                normalized = normalize_sentence(candidate.text)
                if not normalized or normalized in existing:
                    logger.debug("pipeline.duplicate_skipped", word_id=word.id, text=candidate.text)
                    continue

                sentence = await self._store_sentence(word, language, candidate)
                existing.add(normalized)
                await self.notifier.notify(word.id)
                await self._annotate(sentence, word, language)

                if len(existing) >= desired_count:
                    break

        async with await self.uow_factory() as uow:
            status = await uow.words.get_status(word.id)

        sentence_count = status.sentence_count if status else 0
        if sentence_count < desired_count:
            raise IncompleteGenerationError(have=sentence_count, wanted=desired_count)

        logger.info("pipeline.complete", word_id=word.id, sentence_count=sentence_count)
        return sentence_count

    async def _backfill_audio(self, word: Word, language: str) -> None:
        """Synthesize audio for stored sentences that were saved without it."""
        assert word.id is not None
        async with await self.uow_factory() as uow:
            sentences = await uow.sentences.get_by_word(word.id)

        for sentence in sentences:
            if sentence.audio_path:
                continue

            logger.info("pipeline.audio_backfill", sentence_id=sentence.id, word_id=word.id)
            try:
                audio_path = await self.audio_synthesizer.synthesize(
                    sentence.sentence, language, word.word
                )
                async with await self.uow_factory() as uow:
                    await uow.sentences.update_audio(
                        sentence.id,  # type: ignore[arg-type]
                        audio_path,
                        audio_service=self.audio_synthesizer.service_name,
                        audio_model=self.audio_synthesizer.model_name,
                    )
            except Exception as e:
                if is_infrastructure_error(e):
                    raise
                logger.warning(
                    "pipeline.audio_backfill_failed",
                    sentence_id=sentence.id,
                    error_type=type(e).__name__,
                    error_message=str(e),
                )

    async def _store_sentence(
        self, word: Word, language: str, candidate: GeneratedSentence
    ) -> Sentence:
        """Obtain audio for a candidate and persist it with provenance.

        Externally sourced sentences keep their original recording. If the
        download fails the sentence is stored without audio and picked up by the
        next backfill. Synthesis failures propagate and fail the attempt.
        """
        assert word.id is not None
        audio_path: str | None
        text_service = candidate.source or self.sentence_generator.service_name
        text_model = None if candidate.source else self.sentence_generator.model_name

        if candidate.source_audio_url:
            audio_service = candidate.source or EXTERNAL_AUDIO_SERVICE
            audio_model = None
            try:
                audio_path = await self.audio_downloader.download_from_url(
                    candidate.source_audio_url, candidate.text, language, word.word
                )
            except Exception as e:
                if is_infrastructure_error(e):
                    raise
                logger.warning(
                    "pipeline.audio_download_failed",
                    word_id=word.id,
                    audio_url=candidate.source_audio_url,
                    error_message=str(e),
                )
                audio_path = None
        else:
            audio_path = await self.audio_synthesizer.synthesize(candidate.text, language, word.word)
            audio_service = self.audio_synthesizer.service_name
            audio_model = self.audio_synthesizer.model_name

        async with await self.uow_factory() as uow:
            sentence = await uow.sentences.add_for_word(
                Sentence(
                    word_id=word.id,
                    sentence=candidate.text,
                    translation=candidate.translation,
                    audio_path=audio_path,
                    text_service=text_service,
                    text_model=text_model,
                    audio_service=audio_service,
                    audio_model=audio_model,
                )
            )

        logger.info(
            "pipeline.sentence_stored",
            word_id=word.id,
            sentence_id=sentence.id,
            sentence_preview=candidate.text[:80],
            has_audio=audio_path is not None,
        )
        return sentence

    async def _annotate(self, sentence: Sentence, word: Word, language: str) -> None:
        """Precompute and cache token annotations; failures only log."""
        try:
            async with await self.uow_factory() as uow:
                all_words: Sequence[Word] = await uow.words.get_by_language(language)

                async def lookup(text: str):
                    return await uow.dictionary.lookup(text, language)

                tokens = await self.annotator.annotate(sentence.sentence, word, all_words, lookup)
                await uow.sentences.update_tokens(
                    sentence.id,  # type: ignore[arg-type]
                    [token.model_dump() for token in tokens],
                )
            logger.debug(
                "pipeline.tokens_precomputed", sentence_id=sentence.id, token_count=len(tokens)
            )
        except Exception as e:
            logger.warning(
                "pipeline.annotation_failed",
                sentence_id=sentence.id,
                error_type=type(e).__name__,
                error_message=str(e),
            )
