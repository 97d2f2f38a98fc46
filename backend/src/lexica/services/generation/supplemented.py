"""Sentence generator that tries a recorded corpus before the LLM."""

import structlog

from lexica.models.sentence import normalize_sentence
from lexica.services.exceptions import ServiceError
from lexica.services.generation.base import GeneratedSentence, SentenceGenerator

logger = structlog.get_logger(__name__)


class SupplementedSentenceGenerator:
    """Combine an external corpus (Tatoeba) with a primary generator (Ollama).

    Corpus sentences come first because they carry a native recording. The
    primary generator is asked only for the remainder. Corpus failures are
    logged and skipped; primary failures propagate so the job retries.

    Text provenance for generated sentences is the primary's ``service_name``
    and ``model_name``. Corpus sentences carry their own ``source``.
    """

    def __init__(self, primary: SentenceGenerator, supplement: SentenceGenerator):
        self.primary = primary
        self.supplement = supplement
        self.service_name = primary.service_name
        self.model_name = primary.model_name

    async def generate_sentences(
        self,
        word: str,
        language: str,
        count: int,
        topic: str | None = None,
    ) -> list[GeneratedSentence]:
        sentences: list[GeneratedSentence] = []
        seen: set[str] = set()

        try:
            supplemental = await self.supplement.generate_sentences(word, language, count, topic)
        except ServiceError as e:
            logger.warning(
                "generation.supplement_failed",
                source=self.supplement.service_name,
                word=word,
                error_type=type(e).__name__,
                error_message=str(e),
            )
            supplemental = []

        for sentence in supplemental:
            key = normalize_sentence(sentence.text)
            if key and key not in seen:
                seen.add(key)
                sentences.append(sentence)
        sentences = sentences[:count]
        from_supplement = len(sentences)

        remaining = count - from_supplement
        if remaining > 0:
            for sentence in await self.primary.generate_sentences(word, language, remaining, topic):
                key = normalize_sentence(sentence.text)
                if key and key not in seen:
                    seen.add(key)
                    sentences.append(sentence)

        logger.debug(
            "generation.sentences_combined",
            word=word,
            requested=count,
            from_supplement=from_supplement,
            total=len(sentences),
        )
        return sentences
