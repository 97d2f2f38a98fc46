"""Sentence generator interface consumed by the content pipeline."""

from typing import Protocol

from pydantic import BaseModel, Field


class GeneratedSentence(BaseModel):
    """A candidate example sentence.

    ``source_audio_url`` is set when the sentence comes from an external corpus that
    already has a recording; ``source`` then names that corpus (e.g. "tatoeba") and
    is recorded as the provenance of both text and audio.
    """

    text: str = Field(..., min_length=1)
    translation: str = ""
    source_audio_url: str | None = None
    source: str | None = None


class SentenceGenerator(Protocol):
    """Provides example sentences for a word.

    ``service_name`` and ``model_name`` are stored as text provenance on every
    sentence the generator produces.
    """

    service_name: str
    model_name: str | None

    async def generate_sentences(
        self,
        word: str,
        language: str,
        count: int,
        topic: str | None = None,
    ) -> list[GeneratedSentence]: ...
