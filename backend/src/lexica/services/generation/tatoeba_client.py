"""Tatoeba search client: native-speaker sentences that come with a recording."""

import httpx
import structlog

from lexica.services.exceptions import PermanentError, SentenceCorpusError
from lexica.services.generation.base import GeneratedSentence

logger = structlog.get_logger(__name__)

TATOEBA_SEARCH_URL = "https://tatoeba.org/en/api_v0/search"
TATOEBA_AUDIO_URL = "https://tatoeba.org/en/audio/download/{audio_id}"
TATOEBA_TRANSLATION_LANGUAGE = "eng"

# Languages the app teaches, mapped to Tatoeba's ISO 639-3 codes
TATOEBA_LANGUAGE_CODES = {
    "italian": "ita",
    "spanish": "spa",
    "portuguese": "por",
    "polish": "pol",
    "indonesian": "ind",
}

MIN_FETCH_LIMIT = 4


def parse_search_results(data: dict) -> list[GeneratedSentence]:
    """Turn a Tatoeba search response into candidates.

    Results without text or without an English translation are dropped. The
    first recording, if any, becomes ``source_audio_url``.
    """
    sentences = []
    results = data.get("results") if isinstance(data, dict) else None
    for item in results or []:
        if not isinstance(item, dict):
            continue
        text = (item.get("text") or "").strip()
        try:
            translation = (item["translations"][0][0]["text"] or "").strip()
        except (KeyError, IndexError, TypeError):
            translation = ""
        if not text or not translation:
            continue

        audios = item.get("audios") or []
        audio_id = audios[0].get("id") if audios else None
        sentences.append(
            GeneratedSentence(
                text=text,
                translation=translation,
                source_audio_url=TATOEBA_AUDIO_URL.format(audio_id=audio_id) if audio_id else None,
                source="tatoeba",
            )
        )
    return sentences


class TatoebaSentenceSource:
    """Searches Tatoeba for sentences containing a word."""

    service_name = "tatoeba"
    model_name = None

    def __init__(
        self,
        search_url: str = TATOEBA_SEARCH_URL,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.search_url = search_url
        self.timeout = timeout
        self._transport = transport

    async def generate_sentences(
        self,
        word: str,
        language: str,
        count: int,
        topic: str | None = None,
    ) -> list[GeneratedSentence]:
        """Return up to ``count`` recorded sentences for ``word``.

        ``topic`` is not supported by the search API and is ignored. Languages
        without a Tatoeba code return an empty list without a request.

        Raises:
            SentenceCorpusError: Timeout, network failure, 429 or 5xx
            PermanentError: Other 4xx responses
        """
        source_lang = TATOEBA_LANGUAGE_CODES.get(language.strip().lower())
        if source_lang is None:
            logger.debug("tatoeba.language_unsupported", language=language)
            return []

        params = {
            "from": source_lang,
            "to": TATOEBA_TRANSLATION_LANGUAGE,
            "query": word.strip(),
            "has_audio": "yes",
            "native": "yes",
            "sort": "relevance",
            "unapproved": "no",
            "word_count_min": "3",
            "limit": str(max(MIN_FETCH_LIMIT, count)),
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(self.search_url, params=params)
        except httpx.TimeoutException as e:
            raise SentenceCorpusError(f"Request timeout after {self.timeout}s: {e}") from e
        except httpx.HTTPError as e:
            raise SentenceCorpusError(f"Network error: {e}") from e

        if response.status_code == 429 or response.status_code >= 500:
            raise SentenceCorpusError(f"Tatoeba unavailable ({response.status_code})")
        if response.status_code >= 400:
            raise PermanentError(f"Tatoeba search rejected ({response.status_code}): {response.text}")

        try:
            sentences = parse_search_results(response.json())
        except ValueError as e:
            raise SentenceCorpusError(f"Unreadable Tatoeba response: {e}") from e

        logger.debug("tatoeba.sentences_found", word=word, language=language, found=len(sentences))
        return sentences[:count]
