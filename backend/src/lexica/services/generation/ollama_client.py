"""Ollama client for example sentence generation with error classification."""

import json

import httpx
import structlog
from pydantic import ValidationError

from lexica.services.exceptions import LLMResponseError, LLMUnavailableError, PermanentError
from lexica.services.generation.base import GeneratedSentence

logger = structlog.get_logger(__name__)

PROMPT_TEMPLATE = (
    "Write {count} short, natural example sentences in {language} that use the word "
    '"{word}".{topic_clause} Reply with JSON only: '
    '{{"sentences": [{{"sentence": "...", "translation": "English translation"}}]}}'
)


def build_prompt(word: str, language: str, count: int, topic: str | None = None) -> str:
    """Build the generation prompt for a word."""
    topic_clause = f" The sentences should relate to the topic: {topic}." if topic else ""
    return PROMPT_TEMPLATE.format(
        count=count, language=language, word=word, topic_clause=topic_clause
    )


def parse_sentences(raw: str) -> list[GeneratedSentence]:
    """Parse the model's JSON reply into sentences.

    Accepts either ``{"sentences": [...]}`` or a bare list. Items missing a
    sentence are dropped.

    Raises:
        LLMResponseError: If the reply is not JSON or has no usable sentences
    """
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as e:
        raise LLMResponseError(f"Model reply is not valid JSON: {e}") from e

    items = payload.get("sentences") if isinstance(payload, dict) else payload
    if not isinstance(items, list):
        raise LLMResponseError("Model reply has no 'sentences' list")

    sentences = []
    for item in items:
        if not isinstance(item, dict):
            continue
        try:
            sentences.append(
                GeneratedSentence(
                    text=str(item.get("sentence", "")).strip(),
                    translation=str(item.get("translation", "")).strip(),
                )
            )
        except ValidationError:
            continue

    if not sentences:
        raise LLMResponseError("Model reply contained no sentences")
    return sentences


class OllamaSentenceGenerator:
    """Sentence generator backed by a local Ollama server."""

    service_name = "ollama"

    def __init__(
        self,
        base_url: str,
        model: str,
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize Ollama client.

        Args:
            base_url: Ollama server URL (e.g., http://localhost:11434)
            model: Model tag used for sentence generation
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests inject a MockTransport)
        """
        self.base_url = base_url.rstrip("/")
        self.model_name = model
        self.timeout = timeout
        self._transport = transport

    async def generate_sentences(
        self,
        word: str,
        language: str,
        count: int,
        topic: str | None = None,
    ) -> list[GeneratedSentence]:
        """Generate ``count`` example sentences for ``word``.

        Raises:
            LLMUnavailableError: Timeout, connection failure, 429 or 5xx
            LLMResponseError: Unparseable model output
            PermanentError: Unknown model (404) or bad request (400)
        """
        body = {
            "model": self.model_name,
            "prompt": build_prompt(word, language, count, topic),
            "format": "json",
            "stream": False,
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(f"{self.base_url}/api/generate", json=body)
        except httpx.TimeoutException as e:
            raise LLMUnavailableError(f"Request timeout after {self.timeout}s: {e}") from e
        except httpx.HTTPError as e:
            raise LLMUnavailableError(f"Network error: {e}") from e

        if response.status_code == 429 or response.status_code >= 500:
            raise LLMUnavailableError(
                f"Ollama unavailable ({response.status_code}): {response.text}"
            )
        if response.status_code == 404:
            raise PermanentError(
                f"Model '{self.model_name}' not found. Pull it with: ollama pull {self.model_name}"
            )
        if response.status_code >= 400:
            raise PermanentError(f"Bad request ({response.status_code}): {response.text}")

        sentences = parse_sentences(response.json().get("response", ""))
        logger.debug(
            "ollama.sentences_generated",
            word=word,
            language=language,
            requested=count,
            received=len(sentences),
        )
        return sentences[:count]
