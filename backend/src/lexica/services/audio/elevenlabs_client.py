"""ElevenLabs text-to-speech client for sentence audio."""

from pathlib import Path

import httpx
import structlog

from lexica.services.audio.filenames import audio_filename, save_audio_file
from lexica.services.exceptions import (
    AudioAuthError,
    AudioNetworkError,
    AudioRateLimitError,
    PermanentError,
)

logger = structlog.get_logger(__name__)


class ElevenLabsSynthesizer:
    """Audio synthesizer using the ElevenLabs HTTP API."""

    service_name = "elevenlabs"

    def __init__(
        self,
        api_key: str,
        voice_id: str,
        model: str,
        audio_dir: str | Path,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize ElevenLabs client.

        Args:
            api_key: ElevenLabs API key (from ELEVENLABS_API_KEY env var)
            voice_id: Voice to render with
            model: TTS model id (e.g., eleven_multilingual_v2)
            audio_dir: Directory generated files are written to
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests inject a MockTransport)
        """
        self.api_key = api_key
        self.voice_id = voice_id
        self.model_name = model
        self.audio_dir = Path(audio_dir)
        self.timeout = timeout
        self.base_url = "https://api.elevenlabs.io/v1"
        self._transport = transport

    async def synthesize(self, text: str, language: str, word: str) -> str:
        """Render ``text`` to MP3 and return the file path.

        Raises:
            AudioRateLimitError: Rate limit exceeded (429)
            AudioNetworkError: Timeout, network failure or 5xx
            AudioAuthError: Invalid API key (401) or forbidden (403)
            PermanentError: Missing API key or bad request (400/422)
        """
        if not self.api_key:
            raise PermanentError("ELEVENLABS_API_KEY not configured")

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(
                    f"{self.base_url}/text-to-speech/{self.voice_id}",
                    headers={"xi-api-key": self.api_key, "Accept": "audio/mpeg"},
                    json={"text": text, "model_id": self.model_name},
                )
        except httpx.TimeoutException as e:
            raise AudioNetworkError(f"Request timeout after {self.timeout}s: {e}") from e
        except httpx.HTTPError as e:
            raise AudioNetworkError(f"Network error: {e}") from e

        if response.status_code == 429:
            raise AudioRateLimitError(f"Rate limit exceeded: {response.text}")
        elif response.status_code >= 500:
            raise AudioNetworkError(
                f"Service unavailable ({response.status_code}): {response.text}"
            )
        elif response.status_code in (401, 403):
            raise AudioAuthError(
                "Unauthorized: Invalid API key. Check ELEVENLABS_API_KEY configuration in .env file."
            )
        elif response.status_code >= 400:
            raise PermanentError(f"Bad request ({response.status_code}): {response.text}")

        path = await save_audio_file(
            self.audio_dir, audio_filename(text, language, word), response.content
        )

        logger.debug("audio.synthesized", path=str(path), bytes=len(response.content))
        return str(path)
