"""Downloader for recordings that ship with externally sourced sentences."""

from pathlib import Path

import httpx
import structlog

from lexica.services.audio.filenames import audio_filename, save_audio_file
from lexica.services.exceptions import AudioNetworkError, PermanentError

logger = structlog.get_logger(__name__)


class HttpAudioDownloader:
    """Fetches an audio URL into the local audio directory."""

    def __init__(
        self,
        audio_dir: str | Path,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.audio_dir = Path(audio_dir)
        self.timeout = timeout
        self._transport = transport

    async def download_from_url(self, url: str, text: str, language: str, word: str) -> str:
        """Download ``url`` and return the local file path.

        Raises:
            AudioNetworkError: Timeout, network failure or 5xx
            PermanentError: 4xx (recording gone or forbidden)
        """
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport, follow_redirects=True
            ) as client:
                response = await client.get(url)
        except httpx.TimeoutException as e:
            raise AudioNetworkError(f"Request timeout after {self.timeout}s: {e}") from e
        except httpx.HTTPError as e:
            raise AudioNetworkError(f"Network error: {e}") from e

        if response.status_code >= 500:
            raise AudioNetworkError(f"Audio host unavailable ({response.status_code})")
        if response.status_code >= 400:
            raise PermanentError(f"Audio download failed ({response.status_code}): {url}")

        extension = Path(httpx.URL(url).path).suffix.lstrip(".") or "mp3"
        path = await save_audio_file(
            self.audio_dir,
            audio_filename(text, language, word, extension=extension),
            response.content,
        )

        logger.debug("audio.downloaded", url=url, path=str(path))
        return str(path)
