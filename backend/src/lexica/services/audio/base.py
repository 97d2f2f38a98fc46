"""Audio interfaces consumed by the content pipeline."""

from typing import Protocol


class AudioSynthesizer(Protocol):
    """Text-to-speech provider.

    ``service_name`` / ``model_name`` are stored as audio provenance.
    """

    service_name: str
    model_name: str | None

    async def synthesize(self, text: str, language: str, word: str) -> str:
        """Render ``text`` to an audio file and return its path."""
        ...


class AudioDownloader(Protocol):
    """Fetches existing recordings for externally sourced sentences."""

    async def download_from_url(self, url: str, text: str, language: str, word: str) -> str:
        """Download the recording at ``url`` and return the local path."""
        ...
