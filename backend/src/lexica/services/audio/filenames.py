"""Filesystem-safe names and storage for generated audio files."""

import asyncio
import hashlib
import re
import unicodedata
from pathlib import Path

# Letters NFKD does not decompose into ASCII
_TRANSLITERATIONS = {
    "ł": "l",
    "đ": "d",
    "ħ": "h",
    "ı": "i",
    "ŋ": "n",
    "ð": "d",
    "þ": "th",
    "ø": "o",
    "æ": "ae",
    "œ": "oe",
    "ß": "ss",
    "ƒ": "f",
}

_UNSAFE = re.compile(r"[^a-z0-9]+")


def sanitize_filename(text: str, max_length: int = 50) -> str:
    """Transliterate and reduce text to lowercase ``[a-z0-9_]``.

    Example:
        >>> sanitize_filename("¿Dónde está la estación?")
        'donde_esta_la_estacion'
    """
    lowered = "".join(_TRANSLITERATIONS.get(ch, ch) for ch in text.lower())
    ascii_text = unicodedata.normalize("NFKD", lowered).encode("ascii", "ignore").decode("ascii")
    return _UNSAFE.sub("_", ascii_text).strip("_")[:max_length].rstrip("_")


def audio_filename(text: str, language: str, word: str, extension: str = "mp3") -> str:
    """Build a unique, readable filename for a sentence recording.

    A short content hash keeps sentences with the same prefix apart.
    """
    digest = hashlib.sha1(f"{language}:{text}".encode("utf-8")).hexdigest()[:10]
    word_part = sanitize_filename(word, max_length=30) or "word"
    text_part = sanitize_filename(text, max_length=40) or "sentence"
    return f"{language}_{word_part}_{text_part}_{digest}.{extension}"


def _write_file(audio_dir: Path, filename: str, content: bytes) -> Path:
    audio_dir.mkdir(parents=True, exist_ok=True)
    path = audio_dir / filename
    path.write_bytes(content)
    return path


async def save_audio_file(audio_dir: Path, filename: str, content: bytes) -> Path:
    """Write a recording under ``audio_dir`` in a worker thread and return its path."""
    return await asyncio.to_thread(_write_file, audio_dir, filename, content)
