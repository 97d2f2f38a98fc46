"""Sentence audio providers."""

from lexica.services.audio.base import AudioDownloader, AudioSynthesizer
from lexica.services.audio.downloader import HttpAudioDownloader
from lexica.services.audio.elevenlabs_client import ElevenLabsSynthesizer
from lexica.services.audio.filenames import audio_filename, sanitize_filename, save_audio_file

__all__ = [
    "AudioSynthesizer",
    "AudioDownloader",
    "ElevenLabsSynthesizer",
    "HttpAudioDownloader",
    "audio_filename",
    "sanitize_filename",
    "save_audio_file",
]
