"""Example sentence generation providers."""

from lexica.services.generation.base import GeneratedSentence, SentenceGenerator
from lexica.services.generation.ollama_client import OllamaSentenceGenerator
from lexica.services.generation.supplemented import SupplementedSentenceGenerator
from lexica.services.generation.tatoeba_client import TatoebaSentenceSource

__all__ = [
    "GeneratedSentence",
    "SentenceGenerator",
    "OllamaSentenceGenerator",
    "SupplementedSentenceGenerator",
    "TatoebaSentenceSource",
]
