"""Background workers for async processing tasks."""

from lexica.workers.word_generation_worker import WordGenerationRunner

__all__ = [
    "WordGenerationRunner",
]
