"""Repository layer for Lexica backend.

Provides data access abstractions for all domain entities.
No base classes - each repository is self-contained.
"""

from lexica.repositories.dictionary import DictionaryRepository
from lexica.repositories.generation_job import (
    JobWordInfo,
    QueueSummary,
    WordGenerationJobRepository,
)
from lexica.repositories.sentence import SentenceRepository
from lexica.repositories.word import WordRepository, WordStatus

__all__ = [
    "WordRepository",
    "WordStatus",
    "SentenceRepository",
    "DictionaryRepository",
    "WordGenerationJobRepository",
    "JobWordInfo",
    "QueueSummary",
]
