"""SQLModel database entities.

All models are imported here to ensure they're registered with SQLModel metadata
for Alembic autogenerate support.
"""

from lexica.models.dictionary import DictionaryEntry
from lexica.models.generation_job import (
    InvalidStateTransition,
    JobStatus,
    WordGenerationJob,
)
from lexica.models.sentence import Sentence, normalize_sentence
from lexica.models.word import Word, WordProcessingStatus

__all__ = [
    "Word",
    "WordProcessingStatus",
    "Sentence",
    "normalize_sentence",
    "WordGenerationJob",
    "JobStatus",
    "InvalidStateTransition",
    "DictionaryEntry",
]
