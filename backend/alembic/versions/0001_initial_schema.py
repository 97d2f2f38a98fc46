"""initial_schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-18 09:12:41.318204

"""

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0001_initial_schema"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# Enum columns store member names (SQLAlchemy Enum over a Python enum)
word_processing_status = sa.Enum(
    "QUEUED", "PROCESSING", "READY", "FAILED", name="wordprocessingstatus"
)
job_status = sa.Enum("QUEUED", "PROCESSING", "COMPLETED", "FAILED", name="jobstatus")


def upgrade() -> None:
    """Create words, sentences, dictionary_entries and word_generation_jobs."""
    op.create_table(
        "words",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("word", sa.String(length=255), nullable=False),
        sa.Column("language", sa.String(length=50), nullable=False),
        sa.Column("translation", sa.String(), nullable=False),
        sa.Column("processing_status", word_processing_status, nullable=False),
        sa.Column("sentence_count", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_words_word", "words", ["word"])
    op.create_index("ix_words_language", "words", ["language"])

    op.create_table(
        "sentences",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("word_id", sa.Integer(), nullable=False),
        sa.Column("sentence", sa.String(), nullable=False),
        sa.Column("translation", sa.String(), nullable=False),
        sa.Column("normalized_text", sa.String(), nullable=False),
        sa.Column("audio_path", sa.String(), nullable=True),
        sa.Column("text_service", sa.String(length=50), nullable=True),
        sa.Column("text_model", sa.String(length=255), nullable=True),
        sa.Column("audio_service", sa.String(length=50), nullable=True),
        sa.Column("audio_model", sa.String(length=255), nullable=True),
        sa.Column("tokens", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["word_id"], ["words.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("word_id", "normalized_text", name="uq_sentences_word_normalized"),
    )
    op.create_index("ix_sentences_word_id", "sentences", ["word_id"])

    op.create_table(
        "dictionary_entries",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("word", sa.String(length=255), nullable=False),
        sa.Column("language", sa.String(length=50), nullable=False),
        sa.Column("pos", sa.String(length=50), nullable=True),
        sa.Column("glosses", sa.JSON(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_dictionary_word_language", "dictionary_entries", ["word", "language"])

    op.create_table(
        "word_generation_jobs",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("word_id", sa.Integer(), nullable=False),
        sa.Column("language", sa.String(length=50), nullable=False),
        sa.Column("topic", sa.String(length=255), nullable=True),
        sa.Column("desired_sentence_count", sa.Integer(), nullable=False),
        sa.Column("status", job_status, nullable=False),
        sa.Column("attempts", sa.Integer(), nullable=False),
        sa.Column("last_error", sa.String(length=1000), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["word_id"], ["words.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("word_id"),
    )
    op.create_index(
        "idx_word_generation_jobs_status", "word_generation_jobs", ["status", "updated_at"]
    )


def downgrade() -> None:
    """Drop all tables."""
    op.drop_index("idx_word_generation_jobs_status", table_name="word_generation_jobs")
    op.drop_table("word_generation_jobs")
    op.drop_index("idx_dictionary_word_language", table_name="dictionary_entries")
    op.drop_table("dictionary_entries")
    op.drop_index("ix_sentences_word_id", table_name="sentences")
    op.drop_table("sentences")
    op.drop_index("ix_words_language", table_name="words")
    op.drop_index("ix_words_word", table_name="words")
    op.drop_table("words")
