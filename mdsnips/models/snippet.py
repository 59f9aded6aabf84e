"""
mdsnips: Snippet SQLAlchemy Model
===================================

What:  ORM model for the `snippets` table, plus the full-text search
       expressions shared by the store and the index DDL.
Who:   Used by SnippetStore and AccessGuard, and by Alembic for schema management.

Table Design:
    - id: short hex checksum derived from content + time salt (primary key,
      so a colliding insert is rejected instead of overwriting)
    - title / body: TEXT with no database-level length limit; length rules
      live in the request models
    - update_key: capability token, only ever compared, never selected by
      read paths
    - create_date: UTC with timezone, written once at creation

Indexes:
    idx_snippets_create_date  B-tree on create_date ASC (sort + pagination)
    idx_snippets_text         PostgreSQL only: GIN over the title/body tsvector
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, Index, String, Text, literal_column
from sqlalchemy.orm import Mapped, mapped_column

from mdsnips.database import Base

# ── Full-Text Search ──────────────────────────────────────────────────────
# The query expression and the index expression must be textually identical
# for PostgreSQL to serve text searches from idx_snippets_text.
TEXT_SEARCH_CONFIG = "english"
TEXT_SEARCH_DOCUMENT = (
    f"to_tsvector('{TEXT_SEARCH_CONFIG}'::regconfig, title || ' ' || body)"
)

CREATE_DATE_INDEX_DDL = (
    "CREATE INDEX IF NOT EXISTS idx_snippets_create_date "
    "ON snippets (create_date ASC)"
)
TEXT_INDEX_DDL = (
    "CREATE INDEX IF NOT EXISTS idx_snippets_text "
    f"ON snippets USING gin ({TEXT_SEARCH_DOCUMENT})"
)


def search_document():
    """tsvector over title and body, matching idx_snippets_text."""
    return literal_column(TEXT_SEARCH_DOCUMENT)


def search_config():
    return literal_column(f"'{TEXT_SEARCH_CONFIG}'::regconfig")


class Snippet(Base):
    """
    A stored markdown snippet.

    Lifecycle:
        1. Inserted by SnippetStore.create() with a derived id and update key
        2. title/body overwritten by SnippetStore.update() (id, update_key and
           create_date never change)
        3. Row removed by SnippetStore.delete(); no tombstone is kept

    Query Patterns:
        - Fetch by id:          WHERE id = :id                  (primary key)
        - Authorize:            SELECT update_key WHERE id = :id
        - Search newest first:  ORDER BY create_date DESC OFFSET :skip LIMIT :limit
                                → idx_snippets_create_date
        - Text search:          WHERE <tsvector> @@ plainto_tsquery(:text)
                                → idx_snippets_text
    """

    __tablename__ = "snippets"

    id: Mapped[str] = mapped_column(
        String(16),
        primary_key=True,
        comment="CRC-32 hex of title + body + nanosecond salt",
    )

    title: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Display title (1-64 characters, enforced by the API layer)",
    )

    body: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Markdown body (1-64000 characters, enforced by the API layer)",
    )

    update_key: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        comment="Capability token required to update or delete this snippet",
    )

    create_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        comment="When this snippet was created (UTC)",
    )

    __table_args__ = (
        Index("idx_snippets_create_date", "create_date"),
    )

    def __repr__(self) -> str:
        # update_key is never part of the repr
        return f"<Snippet(id='{self.id}', title='{self.title}', create_date='{self.create_date}')>"
