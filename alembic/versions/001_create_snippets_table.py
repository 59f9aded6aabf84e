"""Create snippets table

Revision ID: 001
Revises: None
Create Date: 2026-10-19 00:00:00.000000+00:00

What:  Creates the `snippets` table with its create_date B-tree index and
       the GIN full-text index over title and body.

Rollback: downgrade() drops the table entirely (all snippets are lost).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

from mdsnips.models.snippet import TEXT_INDEX_DDL

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "snippets",
        sa.Column(
            "id",
            sa.String(16),
            nullable=False,
            comment="CRC-32 hex of title + body + nanosecond salt",
        ),
        sa.Column(
            "title",
            sa.Text(),
            nullable=False,
            comment="Display title (1-64 characters, enforced by the API layer)",
        ),
        sa.Column(
            "body",
            sa.Text(),
            nullable=False,
            comment="Markdown body (1-64000 characters, enforced by the API layer)",
        ),
        sa.Column(
            "update_key",
            sa.String(16),
            nullable=False,
            comment="Capability token required to update or delete this snippet",
        ),
        sa.Column(
            "create_date",
            sa.DateTime(timezone=True),
            nullable=False,
            comment="When this snippet was created (UTC)",
        ),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_index("idx_snippets_create_date", "snippets", ["create_date"])

    # Expression index; must stay identical to the search expression
    op.execute(TEXT_INDEX_DDL)


def downgrade() -> None:
    op.execute("DROP INDEX IF EXISTS idx_snippets_text")
    op.drop_index("idx_snippets_create_date", table_name="snippets")
    op.drop_table("snippets")
