"""Create guides table

Revision ID: 001
Revises: None
Create Date: 2026-10-19 00:00:00.000000+00:00

What:  Creates the `guides` table backing every /api/guides route.
Rollback: downgrade() drops the table entirely (destructive, all data lost).
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the guides table with its unique slug and lookup indexes."""
    op.create_table(
        "guides",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column(
            "slug",
            sa.String(80),
            nullable=False,
            comment="URL key, lowercase kebab-case",
        ),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("summary", sa.String(500), nullable=False, server_default=sa.text("''")),
        sa.Column(
            "body",
            sa.Text(),
            nullable=False,
            server_default=sa.text("''"),
            comment="Markdown body; level-2 headings delimit sections",
        ),
        sa.Column("category", sa.String(80), nullable=False),

        # Delimited form ",tag-a,tag-b," so LIKE '%,tag,%' matches whole tags
        sa.Column("tags", sa.String(500), nullable=False, server_default=sa.text("''")),

        sa.Column(
            "level",
            sa.String(20),
            nullable=False,
            server_default=sa.text("'beginner'"),
            comment="beginner, intermediate or advanced",
        ),
        sa.Column("published", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("slug"),
    )

    op.create_index("idx_guides_category", "guides", ["category"])
    op.create_index("idx_guides_created_at", "guides", [sa.text("created_at DESC")])


def downgrade() -> None:
    op.drop_index("idx_guides_created_at", table_name="guides")
    op.drop_index("idx_guides_category", table_name="guides")
    op.drop_table("guides")
