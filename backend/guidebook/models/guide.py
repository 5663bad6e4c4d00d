"""
Guidebook — Guide SQLAlchemy Model
===================================

What:  ORM model representing the `guides` table.
Why:   Maps Python objects to database rows for type-safe database operations.
Who:   Used by GuideService for CRUD operations and by Alembic for schema management.

Table Design Rationale:
    - UUID primary key: exposed through /api/guides/by-id/{guide_id}
    - slug: unique, human-readable key used by /api/guides/{slug}
    - tags: stored as a delimited string (",routing,fastapi,") so a single
      LIKE '%,tag,%' works on both PostgreSQL and SQLite
    - created_at / updated_at: UTC with timezone

    Indexes:
        slug (unique)         → dynamic route lookups
        category              → /api/categories/{category}/guides
        created_at            → default sort and /api/guides/latest
"""

import uuid
from datetime import datetime, timezone
from typing import List

from sqlalchemy import Boolean, DateTime, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from guidebook.database import Base

TAG_DELIMITER = ","

# GuideCreate bounds tag count and length so the encoded form always fits
TAGS_COLUMN_LENGTH = 500


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Guide(Base):
    """
    A single framework guide (short markdown article).

    Lifecycle:
        1. Created through POST /api/guides (or the startup seed)
        2. Readable through the static and dynamic GET routes while published
        3. Removed through DELETE /api/guides/{slug}
    """

    __tablename__ = "guides"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    slug: Mapped[str] = mapped_column(
        String(80),
        nullable=False,
        unique=True,
        comment="URL key, lowercase kebab-case",
    )

    title: Mapped[str] = mapped_column(String(200), nullable=False)

    summary: Mapped[str] = mapped_column(String(500), nullable=False, default="")

    body: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default="",
        comment="Markdown body; level-2 headings delimit sections",
    )

    category: Mapped[str] = mapped_column(String(80), nullable=False)

    # Stored as ",tag-a,tag-b,"; see tag_list / encode_tags
    tags: Mapped[str] = mapped_column(String(TAGS_COLUMN_LENGTH), nullable=False, default="")

    level: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="beginner",
        comment="beginner, intermediate or advanced",
    )

    published: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    )

    __table_args__ = (
        Index("idx_guides_category", "category"),
        Index("idx_guides_created_at", created_at.desc()),
    )

    @property
    def tag_list(self) -> List[str]:
        return [tag for tag in (self.tags or "").split(TAG_DELIMITER) if tag]

    def __repr__(self) -> str:
        return f"<Guide(slug='{self.slug}', category='{self.category}', published={self.published})>"


def encode_tags(tags: List[str]) -> str:
    """Encode tags as ",a,b," (empty string for no tags)."""
    if not tags:
        return ""
    return TAG_DELIMITER + TAG_DELIMITER.join(tags) + TAG_DELIMITER
