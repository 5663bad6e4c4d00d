"""
Guidebook — Guide Service (Business Logic)
===========================================

What:  Create, look up, filter, paginate and delete guides; split bodies into sections.
Why:   Keeps routes thin: they translate HTTP to arguments and back, nothing else.
How:   Async SQLAlchemy queries built from a validated GuideFilters object.
Who:   Called by the guide and category route handlers and by the startup seed.

Error Handling Strategy:
    Business-rule violations raise ValidationError / ConflictError / NotFoundError.
    Anything unexpected from the database is logged with its type and wrapped
    in DatabaseError, whose message never leaks SQL details to the client.
"""

import logging
import math
import re
import unicodedata
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import asc, desc, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from guidebook.exceptions import (
    ConflictError,
    DatabaseError,
    GuidebookError,
    NotFoundError,
    ValidationError,
)
from guidebook.models.guide import Guide, encode_tags
from guidebook.schemas.guide import (
    GuideCreate,
    GuideFilters,
    GuideListItem,
    GuideListResponse,
    GuideResponse,
    SectionResponse,
)

logger = logging.getLogger(__name__)

# Static path segments living next to /api/guides/{slug}; a guide with one
# of these slugs would be unreachable.
RESERVED_SLUGS = frozenset({"latest", "by-id"})

LEVELS = ("beginner", "intermediate", "advanced")

SORT_COLUMNS = {
    "created_at": Guide.created_at,
    "title": Guide.title,
}
ALLOWED_SORTS = ("-created_at", "created_at", "-title", "title")

MAX_SLUG_LENGTH = 80

_HEADING_RE = re.compile(r"^##[ \t]+(.+?)[ \t]*#*[ \t]*$")
_FENCE_PREFIXES = ("```", "~~~")


def slugify(text: str) -> str:
    """
    Derive a kebab-case slug from free text.

    "Query Parameters: A Primer!" → "query-parameters-a-primer"

    Accents are folded to ASCII, everything that isn't [a-z0-9] collapses to
    a single dash, and the result is cut at MAX_SLUG_LENGTH without leaving a
    trailing dash.
    """
    folded = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    slug = re.sub(r"[^a-z0-9]+", "-", folded.lower()).strip("-")
    return slug[:MAX_SLUG_LENGTH].rstrip("-")


def split_sections(title: str, body: str) -> List[Tuple[str, str]]:
    """
    Split a markdown body into (heading, content) pairs on level-2 headings.

    Text before the first heading is the introduction and is not a section.
    Headings inside fenced code blocks are ignored. A body without any
    level-2 heading is a single section named after the guide.
    """
    sections: List[Tuple[str, str]] = []
    current: Optional[str] = None
    buffer: List[str] = []
    in_fence = False

    for line in body.splitlines():
        if line.lstrip().startswith(_FENCE_PREFIXES):
            in_fence = not in_fence
        match = None if in_fence else _HEADING_RE.match(line)
        if match:
            if current is not None:
                sections.append((current, "\n".join(buffer).strip()))
            current = match.group(1).strip()
            buffer = []
            continue
        buffer.append(line)

    if current is None:
        return [(title, body.strip())]

    sections.append((current, "\n".join(buffer).strip()))
    return sections


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _to_response(guide: Guide) -> GuideResponse:
    return GuideResponse(
        id=guide.id,
        slug=guide.slug,
        title=guide.title,
        summary=guide.summary,
        body=guide.body,
        category=guide.category,
        tags=guide.tag_list,
        level=guide.level,
        published=guide.published,
        section_count=len(split_sections(guide.title, guide.body)),
        created_at=guide.created_at,
        updated_at=guide.updated_at,
    )


def _to_list_item(guide: Guide) -> GuideListItem:
    return GuideListItem(
        id=guide.id,
        slug=guide.slug,
        title=guide.title,
        summary=guide.summary,
        category=guide.category,
        tags=guide.tag_list,
        level=guide.level,
        created_at=guide.created_at,
    )


class GuideService:
    """
    Business logic layer for guide operations.

    Stateless: every call receives its own session, so one instance is
    shared by all requests.
    """

    # ── Writes ────────────────────────────────────────────────────────────

    async def create_guide(self, db: AsyncSession, payload: GuideCreate) -> GuideResponse:
        """
        Insert a new guide.

        Raises:
            ValidationError: slug is reserved or cannot be derived from the title
            ConflictError: another guide already uses the slug
            DatabaseError: insert failed for another reason
        """
        slug = payload.slug or slugify(payload.title)
        if not slug:
            raise ValidationError(
                message="Cannot derive a slug from the title; provide one explicitly",
                field="slug",
            )
        if slug in RESERVED_SLUGS:
            raise ValidationError(
                message=f"Slug '{slug}' is reserved for a static route",
                field="slug",
                context={"reserved": sorted(RESERVED_SLUGS)},
            )

        try:
            existing = await db.execute(select(Guide.id).where(Guide.slug == slug))
            if existing.scalar_one_or_none() is not None:
                raise ConflictError(
                    message=f"A guide with slug '{slug}' already exists",
                    context={"slug": slug},
                )

            guide = Guide(
                slug=slug,
                title=payload.title,
                summary=payload.summary,
                body=payload.body,
                category=payload.category,
                tags=encode_tags(payload.tags),
                level=payload.level,
                published=payload.published,
            )
            db.add(guide)
            await db.flush()
            logger.info("Guide created: %s (category=%s)", guide.slug, guide.category)
            return _to_response(guide)

        except GuidebookError:
            raise
        except IntegrityError:
            # Lost a race with a concurrent insert of the same slug
            raise ConflictError(
                message=f"A guide with slug '{slug}' already exists",
                context={"slug": slug},
            )
        except Exception as e:
            logger.error("Database error creating guide %s: %s", slug, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not create the guide. Please try again.",
                context={"error_type": type(e).__name__},
            )

    async def delete_guide(self, db: AsyncSession, slug: str) -> None:
        guide = await self._fetch_one(db, Guide.slug == slug, resource_id=slug)
        try:
            await db.delete(guide)
            await db.flush()
        except Exception as e:
            logger.error("Database error deleting guide %s: %s", slug, str(e))
            raise DatabaseError(
                message="Could not delete the guide. Please try again.",
                context={"slug": slug},
            )
        logger.info("Guide deleted: %s", slug)

    # ── Single-guide reads ────────────────────────────────────────────────

    async def get_guide(self, db: AsyncSession, slug: str) -> GuideResponse:
        guide = await self._fetch_one(db, Guide.slug == slug, resource_id=slug)
        return _to_response(guide)

    async def get_guide_by_id(self, db: AsyncSession, guide_id: UUID) -> GuideResponse:
        guide = await self._fetch_one(db, Guide.id == guide_id, resource_id=str(guide_id))
        return _to_response(guide)

    async def get_latest(self, db: AsyncSession) -> GuideResponse:
        """Most recently created published guide."""
        try:
            result = await db.execute(
                select(Guide)
                .where(Guide.published == True)  # noqa: E712
                .order_by(desc(Guide.created_at), asc(Guide.slug))
                .limit(1)
            )
            guide = result.scalar_one_or_none()
        except Exception as e:
            logger.error("Database error fetching latest guide: %s", str(e))
            raise DatabaseError(message="Could not retrieve the latest guide. Please try again.")

        if guide is None:
            raise NotFoundError(resource="published guide")
        return _to_response(guide)

    async def get_section(self, db: AsyncSession, slug: str, position: int) -> SectionResponse:
        """
        Return the section at a 1-based position.

        Raises:
            NotFoundError: unknown guide, or position beyond the last section
        """
        guide = await self._fetch_one(db, Guide.slug == slug, resource_id=slug)
        sections = split_sections(guide.title, guide.body)
        if position > len(sections):
            raise NotFoundError(
                resource="section",
                resource_id=f"{slug}#{position}",
                context={"total_sections": len(sections)},
            )
        heading, content = sections[position - 1]
        return SectionResponse(
            guide_slug=slug,
            position=position,
            title=heading,
            content=content,
            total_sections=len(sections),
        )

    # ── Listing ───────────────────────────────────────────────────────────

    async def list_guides(self, db: AsyncSession, filters: GuideFilters) -> GuideListResponse:
        """
        Filter, sort and paginate guides.

        Filters combine with AND; every requested tag must be present.
        `q` matches title or summary, case-insensitively.

        Raises:
            ValidationError: unknown sort key or level
            DatabaseError: query failed
        """
        self._validate_filters(filters)

        query = select(Guide).where(Guide.published == filters.published)

        if filters.q:
            pattern = f"%{_escape_like(filters.q.lower())}%"
            query = query.where(
                or_(
                    func.lower(Guide.title).like(pattern, escape="\\"),
                    func.lower(Guide.summary).like(pattern, escape="\\"),
                )
            )
        for tag in filters.tags:
            query = query.where(Guide.tags.like(f"%,{_escape_like(tag)},%", escape="\\"))
        if filters.category:
            query = query.where(Guide.category == filters.category)
        if filters.level:
            query = query.where(Guide.level == filters.level)

        column = SORT_COLUMNS[filters.sort.lstrip("-")]
        direction = desc if filters.sort.startswith("-") else asc
        # Slug breaks ties so page boundaries are stable
        ordered = query.order_by(direction(column), asc(Guide.slug))

        offset = (filters.page - 1) * filters.page_size

        try:
            count_result = await db.execute(
                select(func.count()).select_from(query.subquery())
            )
            total = count_result.scalar() or 0

            result = await db.execute(ordered.offset(offset).limit(filters.page_size))
            guides = list(result.scalars().all())
        except Exception as e:
            logger.error("Database error listing guides: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve guides. Please try again.",
                context={"error_type": type(e).__name__},
            )

        pages = math.ceil(total / filters.page_size) if total else 0
        return GuideListResponse(
            guides=[_to_list_item(guide) for guide in guides],
            total=total,
            page=filters.page,
            page_size=filters.page_size,
            pages=pages,
            has_more=filters.page < pages,
        )

    async def count_guides(self, db: AsyncSession) -> int:
        result = await db.execute(select(func.count(Guide.id)))
        return result.scalar() or 0

    # ── Helpers ───────────────────────────────────────────────────────────

    @staticmethod
    def _validate_filters(filters: GuideFilters) -> None:
        if filters.sort not in ALLOWED_SORTS:
            raise ValidationError(
                message=f"Invalid sort '{filters.sort}'",
                field="sort",
                context={"allowed": list(ALLOWED_SORTS)},
            )
        if filters.level is not None and filters.level not in LEVELS:
            raise ValidationError(
                message=f"Invalid level '{filters.level}'",
                field="level",
                context={"allowed": list(LEVELS)},
            )

    async def _fetch_one(self, db: AsyncSession, condition, resource_id: str) -> Guide:
        try:
            result = await db.execute(select(Guide).where(condition))
            guide = result.scalar_one_or_none()
        except Exception as e:
            logger.error("Database error fetching guide %s: %s", resource_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the guide. Please try again.",
                context={"guide": resource_id},
            )
        if guide is None:
            raise NotFoundError(resource="guide", resource_id=resource_id)
        return guide


guide_service = GuideService()
