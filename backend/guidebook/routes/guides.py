"""
Guidebook — Guide Route Handlers
=================================

What:  Static, dynamic and query-parameter routes for the guide catalog.
How:   Extracts path and query parameters, delegates to GuideService, returns JSON.

Route Inventory (declaration order matters):
    GET    /api/guides                              list (query parameters)
    POST   /api/guides                              create (API key)
    GET    /api/guides/latest                       static, declared before {slug}
    GET    /api/guides/by-id/{guide_id}             UUID path parameter
    GET    /api/guides/{slug}                       kebab-case path parameter
    GET    /api/guides/{slug}/sections/{position}   two path parameters
    DELETE /api/guides/{slug}                       delete (API key)
    GET    /api/categories/{category}/guides        path + query parameters

Why order matters:
    The router tries routes top to bottom. `/api/guides/latest` also matches
    the `{slug}` pattern, so it must be declared first; the service in turn
    refuses to create guides whose slug is `latest` or `by-id`.

Validation layers:
    Shape (type, range, regex)   → FastAPI → 422
    Business rules (sort, level) → GuideService → ValidationError → 400
"""

import logging
from typing import Annotated, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from guidebook.config import settings
from guidebook.database import get_db_session
from guidebook.schemas.guide import (
    SLUG_PATTERN,
    ErrorResponse,
    GuideCreate,
    GuideFilters,
    GuideListResponse,
    GuideResponse,
    SectionResponse,
)
from guidebook.services.guide_service import guide_service
from guidebook.services.query_inspector import split_multi

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Guides"])

SlugPath = Annotated[
    str,
    Path(
        min_length=1,
        max_length=80,
        pattern=SLUG_PATTERN,
        description="Lowercase kebab-case guide slug",
    ),
]


def guide_filters(
    q: Optional[str] = Query(
        default=None,
        min_length=1,
        max_length=100,
        description="Case-insensitive search over title and summary",
    ),
    tag: Optional[List[str]] = Query(
        default=None,
        description="Required tag; repeat (?tag=a&tag=b) or comma-separate (?tag=a,b)",
    ),
    level: Optional[str] = Query(
        default=None,
        description="beginner, intermediate or advanced",
    ),
    published: bool = Query(default=True, description="false lists drafts only"),
    page: int = Query(default=1, ge=1),
    page_size: int = Query(
        default=settings.default_page_size,
        ge=1,
        le=settings.max_page_size,
    ),
    sort: str = Query(
        default="-created_at",
        description="created_at, -created_at, title or -title (leading '-' = descending)",
    ),
) -> GuideFilters:
    """
    Query parameters shared by every guide list endpoint.

    No `category` here: on /api/categories/{category}/guides that name is
    the path parameter, and FastAPI refuses a query parameter of the same name.
    """
    return GuideFilters(
        q=q,
        tags=split_multi(tag),
        level=level.lower() if level else None,
        published=published,
        page=page,
        page_size=page_size,
        sort=sort,
    )


def guide_list_filters(
    filters: GuideFilters = Depends(guide_filters),
    category: Optional[str] = Query(default=None, max_length=80, description="Exact category"),
) -> GuideFilters:
    """guide_filters plus ?category=, for GET /api/guides."""
    return filters.model_copy(update={"category": category})


# ── Collection ────────────────────────────────────────────────────────────


@router.get(
    "/guides",
    response_model=GuideListResponse,
    responses={400: {"description": "Unknown sort or level", "model": ErrorResponse}},
    summary="List guides",
)
async def list_guides(
    response: Response,
    filters: GuideFilters = Depends(guide_list_filters),
    db: AsyncSession = Depends(get_db_session),
) -> GuideListResponse:
    """
    Filter, sort and paginate guides.

    Example client usage:
        GET /api/guides?q=route&tag=routing&sort=title&page=2&page_size=10
    """
    result = await guide_service.list_guides(db, filters)
    response.headers["X-Total-Count"] = str(result.total)
    return result


@router.post(
    "/guides",
    status_code=201,
    response_model=GuideResponse,
    responses={
        400: {"description": "Reserved or underivable slug", "model": ErrorResponse},
        401: {"description": "Missing or invalid API key", "model": ErrorResponse},
        409: {"description": "Slug already in use", "model": ErrorResponse},
    },
    summary="Create a guide",
)
async def create_guide(
    payload: GuideCreate,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> GuideResponse:
    guide = await guide_service.create_guide(db, payload)
    response.headers["Location"] = f"/api/guides/{guide.slug}"
    return guide


# ── Static routes under /guides (before {slug}) ───────────────────────────


@router.get(
    "/guides/latest",
    response_model=GuideResponse,
    responses={404: {"description": "No published guide yet", "model": ErrorResponse}},
    summary="Most recently created published guide",
)
async def latest_guide(db: AsyncSession = Depends(get_db_session)) -> GuideResponse:
    return await guide_service.get_latest(db)


@router.get(
    "/guides/by-id/{guide_id}",
    response_model=GuideResponse,
    responses={404: {"description": "Guide not found", "model": ErrorResponse}},
    summary="Get a guide by UUID",
)
async def get_guide_by_id(
    guide_id: UUID,
    db: AsyncSession = Depends(get_db_session),
) -> GuideResponse:
    """Non-UUID values are rejected by FastAPI with 422 before reaching here."""
    return await guide_service.get_guide_by_id(db, guide_id)


# ── Dynamic routes ────────────────────────────────────────────────────────


@router.get(
    "/guides/{slug}",
    response_model=GuideResponse,
    responses={404: {"description": "Guide not found", "model": ErrorResponse}},
    summary="Get a guide by slug",
)
async def get_guide(
    slug: SlugPath,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> GuideResponse:
    guide = await guide_service.get_guide(db, slug)
    response.headers["Cache-Control"] = "public, max-age=60"
    return guide


@router.get(
    "/guides/{slug}/sections/{position}",
    response_model=SectionResponse,
    responses={404: {"description": "Guide or section not found", "model": ErrorResponse}},
    summary="Get one section of a guide",
)
async def get_section(
    slug: SlugPath,
    position: int = Path(..., ge=1, description="1-based section position"),
    db: AsyncSession = Depends(get_db_session),
) -> SectionResponse:
    return await guide_service.get_section(db, slug, position)


@router.delete(
    "/guides/{slug}",
    status_code=204,
    responses={
        401: {"description": "Missing or invalid API key", "model": ErrorResponse},
        404: {"description": "Guide not found", "model": ErrorResponse},
    },
    summary="Delete a guide",
)
async def delete_guide(
    slug: SlugPath,
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await guide_service.delete_guide(db, slug)
    return Response(status_code=204)


@router.get(
    "/categories/{category}/guides",
    response_model=GuideListResponse,
    responses={400: {"description": "Unknown sort or level", "model": ErrorResponse}},
    summary="List guides of one category",
)
async def list_category_guides(
    response: Response,
    category: str = Path(..., max_length=80, pattern=SLUG_PATTERN),
    filters: GuideFilters = Depends(guide_filters),
    db: AsyncSession = Depends(get_db_session),
) -> GuideListResponse:
    """Same query parameters as GET /api/guides, with the category taken from the path."""
    result = await guide_service.list_guides(
        db, filters.model_copy(update={"category": category})
    )
    response.headers["X-Total-Count"] = str(result.total)
    return result
