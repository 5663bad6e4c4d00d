"""
Guidebook — Pydantic Request/Response Schemas
==============================================

What:  Pydantic models defining the API contract.
Why:   Strict input validation, automatic serialization, and OpenAPI doc generation.
How:   FastAPI uses these models to validate request bodies, serialize responses,
       and generate Swagger/OpenAPI documentation automatically.

Schemas are separate from SQLAlchemy models so the API contract can change
independently of the table layout (tags are a list here, a delimited string
in the database).
"""

import re
import uuid
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

SLUG_PATTERN = r"^[a-z0-9]+(?:-[a-z0-9]+)*$"
_SLUG_RE = re.compile(SLUG_PATTERN)

GuideLevel = Literal["beginner", "intermediate", "advanced"]

# 16 tags of 30 chars encode to 497 chars, inside the 500-char tags column
MAX_TAGS = 16
MAX_TAG_LENGTH = 30


# ══════════════════════════════════════════════════════════════════════════
# Request Models — What the client sends in the body
# ══════════════════════════════════════════════════════════════════════════


class GuideCreate(BaseModel):
    """
    Body of POST /api/guides.

    `slug` is optional; when omitted the service derives it from the title.
    Tags are normalized to lowercase and de-duplicated in first-seen order.
    """

    title: str = Field(min_length=1, max_length=200)
    summary: str = Field(default="", max_length=500)
    body: str = Field(default="")
    category: str = Field(min_length=1, max_length=80, pattern=SLUG_PATTERN)
    tags: List[str] = Field(default_factory=list, max_length=MAX_TAGS)
    level: GuideLevel = "beginner"
    published: bool = True
    slug: Optional[str] = Field(default=None, min_length=1, max_length=80, pattern=SLUG_PATTERN)

    @field_validator("tags")
    @classmethod
    def normalize_tags(cls, v: List[str]) -> List[str]:
        seen: List[str] = []
        for raw in v:
            tag = raw.strip().lower()
            if not tag:
                continue
            if len(tag) > MAX_TAG_LENGTH:
                raise ValueError(f"Tag '{raw}' is longer than {MAX_TAG_LENGTH} characters")
            if not _SLUG_RE.match(tag):
                raise ValueError(f"Invalid tag '{raw}'. Tags must be lowercase kebab-case")
            if tag not in seen:
                seen.append(tag)
        return seen


# ══════════════════════════════════════════════════════════════════════════
# Response Models — What the API returns to clients
# ══════════════════════════════════════════════════════════════════════════


class GuideResponse(BaseModel):
    """Full representation of a guide, returned by the single-guide routes."""

    id: uuid.UUID
    slug: str
    title: str
    summary: str
    body: str
    category: str
    tags: List[str]
    level: str
    published: bool
    section_count: int = Field(description="Number of level-2 sections in the body")
    created_at: datetime
    updated_at: datetime


class GuideListItem(BaseModel):
    """Compact guide representation for list views (no body)."""

    id: uuid.UUID
    slug: str
    title: str
    summary: str
    category: str
    tags: List[str]
    level: str
    created_at: datetime


class GuideListResponse(BaseModel):
    """
    Paginated response wrapper for the guide list endpoints.

    Pagination is page/page_size based; a page past the end is an
    empty list with has_more=False, not an error.
    """

    guides: List[GuideListItem]
    total: int = Field(description="Total number of guides matching the filters")
    page: int
    page_size: int
    pages: int = Field(description="Number of pages for the current page_size")
    has_more: bool


class SectionResponse(BaseModel):
    """One level-2 section of a guide body."""

    guide_slug: str
    position: int = Field(description="1-based position of the section")
    title: str
    content: str
    total_sections: int


# ══════════════════════════════════════════════════════════════════════════
# Query Parameter Models — What the client sends in URL params
# ══════════════════════════════════════════════════════════════════════════


class GuideFilters(BaseModel):
    """
    Validated query parameters for guide listing.

    Built by the route from individual Query() parameters; range checks
    (page ≥ 1, page_size bounds) already happened in FastAPI. The rules here
    are business rules and surface as 400, not 422:

        sort:  created_at | -created_at | title | -title
        level: beginner | intermediate | advanced
    """

    q: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    category: Optional[str] = None
    level: Optional[str] = None
    published: bool = True
    page: int = 1
    page_size: int = 20
    sort: str = "-created_at"


class QueryInspection(BaseModel):
    """How the raw query string of a request was parsed."""

    raw: str = Field(description="Query string exactly as received (without '?')")
    params: dict = Field(description="Key → list of values, in first-seen key order")
    flags: List[str] = Field(description="Keys that appeared with an empty value")


class RouteParam(BaseModel):
    name: str
    type: str


class RouteInfo(BaseModel):
    path: str
    name: str
    methods: List[str]
    kind: Literal["static", "dynamic"]
    params: List[RouteParam]


class RouteCatalogResponse(BaseModel):
    routes: List[RouteInfo]
    total: int


# ══════════════════════════════════════════════════════════════════════════
# Error / Service Models
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    Standardized error response format for all API errors.

    Example:
        {
            "error": "validation_error",
            "message": "Invalid sort 'popularity'",
            "details": {"field": "sort", "allowed": ["-created_at", ...]},
            "request_id": "a1b2c3d4"
        }
    """

    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str
    database: str = Field(description="Database connectivity: connected, disconnected")
    maintenance: bool
    uptime_seconds: float


class ServiceIndex(BaseModel):
    name: str
    version: str
    docs: str
    links: dict
