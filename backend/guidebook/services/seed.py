"""
Guidebook — Sample Data
========================

What:  Three starter guides covering routes, query parameters and middleware.
When:  Inserted at startup when SEED_SAMPLE_DATA=true and the table is empty.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from guidebook.schemas.guide import GuideCreate
from guidebook.services.guide_service import guide_service

logger = logging.getLogger(__name__)

SAMPLE_GUIDES = [
    GuideCreate(
        title="Routing Basics",
        summary="How URL patterns map to handlers, static and dynamic.",
        category="routing",
        tags=["routing", "fundamentals"],
        level="beginner",
        body=(
            "A route maps a URL pattern to a handler.\n"
            "\n"
            "## Static routes\n"
            "A static route matches one fixed path, such as `/about`.\n"
            "\n"
            "## Dynamic routes\n"
            "A dynamic route captures path segments as parameters:\n"
            "`/api/guides/{slug}` passes `slug` to the handler.\n"
            "\n"
            "## Route order\n"
            "Routes are matched in declaration order. Declare `/api/guides/latest`\n"
            "before `/api/guides/{slug}` or the dynamic route captures it.\n"
        ),
    ),
    GuideCreate(
        title="Query Parameters",
        summary="Reading and validating key-value data after the question mark.",
        category="routing",
        tags=["query-parameters", "validation"],
        level="beginner",
        body=(
            "Query parameters are key-value pairs appended to a URL after `?`.\n"
            "\n"
            "## Parsing\n"
            "`?tag=a&tag=b` repeats a key; handlers receive a list.\n"
            "\n"
            "## Validation\n"
            "Always validate: types, ranges and allowed values. Reject what\n"
            "you cannot interpret instead of guessing.\n"
        ),
    ),
    GuideCreate(
        title="Middleware Chains",
        summary="Functions that inspect, modify or terminate the request cycle.",
        category="middleware",
        tags=["middleware", "fundamentals"],
        level="intermediate",
        body=(
            "Middleware runs around every handler.\n"
            "\n"
            "## Ordering\n"
            "The first middleware to see the request is the last to see the response.\n"
            "\n"
            "## Short-circuiting\n"
            "A middleware may answer on its own (401, 429, 503) without calling\n"
            "the next layer.\n"
        ),
    ),
]


async def seed_sample_guides(db: AsyncSession) -> int:
    """Insert SAMPLE_GUIDES into an empty table. Returns the number inserted."""
    if await guide_service.count_guides(db):
        return 0
    for payload in SAMPLE_GUIDES:
        await guide_service.create_guide(db, payload)
    logger.info("Seeded %d sample guides", len(SAMPLE_GUIDES))
    return len(SAMPLE_GUIDES)
