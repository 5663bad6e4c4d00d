"""
Guidebook — Static Pages
=========================

What:  Fixed-path routes with no parameters: the service index and /about.
"""

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

from guidebook import __version__
from guidebook.schemas.guide import ServiceIndex

router = APIRouter(tags=["Pages"])

ABOUT_TEXT = (
    "Guidebook serves short guides about web framework routing.\n"
    "\n"
    "Every concept it explains is also an endpoint here:\n"
    "  static routes      GET /, GET /about, GET /api/guides/latest\n"
    "  dynamic routes     GET /api/guides/{slug}, /api/guides/{slug}/sections/{position}\n"
    "  query parameters   GET /api/guides?q=&tag=&level=&page=&page_size=&sort=\n"
    "  middleware         see the X-Request-ID and X-Process-Time response headers\n"
)


@router.get("/", response_model=ServiceIndex, summary="Service index")
async def index() -> ServiceIndex:
    return ServiceIndex(
        name="Guidebook",
        version=__version__,
        docs="/docs",
        links={
            "guides": "/api/guides",
            "latest": "/api/guides/latest",
            "routes": "/api/routes",
            "health": "/health",
            "about": "/about",
        },
    )


@router.get("/about", response_class=PlainTextResponse, summary="About this service")
async def about() -> str:
    return ABOUT_TEXT
