"""
Guidebook — Introspection Routes
=================================

What:  Endpoints that show how the framework sees a request and the app.
    - GET /api/routes         registered routes, static vs dynamic, param types
    - GET /api/inspect/query  how the raw query string was parsed
"""

from fastapi import APIRouter, Request

from guidebook.schemas.guide import QueryInspection, RouteCatalogResponse
from guidebook.services.query_inspector import inspect_query
from guidebook.services.route_catalog import build_catalog

router = APIRouter(prefix="/api", tags=["Inspect"])


@router.get(
    "/routes",
    response_model=RouteCatalogResponse,
    summary="List registered API routes",
)
async def list_routes(request: Request) -> RouteCatalogResponse:
    """Routes appear in the order the router tries them."""
    routes = build_catalog(request.app.routes)
    return RouteCatalogResponse(routes=routes, total=len(routes))


@router.get(
    "/inspect/query",
    response_model=QueryInspection,
    summary="Echo the parsed query string",
)
async def inspect_query_string(request: Request) -> QueryInspection:
    """
    Example:
        GET /api/inspect/query?tag=a&tag=b&debug&page=2
        → params {"tag": ["a", "b"], "debug": [""], "page": ["2"]}, flags ["debug"]
    """
    return inspect_query(
        raw=request.url.query,
        pairs=request.query_params.multi_items(),
    )
