"""
Guidebook — Route Catalog
==========================

What:  Describes the routes registered on the running FastAPI app.
Why:   GET /api/routes shows which URL patterns are fixed and which capture
       path parameters, with the declared parameter types.
How:   Walks `app.routes` in registration order (the same order the router
       matches in) and reads each APIRoute's dependant for its path params.

Newer FastAPI releases keep an included router as one nested entry
(`original_router`) instead of copying its routes onto the app; the walk
descends into those entries in place. Prefixes passed to include_router()
itself are not applied, so routers carry their prefix on APIRouter(prefix=...).
"""

import re
from typing import Iterable, Iterator, List

from fastapi.routing import APIRoute

from guidebook.schemas.guide import RouteInfo, RouteParam

_PARAM_RE = re.compile(r"{([^}:]+)(?::[^}]+)?}")

# Added implicitly by Starlette for GET routes
_IMPLICIT_METHODS = {"HEAD", "OPTIONS"}


def route_kind(path: str) -> str:
    """'dynamic' when the path template has at least one {param} segment."""
    return "dynamic" if _PARAM_RE.search(path) else "static"


def _type_name(annotation) -> str:
    if annotation is None:
        return "str"
    name = getattr(annotation, "__name__", None)
    if name:
        return name
    return str(annotation).replace("typing.", "")


def describe_route(route: APIRoute) -> RouteInfo:
    declared = {
        param.name: _type_name(getattr(param.field_info, "annotation", None))
        for param in route.dependant.path_params
    }
    # Template order, not signature order
    params = [
        RouteParam(name=name, type=declared.get(name, "str"))
        for name in _PARAM_RE.findall(route.path)
    ]
    return RouteInfo(
        path=route.path,
        name=route.name,
        methods=sorted(set(route.methods or ()) - _IMPLICIT_METHODS),
        kind=route_kind(route.path),
        params=params,
    )


def iter_api_routes(routes: Iterable) -> Iterator[APIRoute]:
    """Yield APIRoutes depth-first, descending into nested included routers."""
    for route in routes:
        if isinstance(route, APIRoute):
            yield route
            continue
        nested = getattr(route, "original_router", None)
        if nested is not None:
            yield from iter_api_routes(nested.routes)


def build_catalog(routes: Iterable) -> List[RouteInfo]:
    """
    Describe every API route in registration order.

    Non-API routes (Swagger UI, ReDoc, openapi.json) and routes hidden from
    the schema are skipped.
    """
    return [
        describe_route(route)
        for route in iter_api_routes(routes)
        if route.include_in_schema
    ]
