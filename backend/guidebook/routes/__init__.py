# Routes package init
"""
Guidebook — API Routes Package
===============================

What:  HTTP route handlers that accept requests and return responses.

Route Inventory:
    - pages.py:   GET /, GET /about                    (static)
    - health.py:  GET /health                          (static)
    - guides.py:  /api/guides, /api/guides/{slug}, ... (static, dynamic, query)
    - inspect.py: GET /api/routes, GET /api/inspect/query

Design Principle:
    Routes are THIN: extract path/query/body data, call a service, shape the
    response (status code, headers). Business rules live in services.
"""
