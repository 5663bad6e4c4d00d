# Services package init
"""
Guidebook — Services Layer
===========================

What:  Business logic layer sitting between routes (HTTP) and database (persistence).
Why:   Separation of concerns: routes handle HTTP, services handle rules.

Service Inventory:
    - GuideService: create, look up, filter, paginate, delete, sections
    - route_catalog: describes registered routes (static vs dynamic)
    - query_inspector: query-string grouping and multi-value splitting
    - seed: sample guides for a fresh database
"""
