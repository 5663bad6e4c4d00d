"""
Guidebook — Application Package Initializer
============================================

What: Marks the `guidebook` directory as a Python package.
Why:  Enables module imports like `from guidebook.config import settings`.
Who:  Used implicitly by Python's import system and explicitly by Alembic, pytest, and uvicorn.

Architecture Note:
    The service follows the same layered layout for every concept it demonstrates:

    ┌─────────────────────────────────────┐
    │        Middleware (cross-cutting)   │  ← request id, logging, limits, auth
    ├─────────────────────────────────────┤
    │           Routes (API Layer)        │  ← static and dynamic URL patterns
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← filtering, slugs, sections
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
