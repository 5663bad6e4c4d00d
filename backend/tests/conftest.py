"""
Guidebook — Test Configuration (conftest.py)
=============================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy (all function-scoped):
    ├── db_tables: creates the schema in a temporary SQLite file, drops it after
    ├── db_session: real AsyncSession on that schema (service tests)
    ├── mock_db_session: AsyncMock session (error-path tests, no DB)
    ├── test_client: HTTPX AsyncClient on a fresh app (route tests)
    ├── api_headers: X-API-Key header accepted by the test app
    └── guide_payload: valid POST /api/guides body
"""

import os
import tempfile
from unittest.mock import AsyncMock, MagicMock

# ══════════════════════════════════════════════════════════════════════════
# Environment Setup
# ══════════════════════════════════════════════════════════════════════════

# Must run before anything imports guidebook.config (settings are read once)
_DB_DIR = tempfile.mkdtemp(prefix="guidebook_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_DB_DIR}/test.db"
os.environ["API_KEYS"] = "test-key,second-key"
os.environ["AUTO_CREATE_TABLES"] = "false"
os.environ["SEED_SAMPLE_DATA"] = "false"
os.environ["MAINTENANCE_MODE"] = "false"
os.environ["RATE_LIMIT_REQUESTS"] = "10000"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from guidebook.database import async_session_factory, drop_models, init_models  # noqa: E402

TEST_API_KEY = "test-key"


@pytest_asyncio.fixture
async def db_tables():
    """Fresh schema per test; every test starts from an empty guides table."""
    await init_models()
    yield
    await drop_models()


@pytest_asyncio.fixture
async def db_session(db_tables):
    async with async_session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def mock_db_session():
    """
    A mock async database session.

    Usage:
        mock_db_session.execute.side_effect = RuntimeError("connection lost")
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.delete = AsyncMock()
    session.add = MagicMock()
    return session


@pytest_asyncio.fixture
async def test_client(db_tables):
    """
    HTTPX AsyncClient talking to a freshly built app.

    A new app per test keeps middleware state (rate limit windows) isolated.
    ASGITransport does not run the lifespan; db_tables creates the schema.
    """
    from guidebook.main import create_app

    transport = ASGITransport(app=create_app())
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def api_headers():
    return {"X-API-Key": TEST_API_KEY}


@pytest.fixture
def guide_payload():
    return {
        "title": "Routing Basics",
        "summary": "How URL patterns map to handlers.",
        "body": (
            "Intro paragraph.\n"
            "\n"
            "## Static routes\n"
            "Fixed paths.\n"
            "\n"
            "## Dynamic routes\n"
            "Paths with {params}.\n"
        ),
        "category": "routing",
        "tags": ["routing", "fundamentals"],
        "level": "beginner",
    }
