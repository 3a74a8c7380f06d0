"""
Taskboard Backend — Test Configuration (conftest.py)
======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Every API test gets its own app built by `create_app(settings)` on a
       fresh SQLite file (aiosqlite) and a temporary static root, so tests
       never share rows or uploaded files.

Fixture Hierarchy (all function-scoped):
    settings ──► app ──► test_client
                  └────► db_session
    mock_db_session        AsyncMock session for service unit tests
    sample_png_bytes       Tiny PNG for upload tests
    user_form              Factory for valid, unique user form data
    create_user            POSTs a user through the API and returns its JSON
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from taskboard.config import Settings
from taskboard.main import create_app


# ══════════════════════════════════════════════════════════════════════════
# Application Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def settings(tmp_path):
    """
    Settings isolated in `tmp_path`.

    hash_rounds=4 is bcrypt's minimum and keeps user creation fast.
    """
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'taskboard_test.db'}",
        static_root=str(tmp_path / "static"),
        static_url="/static",
        hash_rounds=4,
        max_file_size=1024 * 1024,
        default_page_size=10,
        max_page_size=100,
        log_level="WARNING",
    )


@pytest_asyncio.fixture
async def app(settings):
    """A fully wired application; tables are created before and dropped after."""
    application = create_app(settings)
    await application.state.database.create_all()
    yield application
    await application.state.database.drop_all()
    await application.state.database.dispose()


@pytest_asyncio.fixture
async def test_client(app):
    """
    HTTPX AsyncClient talking to `app` in-process via ASGITransport.

    raise_app_exceptions=False lets the catch-all handler's 500 response
    reach the test instead of the exception Starlette re-raises after it.
    """
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def db_session(app):
    """A session on the same database the app uses, for storage-level checks."""
    async with app.state.database.session_factory() as session:
        yield session


# ══════════════════════════════════════════════════════════════════════════
# Unit-Test Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_db_session():
    """
    A mock AsyncSession for service tests that stub the repositories.

    Usage:
        service = UserService(mock_db_session, settings, file_service)
        service.users = MagicMock(update=AsyncMock(return_value=None))
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


# ══════════════════════════════════════════════════════════════════════════
# Test Data
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def sample_png_bytes():
    """Minimal PNG: signature plus an IHDR chunk header (not a decodable image)."""
    return (
        b"\x89PNG\r\n\x1a\n"
        b"\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01\x08\x06\x00\x00\x00"
        b"\x1f\x15\xc4\x89"
    )


@pytest.fixture
def user_form():
    """
    Factory for valid user form data; `n` keeps unique fields distinct.

    Usage:
        user_form(3)                    → nickname user3, tel 0000000003, ...
        user_form(3, tel="12345")       → same, with an invalid phone
    """

    def _make(n: int = 1, **overrides):
        data = {
            "nickname": f"user{n}",
            "email": f"user{n}@example.com",
            "tel": f"0{n:09d}",
            "password": "secret123",
            "birthday": "1990-05-17",
            "gender": "female",
            "role": "member",
        }
        data.update(overrides)
        return data

    return _make


@pytest.fixture
def create_user(test_client, user_form):
    """POST a valid user and return the response JSON (asserts 201)."""

    async def _create(n: int = 1, **overrides):
        response = await test_client.post("/api/users", data=user_form(n, **overrides))
        assert response.status_code == 201, response.text
        return response.json()

    return _create
