"""
Blogstack Backend — Test Configuration (conftest.py)
======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   The environment is pointed at a throwaway SQLite database and upload
       directory before any app module is imported (settings and the engine
       are built at import time).

Fixture Hierarchy:
    Function-scoped:
    ├── mock_db_session:  AsyncMock session for service unit tests
    ├── temp_storage:     Temporary directory for LocalStorage tests
    ├── png_bytes / gif_bytes / jpeg_bytes: real encoded images (Pillow)
    ├── database:         Fresh tables on the SQLite test database
    ├── test_client:      httpx AsyncClient bound to the app (needs `database`)
    └── register:         Helper that signs a user up and returns auth headers
"""

import io
import os
import tempfile
from unittest.mock import AsyncMock, MagicMock

# ── Environment Setup (before any app import) ─────────────────────────────
_TEST_DIR = tempfile.mkdtemp(prefix="blogstack_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DIR}/test.db"
os.environ["STORAGE_BACKEND"] = "local"
os.environ["STORAGE_ROOT"] = os.path.join(_TEST_DIR, "uploads")
os.environ["JWT_SECRET"] = "test-secret-not-for-production-use-0123456789"
os.environ["RATE_LIMIT_REQUESTS"] = "100000"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from PIL import Image  # noqa: E402


def make_image(image_format: str, size=(8, 8), color=(200, 30, 30)) -> bytes:
    """Encode a tiny solid-colour image; Pillow can decode it back."""
    buf = io.BytesIO()
    image = Image.new("RGB", size, color)
    if image_format == "GIF":
        image = image.convert("P")
    image.save(buf, image_format)
    return buf.getvalue()


# ══════════════════════════════════════════════════════════════════════════
# Unit Test Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_db_session():
    """
    A mock AsyncSession.

    Usage:
        mock_db_session.execute.return_value.scalar_one_or_none.return_value = blog
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.delete = AsyncMock()
    session.get = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def temp_storage(tmp_path):
    storage_dir = tmp_path / "storage"
    storage_dir.mkdir()
    return str(storage_dir)


@pytest.fixture
def png_bytes():
    return make_image("PNG")


@pytest.fixture
def jpeg_bytes():
    return make_image("JPEG")


@pytest.fixture
def gif_bytes():
    return make_image("GIF")


# ══════════════════════════════════════════════════════════════════════════
# Integration Fixtures (real app, SQLite database, local storage)
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def database():
    """Create every table, yield, then drop them and close pooled connections."""
    from app.database import Base, engine, init_models

    await init_models()
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    # Pooled aiosqlite connections belong to this test's event loop
    await engine.dispose()


@pytest_asyncio.fixture
async def test_client(database):
    """
    HTTPX AsyncClient talking to the FastAPI app in-process.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
    """
    from app.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def register(test_client):
    """
    Sign a user up and return headers carrying their token.

    Usage:
        headers = await register("ada@example.com")
    """

    async def _register(email: str = "ada@example.com", name: str = "Ada", password: str = "secret1"):
        response = await test_client.post(
            "/api/auth/signup",
            json={"name": name, "email": email, "password": password},
        )
        assert response.status_code == 201, response.text
        return {"x-auth-token": response.json()["token"]}

    return _register
