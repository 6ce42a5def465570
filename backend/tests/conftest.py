"""
Tienda Services: Test Configuration (conftest.py)
===================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── mock_db_session: Mock database session (no real DB needed)
    ├── temp_storage: Temporary upload directory
    ├── sample_image_bytes: Tiny PNG for upload tests
    ├── store: Store on a throwaway SQLite file with every table created
    └── <service>_client: HTTPX AsyncClient bound to one service app
"""

import base64
import os
import tempfile

# Override settings for testing BEFORE any tienda imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test_tienda.db"
os.environ["JWT_SECRET"] = "test-secret-not-real"
os.environ["BCRYPT_ROUNDS"] = "4"  # bcrypt minimum; keeps the suite fast
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="tienda_test_")
os.environ["LOG_LEVEL"] = "WARNING"  # Reduce noise during tests

from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from tienda.database import Base, Store
from tienda.main import create_app
from tienda.services.file_service import FileService


# ══════════════════════════════════════════════════════════════════════════
# Function-Scoped Fixtures (created fresh for each test)
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    Usage:
        async def test_get_user(mock_db_session):
            mock_db_session.get.return_value = None
            with pytest.raises(NotFoundError):
                await usuario_service.get_user(mock_db_session, 1)
    """
    session = AsyncMock()
    session.execute = AsyncMock(return_value=MagicMock())
    session.get = AsyncMock(return_value=None)
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def temp_storage(tmp_path):
    """A fresh upload directory for each test (removed by pytest)."""
    storage_dir = tmp_path / "uploads"
    storage_dir.mkdir()
    return str(storage_dir)


@pytest.fixture
def sample_image_bytes():
    """A complete 1x1 PNG, so libmagic reports image/png."""
    return base64.b64decode(
        "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
    )


@pytest_asyncio.fixture
async def store(tmp_path):
    """
    A Store on its own SQLite file with all four tables.

    The services share it the way they share one PostgreSQL database in
    production, so cross-service effects (category delete → products) are
    visible.
    """
    test_store = Store(f"sqlite+aiosqlite:///{tmp_path / 'tienda.db'}")
    await test_store.initialize(Base.metadata.sorted_tables)
    yield test_store
    await test_store.dispose()


@pytest_asyncio.fixture
async def service_client(store, temp_storage):
    """
    Factory for HTTP clients bound to one service app.

    ASGITransport does not run the lifespan; the `store` fixture has already
    created the schema.
    """
    clients = []

    async def _make(service: str) -> AsyncClient:
        app = create_app(service, store=store, files=FileService(upload_dir=temp_storage))
        client = AsyncClient(transport=ASGITransport(app=app), base_url="http://test")
        clients.append(client)
        return client

    yield _make

    for client in clients:
        await client.aclose()


@pytest_asyncio.fixture
async def usuarios_client(service_client):
    return await service_client("usuarios")


@pytest_asyncio.fixture
async def productos_client(service_client):
    return await service_client("productos")


@pytest_asyncio.fixture
async def categorias_client(service_client):
    return await service_client("categorias")


@pytest_asyncio.fixture
async def boletas_client(service_client):
    return await service_client("boletas")


@pytest_asyncio.fixture
async def detalle_client(service_client):
    return await service_client("detalle")
