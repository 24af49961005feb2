"""Pytest configuration and fixtures."""

import os
import tempfile
from pathlib import Path

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Create a temporary directory for test paths
_test_tmp_dir = tempfile.mkdtemp(prefix="cimiento_test_")
_test_config_path = Path(_test_tmp_dir) / "config"
_test_storage_path = Path(_test_tmp_dir) / "storage"
_test_config_path.mkdir(parents=True, exist_ok=True)
_test_storage_path.mkdir(parents=True, exist_ok=True)

# Set config paths BEFORE importing app modules
os.environ["CIMIENTO_CONFIG_PATH"] = str(_test_config_path)
os.environ["CIMIENTO_STORAGE_PATH"] = str(_test_storage_path)

from app.db import get_db
from app.db.base import Base
from app.main import app
from app.services.settings import SettingsService


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Start every test with an empty settings cache."""
    SettingsService.clear_cache()
    yield
    SettingsService.clear_cache()


@pytest.fixture
async def db_engine():
    """Create an in-memory test database engine shared by all sessions."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db_session(db_engine):
    """Create a test database session."""
    async_session = async_sessionmaker(
        db_engine, class_=AsyncSession, expire_on_commit=False
    )
    async with async_session() as session:
        yield session


@pytest.fixture
async def seeded_session(db_session):
    """Session over a database holding the default settings catalogue."""
    await SettingsService(db_session).initialize_defaults()
    await db_session.commit()
    return db_session


@pytest.fixture
async def api_client(db_engine):
    """Create an async client for the FastAPI application with the test database."""
    test_session_maker = async_sessionmaker(
        db_engine, class_=AsyncSession, expire_on_commit=False
    )

    async def override_get_db():
        async with test_session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    # Override the dependency
    app.dependency_overrides[get_db] = override_get_db

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    # Clean up override
    app.dependency_overrides.clear()


@pytest.fixture
async def seeded_client(api_client):
    """API client over a database holding the default settings catalogue."""
    response = await api_client.post("/api/v1/settings/initialize")
    assert response.status_code == 200
    return api_client


def pytest_sessionfinish(session, exitstatus):
    """Clean up temp directories after test session."""
    import shutil
    if Path(_test_tmp_dir).exists():
        shutil.rmtree(_test_tmp_dir, ignore_errors=True)
