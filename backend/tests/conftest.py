"""
Mutual Fund Tracking Backend — Test Configuration (conftest.py)
================================================================

What:  Shared pytest fixtures for the entire test suite.
Why:   Store, service and API tests all need the same throwaway database.
How:   Each test gets a fresh SQLite file (aiosqlite driver) under tmp_path
       with the schema created from Base.metadata.

Fixture Hierarchy (all function-scoped):
    ├── database_url:     sqlite+aiosqlite URL inside tmp_path
    ├── engine:           AsyncEngine with tables created; disposed afterwards
    ├── session_factory:  async_sessionmaker bound to engine
    ├── write_lock:       the process-wide lock, fresh per test
    ├── store:            MutualFundMetaStore
    ├── service:          MutualFundMetaService over store
    ├── new_meta:         a valid NewMutualFundMeta
    ├── make_meta:        factory for NewMutualFundMeta payloads
    ├── now:              fixed UTC request start time
    └── test_client:      HTTPX AsyncClient against create_app()
"""

import os
from datetime import datetime, timezone

# Settings are read at import time; never point tests at a real server
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test.db"
os.environ["LOG_LEVEL"] = "WARNING"

import asyncio

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from mftracking.config import Settings
from mftracking.database import Base, create_session_factory, open_engine
from mftracking.repositories.mutual_fund_meta_repo import MutualFundMetaStore
from mftracking.schemas.mutual_fund_meta import NewMutualFundMeta
from mftracking.services.mutual_fund_meta_service import MutualFundMetaService


def make_new_meta(scheme_code: str = "119551", **overrides) -> NewMutualFundMeta:
    """A valid create payload; keyword arguments replace individual fields."""
    data = {
        "fund_house": "Aditya Birla Sun Life Mutual Fund",
        "scheme_type": "Open Ended Schemes",
        "scheme_category": "Debt Scheme - Banking and PSU Fund",
        "scheme_code": scheme_code,
        "scheme_name": "Aditya Birla Sun Life Banking & PSU Debt Fund - DIRECT - IDCW",
    }
    data.update(overrides)
    return NewMutualFundMeta(**data)


@pytest.fixture
def database_url(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'mf.db'}"


@pytest.fixture
def test_settings(database_url) -> Settings:
    return Settings(database_url=database_url, log_level="WARNING")


@pytest_asyncio.fixture
async def engine(test_settings):
    """
    Engine with the schema created.

    What:  Fresh database per test; disposed when the test finishes.
    """
    engine = open_engine(test_settings)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def write_lock():
    return asyncio.Lock()


@pytest.fixture
def store(session_factory, write_lock) -> MutualFundMetaStore:
    return MutualFundMetaStore(session_factory, write_lock)


@pytest.fixture
def service(store) -> MutualFundMetaService:
    return MutualFundMetaService(store)


@pytest.fixture
def new_meta() -> NewMutualFundMeta:
    return make_new_meta()


@pytest.fixture
def now() -> datetime:
    """Fixed request start time used to stamp writes."""
    return datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)


@pytest.fixture
def make_meta():
    """Factory for create payloads with distinct scheme codes."""
    return make_new_meta


@pytest_asyncio.fixture
async def test_client(test_settings):
    """
    Provides an async HTTP test client for endpoint testing.

    What:    HTTPX AsyncClient routed straight into create_app() via ASGITransport.
    How:     The transport does not run the lifespan, so the schema is created
             here on the app's own engine.

    Usage:
        async def test_teapot(test_client):
            response = await test_client.get("/v1/teapot")
            assert response.status_code == 418
    """
    from mftracking.main import create_app

    app = create_app(test_settings)
    async with app.state.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    await app.state.engine.dispose()
