from httpx import ASGITransport, AsyncClient
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

import app.models  # noqa: F401
from app.core.database import Base, enable_immediate_transactions, get_db
from app.main import app as fastapi_app


@pytest_asyncio.fixture
async def engine(tmp_path):
    """A fresh SQLite database file per test"""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'tutorhub_test.db'}", poolclass=NullPool)
    enable_immediate_transactions(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory):
    """HTTP client whose requests each get their own session on the test database"""

    async def _override_get_db():
        async with session_factory() as session:
            yield session

    previous_overrides = dict(fastapi_app.dependency_overrides)
    fastapi_app.dependency_overrides[get_db] = _override_get_db

    async with AsyncClient(transport=ASGITransport(app=fastapi_app), base_url="http://test") as http_client:
        yield http_client

    fastapi_app.dependency_overrides = previous_overrides
