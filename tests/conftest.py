"""
Pytest configuration and fixtures
"""

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool
from models.base import Base
from models.source import Source  # noqa: F401
from models.story import Story  # noqa: F401
from curation.locking import SourceLockRegistry
from schemas.sources import SourceRead
from schemas.stories import StoryRead
from typing import AsyncGenerator

# In-memory SQLite shared by every connection of one engine
TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Create test database engine"""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Drop all tables after test
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create database session for tests"""
    async_session_maker = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )

    async with async_session_maker() as session:
        yield session
        await session.rollback()


@pytest.fixture
def lock_registry():
    """Fresh per-test lock registry"""
    return SourceLockRegistry()


def make_source(**overrides) -> SourceRead:
    """Source read model with sensible defaults"""
    fields = {
        "id": 1,
        "name": "Test Source",
        "source_type": "map_overlay",
        "era": "victorian",
        "year_start": 1850,
        "stage": 1,
    }
    fields.update(overrides)
    return SourceRead(**fields)


def make_story(**overrides) -> StoryRead:
    """Story read model with sensible defaults"""
    fields = {
        "id": 1,
        "title": "Test Story",
        "year_start": 1850,
        "era": "victorian",
    }
    fields.update(overrides)
    return StoryRead(**fields)


def map_ready_source(**overrides) -> SourceRead:
    """Source that satisfies every gate up to stage 4"""
    fields = {
        "stage": 4,
        "source_url": "https://example.org/map",
        "iiif_url": "https://example.org/iiif/manifest.json",
        "georeference_url": "https://example.org/annotations.json",
        "tiles": [{"url": "https://tiles.example.org/{z}/{x}/{y}.png", "georeferenced": True}],
    }
    fields.update(overrides)
    return make_source(**fields)


@pytest.fixture
def victorian_source_payload():
    """Create payload for a Victorian town plan"""
    return {
        "name": "OS Town Plan 1849",
        "description": "1:1056 town plan",
        "source_type": "map_overlay",
        "era": "victorian",
        "year_start": 1849,
        "year_end": 1851,
    }
