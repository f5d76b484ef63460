"""
Pytest Configuration and Fixtures
=================================

Shared fixtures for pipeline tests. Unit tests run against the in-memory
event store; SQL tests run against a throwaway SQLite file through aiosqlite.
"""

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from decision_intel.database import create_engine, create_session_factory, init_models
from decision_intel.store import InMemoryEventStore

from factories import FakeClock


def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line(
        "markers", "integration: mark test as integration test (requires database)"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )


@pytest.fixture
def store() -> InMemoryEventStore:
    """Empty in-memory event store."""
    return InMemoryEventStore()


@pytest.fixture
def clock() -> FakeClock:
    """Clock frozen at the factories' T0 until advanced."""
    return FakeClock()


@pytest_asyncio.fixture(scope="function")
async def session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Session factory over a fresh SQLite database with every table created."""
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'decision_intel.db'}")
    await init_models(engine)
    yield create_session_factory(engine)
    await engine.dispose()
