"""Shared fixtures for tracking engine tests."""

import logging
from datetime import datetime, timezone

import pytest
import pytest_asyncio

from vesseltrack.ais.adapters.fixture import FixtureAdapter
from vesseltrack.ais.models import ProviderPosition
from vesseltrack.database.connection import Database
from vesseltrack.tenancy import TenantId, require_tenant

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

SQLITE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def database():
    """Fresh in-memory SQLite database with all tables."""
    db = Database(SQLITE_URL)
    await db.create_all()
    yield db
    await db.dispose()


@pytest.fixture
def tenant() -> TenantId:
    return require_tenant("tenant-a")


@pytest.fixture
def other_tenant() -> TenantId:
    return require_tenant("tenant-b")


@pytest.fixture
def fixture_provider() -> FixtureAdapter:
    return FixtureAdapter()


def make_position(
    lat: float = -24.481873,
    lon: float = -44.217957,
    timestamp: datetime = datetime(2025, 12, 12, 20, 50, 19, tzinfo=timezone.utc),
    mmsi: str = "710005865",
    **kwargs,
) -> ProviderPosition:
    return ProviderPosition(lat=lat, lon=lon, timestamp=timestamp, mmsi=mmsi, **kwargs)
