"""Tests for the tenant-scoped position history."""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from conftest import make_position
from vesseltrack.database.connection import Database
from vesseltrack.errors import StorageUnavailableError
from vesseltrack.fleet import VesselRepository
from vesseltrack.positions import PositionStore
from vesseltrack.status import VesselRuntimeStatus

BASE_TIME = datetime(2025, 12, 12, 0, 0, 0, tzinfo=timezone.utc)


async def add_positions(store, tenant, vessel_id, count, start=0):
    for i in range(start, start + count):
        await store.append(
            tenant,
            vessel_id,
            make_position(lat=float(i % 90), timestamp=BASE_TIME + timedelta(seconds=i)),
        )


class TestAppend:
    @pytest.mark.asyncio
    async def test_append_and_latest(self, database, tenant):
        vessel = await VesselRepository(database).create(tenant, "Nordic Star", mmsi="710005865")
        store = PositionStore(database)

        record = await store.append(
            tenant, vessel.id, make_position(), runtime_status=VesselRuntimeStatus.AT_SEA
        )

        assert record.id is not None
        latest = await store.latest(tenant, vessel.id)
        assert latest.id == record.id
        assert latest.latitude == pytest.approx(-24.481873)
        assert latest.longitude == pytest.approx(-44.217957)
        assert latest.timestamp == datetime(2025, 12, 12, 20, 50, 19, tzinfo=timezone.utc)
        assert latest.runtime_status == "AT_SEA"
        assert latest.source == "ais"

    @pytest.mark.asyncio
    async def test_latest_without_history(self, database, tenant):
        assert await PositionStore(database).latest(tenant, "missing") is None

    @pytest.mark.asyncio
    async def test_retention_trims_oldest(self, database, tenant):
        vessel = await VesselRepository(database).create(tenant, "Nordic Star", mmsi="710005865")
        store = PositionStore(database, retention_limit=5)

        await add_positions(store, tenant, vessel.id, 8)

        history = await store.history(tenant, vessel.id, limit=100)
        assert len(history) == 5
        assert [r.timestamp for r in history] == [
            BASE_TIME + timedelta(seconds=i) for i in (7, 6, 5, 4, 3)
        ]

    @pytest.mark.asyncio
    async def test_default_retention_keeps_one_thousand(self, database, tenant):
        vessel = await VesselRepository(database).create(tenant, "Nordic Star", mmsi="710005865")
        store = PositionStore(database, max_history_limit=1000)

        await add_positions(store, tenant, vessel.id, 1001)

        assert await store.count(tenant, vessel.id) == 1000
        history = await store.history(tenant, vessel.id, limit=1000)
        assert len(history) == 1000
        assert history[-1].timestamp == BASE_TIME + timedelta(seconds=1)
        assert history[0].timestamp == BASE_TIME + timedelta(seconds=1000)

    @pytest.mark.asyncio
    async def test_trim_is_per_vessel(self, database, tenant):
        repo = VesselRepository(database)
        first = await repo.create(tenant, "First", mmsi="710005865")
        second = await repo.create(tenant, "Second", mmsi="710005866")
        store = PositionStore(database, retention_limit=3)

        await add_positions(store, tenant, first.id, 3)
        await add_positions(store, tenant, second.id, 5)

        assert await store.count(tenant, first.id) == 3
        assert await store.count(tenant, second.id) == 3

    @pytest.mark.asyncio
    async def test_concurrent_appends_respect_retention(self, database, tenant):
        vessel = await VesselRepository(database).create(tenant, "Nordic Star", mmsi="710005865")
        store = PositionStore(database, retention_limit=10)

        await asyncio.gather(
            *(
                store.append(
                    tenant,
                    vessel.id,
                    make_position(timestamp=BASE_TIME + timedelta(seconds=i)),
                )
                for i in range(30)
            )
        )

        assert await store.count(tenant, vessel.id) == 10
        latest = await store.latest(tenant, vessel.id)
        assert latest.timestamp == BASE_TIME + timedelta(seconds=29)


class TestHistory:
    @pytest.mark.asyncio
    async def test_newest_first_and_default_limit(self, database, tenant):
        vessel = await VesselRepository(database).create(tenant, "Nordic Star", mmsi="710005865")
        store = PositionStore(database, default_history_limit=3)
        await add_positions(store, tenant, vessel.id, 6)

        history = await store.history(tenant, vessel.id)

        assert len(history) == 3
        assert history[0].timestamp > history[1].timestamp > history[2].timestamp

    @pytest.mark.asyncio
    async def test_limit_is_clamped(self, database, tenant):
        vessel = await VesselRepository(database).create(tenant, "Nordic Star", mmsi="710005865")
        store = PositionStore(database, max_history_limit=4)
        await add_positions(store, tenant, vessel.id, 6)

        assert len(await store.history(tenant, vessel.id, limit=100)) == 4
        assert len(await store.history(tenant, vessel.id, limit=0)) == 1


class TestTenantIsolation:
    @pytest.mark.asyncio
    async def test_other_tenant_sees_nothing(self, database, tenant, other_tenant):
        vessel = await VesselRepository(database).create(tenant, "Nordic Star", mmsi="710005865")
        store = PositionStore(database)
        await add_positions(store, tenant, vessel.id, 3)

        assert await store.latest(other_tenant, vessel.id) is None
        assert await store.history(other_tenant, vessel.id) == []
        assert await store.count(other_tenant, vessel.id) == 0


class TestSyntheticPositions:
    @pytest.mark.asyncio
    async def test_manual_position_is_tagged(self, database, tenant):
        vessel = await VesselRepository(database).create(tenant, "Nordic Star", mmsi="710005865")
        store = PositionStore(database)

        record = await store.record_synthetic(tenant, vessel.id, 40.6, 22.9, source="demo")

        assert record.source == "demo"
        assert (await store.latest(tenant, vessel.id)).source == "demo"

    @pytest.mark.asyncio
    async def test_non_synthetic_source_rejected(self, database, tenant):
        with pytest.raises(ValueError):
            await PositionStore(database).record_synthetic(tenant, "v", 1.0, 1.0, source="ais")


class TestStorageFailure:
    @pytest.mark.asyncio
    async def test_unreachable_database(self, tenant):
        database = Database("sqlite+aiosqlite:////nonexistent-dir/positions.db")
        store = PositionStore(database)
        try:
            with pytest.raises(StorageUnavailableError):
                await store.latest(tenant, "vessel")
            with pytest.raises(StorageUnavailableError):
                await store.append(tenant, "vessel", make_position())
        finally:
            await database.dispose()
