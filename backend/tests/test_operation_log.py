"""Tests for the operation log."""

from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from vesseltrack.errors import EventLogWriteError
from vesseltrack.events import (
    EventType,
    LogEntry,
    LogFilters,
    OperationLogStore,
    describe_geofence_entry,
    describe_position_update,
    describe_status_change,
    describe_vessel_created,
)
from vesseltrack.fleet import VesselRepository

BASE_TIME = datetime(2025, 12, 12, 20, 0, 0, tzinfo=timezone.utc)


def entry(event_type=EventType.POSITION_UPDATE, vessel_id=None, minutes=0, **kwargs):
    return LogEntry(
        event_type=event_type,
        description=kwargs.pop("description", f"{event_type.value} event"),
        vessel_id=vessel_id,
        timestamp=BASE_TIME + timedelta(minutes=minutes),
        **kwargs,
    )


class TestDescriptions:
    def test_position_update(self):
        assert (
            describe_position_update(-24.481873, -44.217957, 12.5)
            == "Vessel position updated: -24.481873, -44.217957 (Speed: 12.5 kn)"
        )
        assert describe_position_update(1.0, 2.0, None) == (
            "Vessel position updated: 1.000000, 2.000000"
        )

    def test_vessel_created(self):
        assert (
            describe_vessel_created("Nordic Star", "710005865", "IMO9074729")
            == 'New vessel "Nordic Star" was created (MMSI: 710005865) (IMO: IMO9074729)'
        )

    def test_geofence_and_status(self):
        assert describe_geofence_entry("Nordic Star", "Santos", "PORT") == (
            "Nordic Star entered Santos (PORT)"
        )
        assert describe_status_change("Nordic Star", "AT_SEA", "IN_PORT") == (
            "Nordic Star status changed from AT_SEA to IN_PORT"
        )


class TestLogEntry:
    def test_blank_description_rejected(self):
        with pytest.raises(ValueError):
            LogEntry(event_type=EventType.STATUS_CHANGE, description="  ")

    def test_event_type_coerced(self):
        assert LogEntry(event_type="GEOFENCE_ENTRY", description="x").event_type is (
            EventType.GEOFENCE_ENTRY
        )


class TestAppend:
    @pytest.mark.asyncio
    async def test_append_returns_id(self, database, tenant):
        vessel = await VesselRepository(database).create(tenant, "Nordic Star", mmsi="710005865")
        store = OperationLogStore(database)

        log_id = await store.append(tenant, entry(vessel_id=vessel.id, position_lat=1.5))

        assert isinstance(log_id, int)
        [logged] = await store.query(tenant)
        assert logged.id == log_id
        assert logged.tenant_id == tenant.value
        assert logged.position_lat == pytest.approx(1.5)

    @pytest.mark.asyncio
    async def test_unknown_vessel_is_dropped(self, database, tenant):
        store = OperationLogStore(database)

        assert await store.append(tenant, entry(vessel_id="no-such-vessel")) is None
        assert await store.query(tenant) == []

    @pytest.mark.asyncio
    async def test_other_tenants_vessel_is_dropped(self, database, tenant, other_tenant):
        vessel = await VesselRepository(database).create(tenant, "Nordic Star", mmsi="710005865")
        store = OperationLogStore(database)

        assert await store.append(other_tenant, entry(vessel_id=vessel.id)) is None
        assert await store.vessel_exists(tenant, vessel.id)
        assert not await store.vessel_exists(other_tenant, vessel.id)

    @pytest.mark.asyncio
    async def test_entry_without_vessel_is_kept(self, database, tenant):
        store = OperationLogStore(database)
        assert await store.append(tenant, entry()) is not None

    @pytest.mark.asyncio
    async def test_write_failure_is_wrapped(self, database, tenant):
        store = OperationLogStore(database)
        with patch(
            "vesseltrack.events.log.OperationLogStore._vessel_exists",
            side_effect=OperationalError("SELECT", {}, Exception("disk I/O error")),
        ):
            with pytest.raises(EventLogWriteError):
                await store.append(tenant, entry(vessel_id="v"))

    @pytest.mark.asyncio
    async def test_dropped_connection_is_wrapped(self, database, tenant):
        store = OperationLogStore(database)
        with patch(
            "vesseltrack.events.log.OperationLogStore._vessel_exists",
            side_effect=ConnectionResetError("connection reset by peer"),
        ):
            with pytest.raises(EventLogWriteError) as exc_info:
                await store.append(tenant, entry(vessel_id="v"))
        assert isinstance(exc_info.value.__cause__, ConnectionResetError)


class TestQuery:
    @pytest.mark.asyncio
    async def test_newest_first(self, database, tenant):
        store = OperationLogStore(database)
        for minutes in (0, 10, 5):
            await store.append(tenant, entry(minutes=minutes, description=f"at {minutes}"))

        logged = await store.query(tenant)

        assert [e.description for e in logged] == ["at 10", "at 5", "at 0"]

    @pytest.mark.asyncio
    async def test_filters(self, database, tenant):
        repo = VesselRepository(database)
        first = await repo.create(tenant, "First", mmsi="710005865")
        second = await repo.create(tenant, "Second", mmsi="710005866")
        store = OperationLogStore(database)
        await store.append(tenant, entry(EventType.POSITION_UPDATE, first.id))
        await store.append(tenant, entry(EventType.STATUS_CHANGE, first.id, minutes=1))
        await store.append(tenant, entry(EventType.POSITION_UPDATE, second.id, minutes=2))

        by_vessel = await store.query(tenant, LogFilters(vessel_id=first.id))
        by_type = await store.query(tenant, LogFilters(event_type=EventType.POSITION_UPDATE))

        assert {e.vessel_id for e in by_vessel} == {first.id}
        assert len(by_vessel) == 2
        assert {e.event_type for e in by_type} == {"POSITION_UPDATE"}
        assert len(by_type) == 2

    @pytest.mark.asyncio
    async def test_limit_and_offset(self, database, tenant):
        store = OperationLogStore(database)
        for minutes in range(5):
            await store.append(tenant, entry(minutes=minutes, description=f"at {minutes}"))

        page = await store.query(tenant, limit=2, offset=1)

        assert [e.description for e in page] == ["at 3", "at 2"]

    @pytest.mark.asyncio
    async def test_tenant_isolation(self, database, tenant, other_tenant):
        store = OperationLogStore(database)
        await store.append(tenant, entry())

        assert await store.query(other_tenant) == []
        assert len(await store.query(tenant)) == 1
