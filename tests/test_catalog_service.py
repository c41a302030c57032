"""Tests for catalog CRUD through the CatalogService."""

from decimal import Decimal
from unittest.mock import AsyncMock, Mock

import pytest

from record_shop.domain.catalog.services import CatalogService
from record_shop.domain.result import (
    DuplicateRecordError,
    RecordNotFound,
    ValidationError,
)
from record_shop.domain.value_objects import RecordCategory, RecordFormat, Track
from record_shop.events import EventBus, RecordCreated, RecordDeleted, RecordUpdated

MBID = "f5093c06-23e3-404f-aeaa-40f72885ee3a"
TRACKS = (Track(1, "So What", 562000), Track(2, "Freddie Freeloader", 586000))


def new_record_fields(**overrides):
    fields = {
        "artist": "Miles Davis",
        "album": "Kind of Blue",
        "price": "25.00",
        "qty": 5,
        "format": "Vinyl",
        "category": "Jazz",
    }
    fields.update(overrides)
    return fields


@pytest.fixture
def tracklist_source():
    source = Mock()
    source.get_tracklist = AsyncMock(return_value=TRACKS)
    return source


@pytest.fixture
def service(stores, tracklist_source):
    catalog, _ = stores
    return CatalogService(catalog, EventBus(), tracklist_source)


class TestCreateRecord:
    """Test record creation."""

    @pytest.mark.asyncio
    async def test_create_without_mbid(self, service, tracklist_source):
        record = await service.create_record(**new_record_fields())

        assert record.format is RecordFormat.VINYL
        assert record.category is RecordCategory.JAZZ
        assert record.price == Decimal("25.00")
        assert record.tracklist == ()
        tracklist_source.get_tracklist.assert_not_called()
        assert await service.get_record(record.id) == record

    @pytest.mark.asyncio
    async def test_create_fetches_tracklist(self, service, tracklist_source):
        record = await service.create_record(**new_record_fields(mbid=MBID))

        tracklist_source.get_tracklist.assert_awaited_once_with(MBID)
        assert record.tracklist == TRACKS
        assert (await service.get_record(record.id)).tracklist == TRACKS

    @pytest.mark.asyncio
    async def test_create_publishes_event(self, service):
        record = await service.create_record(**new_record_fields())

        events = service.event_bus.get_events(event_type=RecordCreated)
        assert len(events) == 1
        assert events[0].record_id == record.id
        assert events[0].artist == "Miles Davis"

    @pytest.mark.asyncio
    async def test_duplicate_live_record_conflicts(self, service):
        await service.create_record(**new_record_fields())

        with pytest.raises(DuplicateRecordError):
            await service.create_record(**new_record_fields(artist="miles davis", price="30"))

    @pytest.mark.asyncio
    async def test_other_format_is_not_a_duplicate(self, service):
        await service.create_record(**new_record_fields())
        record = await service.create_record(**new_record_fields(format="CD"))
        assert record.format is RecordFormat.CD

    @pytest.mark.asyncio
    async def test_deleted_record_frees_its_identity(self, service):
        first = await service.create_record(**new_record_fields())
        await service.delete_record(first.id)

        second = await service.create_record(**new_record_fields())

        assert second.id != first.id

    @pytest.mark.asyncio
    async def test_invalid_values(self, service):
        with pytest.raises(ValidationError):
            await service.create_record(**new_record_fields(format="8-Track"))
        with pytest.raises(ValidationError):
            await service.create_record(**new_record_fields(qty=-1))


class TestUpdateRecord:
    """Test partial updates."""

    @pytest.mark.asyncio
    async def test_partial_update(self, service):
        record = await service.create_record(**new_record_fields())

        updated = await service.update_record(record.id, {"price": "30", "qty": 8})

        assert updated.price == Decimal("30.00")
        assert updated.qty == 8
        assert updated.album == record.album
        events = service.event_bus.get_events(event_type=RecordUpdated)
        assert events[-1].modified_fields == ["price", "qty"]

    @pytest.mark.asyncio
    async def test_tracklist_refetched_only_when_mbid_changes(self, service, tracklist_source):
        record = await service.create_record(**new_record_fields(mbid=MBID))
        tracklist_source.get_tracklist.reset_mock()

        await service.update_record(record.id, {"mbid": MBID, "qty": 1})
        tracklist_source.get_tracklist.assert_not_called()

        other = "a1b2c3d4-0000-0000-0000-000000000000"
        await service.update_record(record.id, {"mbid": other})
        tracklist_source.get_tracklist.assert_awaited_once_with(other)

    @pytest.mark.asyncio
    async def test_clearing_mbid_drops_tracklist(self, service, tracklist_source):
        record = await service.create_record(**new_record_fields(mbid=MBID))
        assert record.tracklist == TRACKS
        tracklist_source.get_tracklist.reset_mock()

        updated = await service.update_record(record.id, {"mbid": None})

        assert updated.mbid is None
        assert updated.tracklist == ()
        assert await service.get_record(record.id) == updated
        tracklist_source.get_tracklist.assert_not_called()
        events = service.event_bus.get_events(event_type=RecordUpdated)
        assert events[-1].modified_fields == ["mbid", "tracklist"]

    @pytest.mark.asyncio
    async def test_required_field_cannot_be_cleared(self, service):
        record = await service.create_record(**new_record_fields())
        with pytest.raises(ValidationError):
            await service.update_record(record.id, {"artist": None})
        assert (await service.get_record(record.id)).artist == "Miles Davis"

    @pytest.mark.asyncio
    async def test_unknown_field_rejected(self, service):
        record = await service.create_record(**new_record_fields())
        with pytest.raises(ValidationError):
            await service.update_record(record.id, {"deleted_at": None})

    @pytest.mark.asyncio
    async def test_update_into_duplicate_conflicts(self, service):
        await service.create_record(**new_record_fields())
        cd = await service.create_record(**new_record_fields(format="CD"))

        with pytest.raises(DuplicateRecordError):
            await service.update_record(cd.id, {"format": "Vinyl"})

    @pytest.mark.asyncio
    async def test_update_missing_record(self, service):
        with pytest.raises(RecordNotFound):
            await service.update_record("missing", {"qty": 1})


class TestDeleteRecord:
    """Test tombstoning."""

    @pytest.mark.asyncio
    async def test_delete_hides_record(self, service):
        record = await service.create_record(**new_record_fields())

        deleted = await service.delete_record(record.id)

        assert deleted.is_deleted
        with pytest.raises(RecordNotFound):
            await service.get_record(record.id)
        assert len(service.event_bus.get_events(event_type=RecordDeleted)) == 1

    @pytest.mark.asyncio
    async def test_delete_twice(self, service):
        record = await service.create_record(**new_record_fields())
        await service.delete_record(record.id)

        with pytest.raises(RecordNotFound):
            await service.delete_record(record.id)
