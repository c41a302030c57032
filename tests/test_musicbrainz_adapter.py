"""Tests for the MusicBrainz tracklist adapter."""

from unittest.mock import AsyncMock, patch

import aiohttp
import pytest

from record_shop.domain.value_objects import Track
from record_shop.exceptions import ExternalServiceError
from record_shop.infrastructure.external import MusicBrainzAdapter

MBID = "f5093c06-23e3-404f-aeaa-40f72885ee3a"

RELEASE = {
    "id": MBID,
    "title": "Kind of Blue",
    "artist-credit": [
        {"name": "Miles Davis", "artist": {"name": "Miles Davis"}},
        {"artist": {"name": "John Coltrane"}},
    ],
    "media": [
        {"tracks": [
            {"position": 1, "recording": {"title": "So What", "length": 562000}},
            {"position": "2", "recording": {"title": "Freddie Freeloader"}},
        ]},
        {"tracks": [
            {"position": None, "title": "Blue in Green", "length": 337000},
            {"position": 2, "recording": {}},
        ]},
    ],
}


@pytest.fixture
def adapter():
    return MusicBrainzAdapter(base_url="https://mb.test/ws/2/", rate_limit=1000)


class TestGetRelease:
    """Test release lookups."""

    @pytest.mark.asyncio
    async def test_release_is_parsed(self, adapter):
        with patch.object(adapter, "_request", AsyncMock(return_value=(200, RELEASE))) as request:
            release = await adapter.get_release(MBID)

        request.assert_awaited_once_with(
            f"https://mb.test/ws/2/release/{MBID}",
            {"inc": "recordings+artist-credits+media", "fmt": "json"},
        )
        assert release.id == MBID
        assert release.title == "Kind of Blue"
        assert release.artist == "Miles Davis, John Coltrane"
        assert release.tracklist == (
            Track(1, "So What", 562000),
            Track(2, "Freddie Freeloader", None),
            Track(3, "Blue in Green", 337000),
            Track(2, "Unknown Track", None),
        )

    @pytest.mark.asyncio
    async def test_unknown_release_returns_none(self, adapter, caplog):
        with patch.object(adapter, "_request", AsyncMock(return_value=(404, None))):
            release = await adapter.get_release(MBID)

        assert release is None
        assert f"MBID not found: {MBID}" in caplog.text

    @pytest.mark.asyncio
    async def test_server_error_raises(self, adapter):
        with patch.object(adapter, "_request", AsyncMock(return_value=(503, None))):
            with pytest.raises(ExternalServiceError, match="503"):
                await adapter.get_release(MBID)

    @pytest.mark.asyncio
    async def test_malformed_document_returns_none(self, adapter):
        with patch.object(adapter, "_request", AsyncMock(return_value=(200, ["not", "a", "release"]))):
            assert await adapter.get_release(MBID) is None

    @pytest.mark.asyncio
    async def test_releases_are_cached(self, adapter):
        with patch.object(adapter, "_request", AsyncMock(return_value=(200, RELEASE))) as request:
            await adapter.get_release(MBID)
            await adapter.get_release(MBID)

        assert request.await_count == 1

    @pytest.mark.asyncio
    async def test_transport_errors_raise(self, adapter):
        session = patch(
            "record_shop.infrastructure.external.musicbrainz_adapter.aiohttp.ClientSession",
            side_effect=aiohttp.ClientConnectionError("refused"),
        )
        with session:
            with pytest.raises(ExternalServiceError, match="refused"):
                await adapter.get_release(MBID)


class TestGetTracklist:
    """Test the tracklist source used by the catalog."""

    @pytest.mark.asyncio
    async def test_no_mbid(self, adapter):
        with patch.object(adapter, "_request", AsyncMock()) as request:
            assert await adapter.get_tracklist(None) == ()
        request.assert_not_called()

    @pytest.mark.asyncio
    async def test_unknown_release_gives_empty_tracklist(self, adapter):
        with patch.object(adapter, "_request", AsyncMock(return_value=(404, None))):
            assert await adapter.get_tracklist(MBID) == ()

    @pytest.mark.asyncio
    async def test_known_release(self, adapter):
        with patch.object(adapter, "_request", AsyncMock(return_value=(200, RELEASE))):
            tracklist = await adapter.get_tracklist(MBID)

        assert [t.title for t in tracklist][:2] == ["So What", "Freddie Freeloader"]
