"""
MusicBrainz Adapter - Anti-Corruption Layer for MusicBrainz API.

This adapter isolates the catalog from the MusicBrainz web service and
turns a release lookup into a domain tracklist.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import aiohttp

from ...domain.value_objects import Track
from ...exceptions import ExternalServiceError

logger = logging.getLogger(__name__)

RELEASE_INCLUDES = "recordings+artist-credits+media"
DEFAULT_TRACK_TITLE = "Unknown Track"


@dataclass(frozen=True)
class MusicBrainzRelease:
    """Release data relevant to the catalog."""
    id: str
    title: str
    artist: str
    tracklist: Tuple[Track, ...] = field(default_factory=tuple)


class MusicBrainzAdapter:
    """
    Adapter for the MusicBrainz web service API.

    Implements rate limiting, a small lookup cache and the mapping from
    the JSON release document to domain types.
    """

    def __init__(
        self,
        base_url: str = "https://musicbrainz.org/ws/2",
        user_agent: str = "RecordShop/1.0 (records@example.com)",
        rate_limit: float = 1.0,  # requests per second
        timeout: int = 10
    ):
        self.base_url = base_url.rstrip("/")
        self.user_agent = user_agent
        self.rate_limit = rate_limit
        self.timeout = timeout
        self._last_request_time = 0.0
        self._rate_lock = asyncio.Lock()
        self._cache: Dict[str, MusicBrainzRelease] = {}

    async def get_release(self, mbid: str) -> Optional[MusicBrainzRelease]:
        """
        Fetch a release by its MusicBrainz ID.

        Returns None when MusicBrainz does not know the release.

        Raises:
            ExternalServiceError: On any other HTTP or transport failure.
        """
        if mbid in self._cache:
            return self._cache[mbid]

        url = f"{self.base_url}/release/{mbid}"
        params = {"inc": RELEASE_INCLUDES, "fmt": "json"}
        logger.debug(f"Fetching release from MusicBrainz: {url}")

        status, data = await self._request(url, params)

        if status == 404:
            logger.warning(f"MBID not found: {mbid}")
            return None
        if status != 200:
            logger.error(f"MusicBrainz returned HTTP {status} for release {mbid}")
            raise ExternalServiceError(f"MusicBrainz returned HTTP {status} for release {mbid}")
        if not isinstance(data, dict) or ("id" not in data and "title" not in data):
            logger.warning(f"Invalid response structure for MBID: {mbid}")
            return None

        release = self.to_release(data, mbid)
        self._cache[mbid] = release
        return release

    async def get_tracklist(self, mbid: Optional[str]) -> Tuple[Track, ...]:
        """Tracklist for a release, or an empty tracklist when unknown."""
        if not mbid:
            return ()
        release = await self.get_release(mbid)
        return release.tracklist if release else ()

    async def _request(self, url: str, params: Dict[str, str]) -> Tuple[int, Any]:
        """Perform a rate-limited GET and return ``(status, json_or_none)``."""
        await self._rate_limit()

        try:
            async with aiohttp.ClientSession(
                headers={"User-Agent": self.user_agent, "Accept": "application/json"},
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            ) as session:
                async with session.get(url, params=params) as response:
                    if response.status != 200:
                        return response.status, None
                    return response.status, await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Failed to fetch release from MusicBrainz: {e}")
            raise ExternalServiceError(f"MusicBrainz request failed: {e}") from e

    async def _rate_limit(self) -> None:
        """Apply rate limiting."""
        async with self._rate_lock:
            current = time.monotonic()
            min_interval = 1.0 / self.rate_limit
            elapsed = current - self._last_request_time
            if elapsed < min_interval:
                await asyncio.sleep(min_interval - elapsed)
            self._last_request_time = time.monotonic()

    def to_release(self, data: Dict[str, Any], mbid: str) -> MusicBrainzRelease:
        """Convert a MusicBrainz release document to a MusicBrainzRelease."""
        return MusicBrainzRelease(
            id=data.get("id") or mbid,
            title=data.get("title") or "",
            artist=self._extract_artist(data),
            tracklist=tuple(self._extract_tracklist(data)),
        )

    def _extract_artist(self, data: Dict[str, Any]) -> str:
        credits = data.get("artist-credit") or []
        names = []
        for credit in credits:
            artist = credit.get("artist") or {}
            names.append(credit.get("name") or artist.get("name") or "")
        return ", ".join(name for name in names if name)

    def _extract_tracklist(self, data: Dict[str, Any]) -> List[Track]:
        tracks: List[Track] = []

        for medium in data.get("media") or []:
            for track in medium.get("tracks") or []:
                recording = track.get("recording") or {}
                title = recording.get("title") or track.get("title") or DEFAULT_TRACK_TITLE
                length = recording.get("length") or track.get("length")

                tracks.append(Track(
                    position=self._parse_position(track.get("position"), len(tracks) + 1),
                    title=title,
                    duration_ms=int(length) if length else None,
                ))

        return tracks

    @staticmethod
    def _parse_position(raw: Any, fallback: int) -> int:
        try:
            position = int(raw)
        except (TypeError, ValueError):
            return fallback
        return position if position > 0 else fallback
