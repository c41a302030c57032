"""
Catalog Context Services.

CatalogService owns record CRUD. It enriches records with a MusicBrainz
tracklist and announces every mutation on the event bus so the read
cache can drop stale pages.
"""

import logging
from decimal import Decimal
from typing import Any, Dict, Optional, Tuple, Union

from .entities import CatalogRecord
from .repositories import CatalogStore
from ..result import RecordNotFound, ValidationError
from ..value_objects import (
    RecordCategory,
    RecordFormat,
    Track,
    parse_category,
    parse_format,
)
from ...events import EventBus, RecordCreated, RecordDeleted, RecordUpdated

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = frozenset({"artist", "album", "price", "qty", "format", "category", "mbid"})


class CatalogService:
    """Service for creating, reading, updating and deleting catalog records."""

    def __init__(
        self,
        store: CatalogStore,
        event_bus: EventBus,
        tracklist_source: Optional[Any] = None,
    ):
        """
        Args:
            store: Catalog store holding the records.
            event_bus: Bus on which mutation events are published.
            tracklist_source: Object with an async ``get_tracklist(mbid)``,
                normally a MusicBrainzAdapter. Without it records keep an
                empty tracklist.
        """
        self.store = store
        self.event_bus = event_bus
        self.tracklist_source = tracklist_source

    async def create_record(
        self,
        *,
        artist: str,
        album: str,
        price: Union[Decimal, str, int, float],
        qty: int,
        format: Union[RecordFormat, str],
        category: Union[RecordCategory, str],
        mbid: Optional[str] = None,
    ) -> CatalogRecord:
        """Create a record, fetching its tracklist when an MBID is given.

        Raises:
            ValidationError: If an attribute is invalid.
            DuplicateRecordError: If a live record has the same artist,
                album and format.
        """
        record = CatalogRecord(
            artist=artist.strip(),
            album=album.strip(),
            price=price,
            qty=qty,
            format=parse_format(format),
            category=parse_category(category),
            mbid=mbid or None,
        )
        tracklist = await self._fetch_tracklist(record.mbid)
        if tracklist:
            record = record.with_changes(tracklist=tracklist)

        stored = await self.store.insert(record)
        logger.info(f"Created record {stored.id}: {stored.artist} - {stored.album}")

        await self.event_bus.publish(RecordCreated(
            record_id=stored.id,
            artist=stored.artist,
            album=stored.album,
        ))
        return stored

    async def get_record(self, record_id: str) -> CatalogRecord:
        """Return a live record.

        Raises:
            RecordNotFound: If the record does not exist or is deleted.
        """
        record = await self.store.find_by_id(record_id)
        if record is None:
            raise RecordNotFound(record_id)
        return record

    async def update_record(self, record_id: str, changes: Dict[str, Any]) -> CatalogRecord:
        """Apply a partial update to a live record.

        The tracklist is re-fetched only when the MBID changes. Setting
        ``mbid`` to None clears the MBID and the tracklist.

        Raises:
            RecordNotFound: If the record does not exist or is deleted.
            ValidationError: If a field is unknown or a value is invalid.
            DuplicateRecordError: If the update collides with another record.
        """
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Cannot update fields: {', '.join(sorted(unknown))}")

        required = sorted(k for k, v in changes.items() if v is None and k != "mbid")
        if required:
            raise ValidationError(f"Fields cannot be cleared: {', '.join(required)}")

        existing = await self.get_record(record_id)

        updates = dict(changes)
        if "mbid" in updates and updates["mbid"] is None:
            updates["tracklist"] = ()
        if "format" in updates:
            updates["format"] = parse_format(updates["format"])
        if "category" in updates:
            updates["category"] = parse_category(updates["category"])
        for name in ("artist", "album"):
            if name in updates:
                updates[name] = updates[name].strip()

        if updates.get("mbid") and updates["mbid"] != existing.mbid:
            updates["tracklist"] = await self._fetch_tracklist(updates["mbid"])

        # Validate against the full entity, then write only the changed columns
        validated = existing.with_changes(**updates)
        columns = {name: getattr(validated, name) for name in updates}
        columns["updated_at"] = validated.updated_at

        stored = await self.store.update(record_id, columns)
        if stored is None:
            raise RecordNotFound(record_id)

        modified = sorted(k for k in updates if getattr(existing, k) != getattr(stored, k))
        logger.info(f"Updated record {record_id}: {', '.join(modified) or 'no changes'}")

        await self.event_bus.publish(RecordUpdated(record_id=record_id, modified_fields=modified))
        return stored

    async def delete_record(self, record_id: str) -> CatalogRecord:
        """Tombstone a record.

        Raises:
            RecordNotFound: If the record does not exist or is already deleted.
        """
        deleted = await self.store.soft_delete(record_id)
        if deleted is None:
            raise RecordNotFound(record_id)
        logger.info(f"Deleted record {record_id}")

        await self.event_bus.publish(RecordDeleted(record_id=record_id))
        return deleted

    async def _fetch_tracklist(self, mbid: Optional[str]) -> Tuple[Track, ...]:
        if not mbid or self.tracklist_source is None:
            return ()
        return tuple(await self.tracklist_source.get_tracklist(mbid))
