"""Catalog Context Entities.

This module defines the core entity of the Catalog bounded context: a
record offered for sale together with its stock quantity.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Optional, Tuple
from uuid import uuid4

from ..result import ValidationError
from ..value_objects import RecordCategory, RecordFormat, Track, to_price


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, kw_only=True)
class CatalogRecord:
    """
    A record in the catalog.

    Instances are immutable snapshots of the stored state. Stock changes
    go through the store's conditional update, never through the entity.
    A record with ``deleted_at`` set is tombstoned and invisible to reads
    and to stock operations.
    """

    id: str = field(default_factory=lambda: uuid4().hex)
    artist: str
    album: str
    price: Decimal
    qty: int
    format: RecordFormat
    category: RecordCategory
    mbid: Optional[str] = None
    tracklist: Tuple[Track, ...] = ()
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    deleted_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if not self.artist or not self.artist.strip():
            raise ValidationError("artist must not be empty")
        if not self.album or not self.album.strip():
            raise ValidationError("album must not be empty")
        object.__setattr__(self, "price", to_price(self.price))
        if isinstance(self.qty, bool) or not isinstance(self.qty, int):
            raise ValidationError(f"qty must be an integer, got {self.qty!r}")
        if self.qty < 0:
            raise ValidationError(f"qty must not be negative, got {self.qty}")
        object.__setattr__(self, "tracklist", tuple(self.tracklist))

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    @property
    def identity_key(self) -> Tuple[str, str, str]:
        """Natural key a live record must be unique on."""
        return (self.artist.lower(), self.album.lower(), self.format.value)

    def with_changes(self, **changes: Any) -> "CatalogRecord":
        """Return a copy with the given attributes replaced."""
        changes.setdefault("updated_at", utcnow())
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "artist": self.artist,
            "album": self.album,
            "price": str(self.price),
            "qty": self.qty,
            "format": self.format.value,
            "category": self.category.value,
            "mbid": self.mbid,
            "tracklist": [track.to_dict() for track in self.tracklist],
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }
