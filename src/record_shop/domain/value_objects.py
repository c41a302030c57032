"""
Domain value objects for Record Shop.

Value objects are immutable objects that are defined by their attributes
rather than identity.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, Optional, Union

from .result import ValidationError

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
CENTS = Decimal("0.01")


class RecordFormat(Enum):
    """Physical or digital format a record is sold in."""
    VINYL = "Vinyl"
    CD = "CD"
    CASSETTE = "Cassette"
    DIGITAL = "Digital"


class RecordCategory(Enum):
    """Catalog category (genre shelf)."""
    ROCK = "Rock"
    JAZZ = "Jazz"
    HIP_HOP = "Hip-Hop"
    CLASSICAL = "Classical"
    POP = "Pop"
    ALTERNATIVE = "Alternative"
    INDIE = "Indie"


def to_price(value: Union[str, int, float, Decimal]) -> Decimal:
    """Convert a raw price to a non-negative Decimal quantised to cents."""
    try:
        # str() first so floats like 19.99 do not carry binary noise
        price = Decimal(str(value)).quantize(CENTS)
    except (InvalidOperation, ValueError) as e:
        raise ValidationError(f"Invalid price: {value!r}") from e
    if not price.is_finite():
        raise ValidationError(f"Invalid price: {value!r}")
    if price < 0:
        raise ValidationError(f"Price must not be negative, got {price}")
    return price


def parse_format(value: Union[str, RecordFormat]) -> RecordFormat:
    if isinstance(value, RecordFormat):
        return value
    try:
        return RecordFormat(value)
    except ValueError as e:
        raise ValidationError(f"Unknown record format: {value!r}") from e


def parse_category(value: Union[str, RecordCategory]) -> RecordCategory:
    if isinstance(value, RecordCategory):
        return value
    try:
        return RecordCategory(value)
    except ValueError as e:
        raise ValidationError(f"Unknown record category: {value!r}") from e


@dataclass(frozen=True, slots=True)
class Track:
    """A single entry of a release tracklist."""

    position: int
    title: str
    duration_ms: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "position": self.position,
            "title": self.title,
            "duration_ms": self.duration_ms,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Track":
        return cls(
            position=int(data["position"]),
            title=data["title"],
            duration_ms=data.get("duration_ms"),
        )


@dataclass(frozen=True, slots=True)
class RecordFilter:
    """
    Filter and pagination bounds for catalog list queries.

    Instances are normalised on construction so that two equivalent
    filters share the same cache key.
    """

    q: Optional[str] = None
    artist: Optional[str] = None
    album: Optional[str] = None
    format: Optional[RecordFormat] = None
    category: Optional[RecordCategory] = None
    limit: int = DEFAULT_PAGE_SIZE
    offset: int = 0
    _key: str = field(default="", init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        for name in ("q", "artist", "album"):
            value = getattr(self, name)
            if value is not None:
                value = value.strip() or None
            object.__setattr__(self, name, value)

        if self.format is not None:
            object.__setattr__(self, "format", parse_format(self.format))
        if self.category is not None:
            object.__setattr__(self, "category", parse_category(self.category))

        limit = self.limit if self.limit is not None else DEFAULT_PAGE_SIZE
        offset = self.offset if self.offset is not None else 0
        object.__setattr__(self, "limit", max(1, min(int(limit), MAX_PAGE_SIZE)))
        object.__setattr__(self, "offset", max(0, int(offset)))
        object.__setattr__(self, "_key", self._build_key())

    @property
    def cache_key(self) -> str:
        """Canonical serialization used to index cached result pages."""
        return self._key

    def _build_key(self) -> str:
        fields = {"limit": self.limit, "offset": self.offset}
        for name in ("q", "artist", "album"):
            value = getattr(self, name)
            if value is not None:
                fields[name] = value
        if self.format is not None:
            fields["format"] = self.format.value
        if self.category is not None:
            fields["category"] = self.category.value
        return "records:" + json.dumps(fields, sort_keys=True, separators=(",", ":"))
