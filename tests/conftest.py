"""Shared fixtures for the record shop tests."""

import tempfile
from decimal import Decimal
from pathlib import Path

import pytest

from record_shop.domain.catalog.entities import CatalogRecord
from record_shop.domain.value_objects import RecordCategory, RecordFormat
from record_shop.infrastructure.repositories import (
    InMemoryCatalogStore,
    InMemoryOrderStore,
    SQLiteCatalogStore,
    SQLiteDatabase,
    SQLiteOrderStore,
)


def make_record(**overrides) -> CatalogRecord:
    """Build a valid record, overriding any attribute."""
    fields = {
        "artist": "Miles Davis",
        "album": "Kind of Blue",
        "price": Decimal("25.00"),
        "qty": 5,
        "format": RecordFormat.VINYL,
        "category": RecordCategory.JAZZ,
    }
    fields.update(overrides)
    return CatalogRecord(**fields)


@pytest.fixture
def temp_dir():
    with tempfile.TemporaryDirectory() as tmp:
        yield Path(tmp)


@pytest.fixture
def database(temp_dir):
    db = SQLiteDatabase(temp_dir / "shop.db")
    db.initialize()
    return db


@pytest.fixture(params=["memory", "sqlite"])
def stores(request, temp_dir):
    """A (catalog_store, order_store) pair for each backend."""
    if request.param == "memory":
        return InMemoryCatalogStore(), InMemoryOrderStore()
    db = SQLiteDatabase(temp_dir / "shop.db")
    db.initialize()
    return SQLiteCatalogStore(db), SQLiteOrderStore(db)


@pytest.fixture
def record_factory():
    return make_record
