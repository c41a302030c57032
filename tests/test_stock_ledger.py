"""Tests for the stock ledger."""

import pytest

from record_shop.domain.ordering.stock_ledger import StockLedger
from record_shop.domain.result import InsufficientStock, RecordNotFound, ValidationError
from record_shop.infrastructure.repositories import InMemoryCatalogStore


class TestReserve:
    """Test stock reservation against every store backend."""

    @pytest.mark.asyncio
    async def test_reserve_decrements(self, stores, record_factory):
        catalog, _ = stores
        record = await catalog.insert(record_factory(qty=5))
        ledger = StockLedger(catalog)

        result = await ledger.reserve(record.id, 3)

        assert result.is_success()
        assert result.value().qty == 2
        assert (await catalog.find_by_id(record.id)).qty == 2

    @pytest.mark.asyncio
    async def test_reserve_exact_stock(self, stores, record_factory):
        catalog, _ = stores
        record = await catalog.insert(record_factory(qty=4))

        result = await StockLedger(catalog).reserve(record.id, 4)

        assert result.value().qty == 0

    @pytest.mark.asyncio
    async def test_insufficient_stock_is_rejected_without_change(self, stores, record_factory):
        catalog, _ = stores
        record = await catalog.insert(record_factory(qty=5))

        result = await StockLedger(catalog).reserve(record.id, 10)

        assert result.is_failure()
        error = result.error()
        assert isinstance(error, InsufficientStock)
        assert error.requested == 10
        assert error.available == 5
        assert (await catalog.find_by_id(record.id)).qty == 5

    @pytest.mark.asyncio
    async def test_unknown_record(self, stores):
        catalog, _ = stores

        result = await StockLedger(catalog).reserve("missing", 1)

        assert isinstance(result.error(), RecordNotFound)

    @pytest.mark.asyncio
    async def test_deleted_record_cannot_be_reserved(self, stores, record_factory):
        catalog, _ = stores
        record = await catalog.insert(record_factory(qty=5))
        await catalog.soft_delete(record.id)

        result = await StockLedger(catalog).reserve(record.id, 1)

        assert isinstance(result.error(), RecordNotFound)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("quantity", [0, -2, True, 1.5])
    async def test_invalid_quantity(self, quantity):
        ledger = StockLedger(InMemoryCatalogStore())
        with pytest.raises(ValidationError):
            await ledger.reserve("r1", quantity)


class TestRelease:
    """Test returning reserved stock."""

    @pytest.mark.asyncio
    async def test_release_restores_stock(self, stores, record_factory):
        catalog, _ = stores
        record = await catalog.insert(record_factory(qty=10))
        ledger = StockLedger(catalog)

        await ledger.reserve(record.id, 4)
        result = await ledger.release(record.id, 4)

        assert result.is_success()
        assert (await catalog.find_by_id(record.id)).qty == 10

    @pytest.mark.asyncio
    async def test_release_on_deleted_record_fails(self, stores, record_factory):
        catalog, _ = stores
        record = await catalog.insert(record_factory(qty=10))
        ledger = StockLedger(catalog)
        await ledger.reserve(record.id, 4)
        await catalog.soft_delete(record.id)

        result = await ledger.release(record.id, 4)

        assert isinstance(result.error(), RecordNotFound)
