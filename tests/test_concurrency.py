"""End-to-end ordering scenarios through the RecordShop facade."""

import asyncio
from decimal import Decimal

import pytest

from record_shop.app import RecordShop
from record_shop.domain.result import InsufficientStock, PersistenceFailure, RecordNotFound
from record_shop.domain.value_objects import RecordFilter
from record_shop.exceptions import StorageError


@pytest.fixture
def shop(stores):
    catalog, orders = stores
    return RecordShop(catalog, orders)


async def add_record(shop, **overrides):
    fields = {
        "artist": "Miles Davis",
        "album": "Kind of Blue",
        "price": "25.00",
        "qty": 5,
        "format": "Vinyl",
        "category": "Jazz",
    }
    fields.update(overrides)
    return await shop.create_record(**fields)


class TestConcurrentOrders:
    """Test that concurrent orders never oversell."""

    @pytest.mark.asyncio
    async def test_two_orders_for_the_last_units(self, shop):
        record = await add_record(shop, qty=5)

        results = await asyncio.gather(
            shop.create_order(record.id, 3),
            shop.create_order(record.id, 3),
            return_exceptions=True,
        )

        placed = [r for r in results if not isinstance(r, Exception)]
        rejected = [r for r in results if isinstance(r, InsufficientStock)]
        assert len(placed) == 1
        assert len(rejected) == 1
        assert (await shop.get_record(record.id)).qty == 2

    @pytest.mark.asyncio
    async def test_many_small_orders_stop_at_zero(self, shop):
        record = await add_record(shop, qty=10)

        results = await asyncio.gather(
            *(shop.create_order(record.id, 1) for _ in range(25)),
            return_exceptions=True,
        )

        placed = [r for r in results if not isinstance(r, Exception)]
        assert len(placed) == 10
        assert all(isinstance(r, InsufficientStock) for r in results if isinstance(r, Exception))
        assert (await shop.get_record(record.id)).qty == 0
        assert len(await shop.orders_for_record(record.id)) == 10

    @pytest.mark.asyncio
    async def test_stock_conserved(self, shop):
        """Initial stock equals remaining stock plus units in stored orders."""
        record = await add_record(shop, qty=12)

        await asyncio.gather(
            *(shop.create_order(record.id, q) for q in (1, 2, 3, 4, 5, 6)),
            return_exceptions=True,
        )

        ordered = sum(o.quantity for o in await shop.orders_for_record(record.id))
        remaining = (await shop.get_record(record.id)).qty
        assert remaining >= 0
        assert remaining + ordered == 12


class TestOrderScenarios:
    """Test single-order behavior seen by callers."""

    @pytest.mark.asyncio
    async def test_rejected_order_changes_nothing(self, shop):
        record = await add_record(shop, qty=5)

        with pytest.raises(InsufficientStock):
            await shop.create_order(record.id, 10)

        assert (await shop.get_record(record.id)).qty == 5
        assert await shop.orders_for_record(record.id) == []

    @pytest.mark.asyncio
    async def test_exact_stock_then_sold_out(self, shop):
        record = await add_record(shop, qty=5)

        await shop.create_order(record.id, 5)

        assert (await shop.get_record(record.id)).qty == 0
        with pytest.raises(InsufficientStock):
            await shop.create_order(record.id, 1)

    @pytest.mark.asyncio
    async def test_order_for_deleted_record(self, shop):
        record = await add_record(shop)
        await shop.delete_record(record.id)

        with pytest.raises(RecordNotFound):
            await shop.create_order(record.id, 1)

    @pytest.mark.asyncio
    async def test_order_keeps_price_at_time_of_order(self, shop):
        record = await add_record(shop, price="25")
        order = await shop.create_order(record.id, 1)

        await shop.update_record(record.id, {"price": "100"})

        assert (await shop.get_order(order.id)).price == Decimal("25.00")
        later = await shop.create_order(record.id, 1)
        assert later.price == Decimal("100.00")

    @pytest.mark.asyncio
    async def test_failed_persistence_restores_stock(self, shop, monkeypatch):
        record = await add_record(shop, qty=10)

        async def broken_insert(order):
            raise StorageError("disk full")

        monkeypatch.setattr(shop.order_store, "insert", broken_insert)

        with pytest.raises(PersistenceFailure) as exc_info:
            await shop.create_order(record.id, 4)

        assert exc_info.value.compensated is True
        assert (await shop.get_record(record.id)).qty == 10


class TestCachedListing:
    """Test that listings never outlive the mutations they depend on."""

    @pytest.mark.asyncio
    async def test_repeated_listing_is_cached(self, shop):
        await add_record(shop)

        first = await shop.query_records(RecordFilter())
        second = await shop.query_records(RecordFilter())

        assert first.from_cache is False
        assert second.from_cache is True

    @pytest.mark.asyncio
    async def test_record_mutations_invalidate_listing(self, shop):
        record = await add_record(shop, qty=5)
        assert (await shop.list_records()).total == 1

        await add_record(shop, album="Bitches Brew")
        assert (await shop.list_records()).total == 2

        await shop.update_record(record.id, {"album": "Sketches of Spain"})
        albums = [r.album for r in (await shop.list_records()).data]
        assert "Sketches of Spain" in albums

        await shop.delete_record(record.id)
        assert (await shop.list_records()).total == 1

    @pytest.mark.asyncio
    async def test_orders_invalidate_listing(self, shop):
        record = await add_record(shop, qty=5)
        assert (await shop.list_records()).data[0].qty == 5

        await shop.create_order(record.id, 2)

        page = await shop.list_records()
        assert page.data[0].qty == 3

    @pytest.mark.asyncio
    async def test_rejected_order_keeps_cache(self, shop):
        record = await add_record(shop, qty=1)
        await shop.list_records()

        with pytest.raises(InsufficientStock):
            await shop.create_order(record.id, 2)

        result = await shop.query_records()
        assert result.from_cache is True

    @pytest.mark.asyncio
    async def test_page_shape(self, shop):
        for n in range(3):
            await add_record(shop, album=f"Album {n}")

        page = await shop.list_records(RecordFilter(limit=2, offset=1))

        assert page.total == 3
        assert page.limit == 2
        assert page.offset == 1
        assert [r.album for r in page.data] == ["Album 1", "Album 2"]
        assert page.to_dict()["total"] == 3
        assert page.to_dict()["data"][0]["album"] == "Album 1"
