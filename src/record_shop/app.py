"""Application facade wiring the catalog, ordering and read side together."""

import logging
from typing import Any, Dict, List, Optional

from .application.queries.base import QueryBus, QueryCache, QueryResult
from .application.queries.catalog.record_queries import (
    ListRecordsHandler,
    ListRecordsQuery,
    RecordPage,
)
from .application.read_models.cache_invalidation import CacheInvalidationHandler
from .domain.catalog.entities import CatalogRecord
from .domain.catalog.repositories import CatalogStore
from .domain.catalog.services import CatalogService
from .domain.ordering.coordinator import OrderCoordinator
from .domain.ordering.entities import Order
from .domain.ordering.repositories import OrderStore
from .domain.ordering.stock_ledger import StockLedger
from .domain.value_objects import RecordFilter
from .events.event_bus import EventBus
from .infrastructure.external.musicbrainz_adapter import MusicBrainzAdapter
from .infrastructure.repositories import (
    SQLiteCatalogStore,
    SQLiteDatabase,
    SQLiteOrderStore,
)
from .models.config import Config

logger = logging.getLogger(__name__)


class RecordShop:
    """Main entry point for catalog management, ordering and listing."""

    def __init__(
        self,
        catalog_store: CatalogStore,
        order_store: OrderStore,
        *,
        tracklist_source: Optional[Any] = None,
        cache: Optional[QueryCache] = None,
        event_bus: Optional[EventBus] = None,
    ):
        self.catalog_store = catalog_store
        self.order_store = order_store
        self.event_bus = event_bus or EventBus()
        self.cache = cache or QueryCache()

        # The bus only holds handlers weakly
        self._cache_handler = CacheInvalidationHandler(self.cache)
        self.event_bus.register(self._cache_handler)

        self.catalog = CatalogService(catalog_store, self.event_bus, tracklist_source)
        self.ledger = StockLedger(catalog_store)
        self.coordinator = OrderCoordinator(self.ledger, order_store, self.event_bus)

        self.query_bus = QueryBus(self.cache)
        self.query_bus.register(ListRecordsQuery, ListRecordsHandler(catalog_store))

    @classmethod
    def from_config(cls, config: Config) -> "RecordShop":
        """Build a shop backed by the configured SQLite database."""
        database = SQLiteDatabase(config.database.path, busy_timeout=config.database.busy_timeout)
        database.initialize()

        tracklist_source = None
        if config.musicbrainz.enabled:
            tracklist_source = MusicBrainzAdapter(
                base_url=config.musicbrainz.base_url,
                user_agent=config.musicbrainz.user_agent,
                rate_limit=config.musicbrainz.rate_limit,
                timeout=config.musicbrainz.timeout,
            )

        logger.info(f"Record shop using database {config.database.path}")
        return cls(
            SQLiteCatalogStore(database),
            SQLiteOrderStore(database),
            tracklist_source=tracklist_source,
            cache=QueryCache(
                default_ttl_seconds=config.cache.ttl_seconds,
                max_entries=config.cache.max_entries,
            ),
        )

    # Catalog

    async def create_record(self, **fields: Any) -> CatalogRecord:
        return await self.catalog.create_record(**fields)

    async def get_record(self, record_id: str) -> CatalogRecord:
        return await self.catalog.get_record(record_id)

    async def update_record(self, record_id: str, changes: Dict[str, Any]) -> CatalogRecord:
        return await self.catalog.update_record(record_id, changes)

    async def delete_record(self, record_id: str) -> CatalogRecord:
        return await self.catalog.delete_record(record_id)

    async def list_records(self, record_filter: Optional[RecordFilter] = None) -> RecordPage:
        """One page of live records; served from the cache when possible."""
        result = await self.query_records(record_filter)
        return result.unwrap()

    async def query_records(self, record_filter: Optional[RecordFilter] = None) -> QueryResult:
        """Like ``list_records`` but returns the QueryResult with cache metadata."""
        query = ListRecordsQuery(record_filter=record_filter or RecordFilter())
        return await self.query_bus.dispatch(query)

    # Ordering

    async def create_order(self, record_id: str, quantity: int) -> Order:
        """
        Reserve stock and store an order.

        Raises:
            InsufficientStock: Not enough stock; nothing was changed.
            RecordNotFound: No live record with that id.
            PersistenceFailure: The order could not be stored; stock was
                released again unless ``compensated`` is False.
        """
        result = await self.coordinator.create(record_id, quantity)
        return result.or_else_raise()

    async def get_order(self, order_id: str) -> Optional[Order]:
        return await self.order_store.find_by_id(order_id)

    async def orders_for_record(self, record_id: str) -> List[Order]:
        return await self.order_store.find_by_record(record_id)

    async def close(self) -> None:
        """Wait for in-flight compensations to finish."""
        await self.coordinator.wait_for_compensations()
