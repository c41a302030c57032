"""Read model handler keeping the record list cache in step with the catalog."""

import logging
from typing import List, Type

from ..queries.base import QueryCache
from ...events.event_bus import DomainEvent, EventHandler
from ...events.domain_events import CatalogChanged

logger = logging.getLogger(__name__)


class CacheInvalidationHandler(EventHandler):
    """Drops every cached record page when the catalog or its stock changes."""

    def __init__(self, cache: QueryCache):
        self.cache = cache

    async def handle(self, event: DomainEvent) -> None:
        await self.cache.invalidate_all()
        logger.debug(f"Record cache invalidated by {type(event).__name__} for {event.aggregate_id}")

    @property
    def event_types(self) -> List[Type[DomainEvent]]:
        return [CatalogChanged]
