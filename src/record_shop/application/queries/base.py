"""Base classes for CQRS query pattern."""

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Generic, List, Optional, TypeVar
from uuid import uuid4

logger = logging.getLogger(__name__)

# Type variables for generic query handling
Q = TypeVar("Q", bound="Query")
R = TypeVar("R")

DEFAULT_TTL_SECONDS = 60
DEFAULT_MAX_ENTRIES = 100


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class Query:
    """Base query class with metadata."""

    query_id: str = field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = field(default_factory=_utcnow)
    cache_ttl_seconds: Optional[int] = None  # None: use the cache default


class QueryHandler(ABC, Generic[Q, R]):
    """Abstract base class for query handlers."""

    @abstractmethod
    async def handle(self, query: Q) -> R:
        """Handle the query and return results."""
        pass

    @abstractmethod
    def can_handle(self, query_type: type) -> bool:
        """Check if this handler can handle the given query type."""
        pass

    def get_cache_key(self, query: Q) -> Optional[str]:
        """Generate a cache key for the query. Queries without a key are never cached."""
        return None


@dataclass(frozen=True, slots=True)
class QueryResult(Generic[R]):
    """Result wrapper for query responses."""

    data: Optional[R] = None
    success: bool = True
    query_id: str = ""
    errors: List[str] = field(default_factory=list)
    error: Optional[Exception] = None
    from_cache: bool = False
    execution_time_ms: Optional[float] = None
    cached_at: Optional[datetime] = None

    def unwrap(self) -> R:
        """Return the data or raise the error that made the query fail."""
        if not self.success:
            if self.error is not None:
                raise self.error
            raise RuntimeError("; ".join(self.errors) or "Query failed")
        return self.data


class QueryBus:
    """Mediates queries to appropriate handlers with caching support."""

    def __init__(self, cache: Optional["QueryCache"] = None):
        self._handlers: Dict[type, QueryHandler] = {}
        self._cache = cache

    def register(self, query_type: type, handler: QueryHandler) -> None:
        """Register a handler for a query type."""
        self._handlers[query_type] = handler

    async def dispatch(self, query: Query) -> QueryResult:
        """Dispatch a query to its registered handler."""
        query_type = type(query)
        start_time = _utcnow()

        if query_type not in self._handlers:
            return QueryResult(
                success=False,
                query_id=query.query_id,
                errors=[f"No handler registered for query type: {query_type.__name__}"]
            )

        handler = self._handlers[query_type]

        # Check cache first
        cache_key = None
        generation = None
        if self._cache:
            cache_key = handler.get_cache_key(query)
            if cache_key:
                cached = await self._cache.get(cache_key)
                if cached:
                    return QueryResult(
                        data=cached.data,
                        query_id=query.query_id,
                        from_cache=True,
                        cached_at=cached.cached_at,
                        execution_time_ms=self._elapsed_ms(start_time)
                    )
                # Taken before the read so an invalidation during it wins
                generation = self._cache.generation

        try:
            result_data = await handler.handle(query)
        except Exception as e:
            logger.error(f"{query_type.__name__} failed: {e}")
            return QueryResult(
                success=False,
                query_id=query.query_id,
                errors=[str(e)],
                error=e,
                execution_time_ms=self._elapsed_ms(start_time)
            )

        if self._cache and cache_key:
            await self._cache.put(
                cache_key,
                result_data,
                ttl_seconds=query.cache_ttl_seconds,
                generation=generation,
            )

        return QueryResult(
            data=result_data,
            success=True,
            query_id=query.query_id,
            execution_time_ms=self._elapsed_ms(start_time)
        )

    @staticmethod
    def _elapsed_ms(start_time: datetime) -> float:
        return (_utcnow() - start_time).total_seconds() * 1000


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """A published cache entry. Entries are never mutated, only replaced."""

    data: Any
    cached_at: datetime
    expires_at: datetime

    def is_expired(self) -> bool:
        """Check if the cache entry has expired."""
        return _utcnow() >= self.expires_at


class QueryCache:
    """
    In-memory query cache with TTL, bounded size and blanket invalidation.

    Keys are canonical query serializations. Writers only replace or clear
    entries, so readers never observe a half-written one. Every
    ``invalidate_all`` bumps ``generation``; a ``put`` computed under an
    older generation is dropped instead of re-publishing stale data.
    """

    def __init__(
        self,
        default_ttl_seconds: int = DEFAULT_TTL_SECONDS,
        max_entries: int = DEFAULT_MAX_ENTRIES,
    ):
        self.default_ttl_seconds = default_ttl_seconds
        self.max_entries = max_entries
        self._cache: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self._generation = 0
        self._hits = 0
        self._misses = 0
        self._invalidations = 0

    @property
    def generation(self) -> int:
        return self._generation

    async def get(self, key: str) -> Optional[CacheEntry]:
        """Get cached entry if not expired."""
        with self._lock:
            entry = self._cache.get(key)
            if entry and not entry.is_expired():
                self._hits += 1
                logger.debug(f"Cache hit: {key}")
                return entry
            if entry:
                # Remove expired entry
                del self._cache[key]
            self._misses += 1
        logger.debug(f"Cache miss: {key}")
        return None

    async def put(
        self,
        key: str,
        data: Any,
        ttl_seconds: Optional[int] = None,
        generation: Optional[int] = None,
    ) -> bool:
        """Cache data with TTL. Returns False if the put was dropped as stale."""
        ttl = self.default_ttl_seconds if ttl_seconds is None else ttl_seconds
        now = _utcnow()
        entry = CacheEntry(data=data, cached_at=now, expires_at=now + timedelta(seconds=ttl))

        with self._lock:
            if generation is not None and generation != self._generation:
                logger.debug(f"Dropping stale cache put: {key}")
                return False
            self._cache.pop(key, None)
            while len(self._cache) >= self.max_entries:
                # Dicts keep insertion order: the first key is the oldest
                del self._cache[next(iter(self._cache))]
            self._cache[key] = entry
        return True

    async def invalidate_all(self) -> None:
        """Drop every entry."""
        with self._lock:
            self._cache.clear()
            self._generation += 1
            self._invalidations += 1
        logger.debug("Query cache invalidated")

    def get_stats(self) -> Dict[str, int]:
        """Get cache statistics."""
        with self._lock:
            return {
                "entries": len(self._cache),
                "hits": self._hits,
                "misses": self._misses,
                "invalidations": self._invalidations,
                "generation": self._generation,
            }
