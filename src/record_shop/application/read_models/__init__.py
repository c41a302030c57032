"""Read models fed by domain events."""

from .cache_invalidation import CacheInvalidationHandler

__all__ = ["CacheInvalidationHandler"]
