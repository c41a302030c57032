"""
Event Bus - Event-driven communication system.

This module provides a lightweight event bus for domain events. Catalog
and stock mutations are published here so that read-side components can
react without the write side knowing about them.
"""

import asyncio
import logging
import weakref
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Type, TypeVar
from uuid import uuid4

logger = logging.getLogger(__name__)


class EventPriority(Enum):
    """Priority levels for events."""
    NORMAL = 1
    CRITICAL = 3


T = TypeVar('T', bound='DomainEvent')


@dataclass(kw_only=True)
class DomainEvent:
    """Base class for all domain events."""
    event_id: str = field(default_factory=lambda: f"evt_{uuid4().hex}")
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    aggregate_id: Optional[str] = None
    aggregate_type: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary for serialization."""
        return {
            "event_type": self.__class__.__name__,
            "event_id": self.event_id,
            "timestamp": self.timestamp.isoformat(),
            "aggregate_id": self.aggregate_id,
            "aggregate_type": self.aggregate_type,
            "metadata": self.metadata,
            "data": self._get_event_data(),
        }

    def _get_event_data(self) -> Dict[str, Any]:
        """Get event-specific data for serialization."""
        return {}


class EventHandler(ABC):
    """Base class for event handlers."""

    @abstractmethod
    async def handle(self, event: DomainEvent) -> None:
        """Handle the event."""
        pass

    @property
    @abstractmethod
    def event_types(self) -> List[Type[DomainEvent]]:
        """Return the list of event types this handler can handle."""
        pass


class EventBus:
    """
    Central event bus for publishing and subscribing to domain events.

    ``publish`` returns only after every subscribed handler has run, so a
    caller that publishes a mutation event can rely on its side effects
    (such as cache invalidation) having happened.
    """

    def __init__(self, max_events_in_memory: int = 1000):
        self._handlers: Dict[Type[DomainEvent], List[weakref.ref]] = {}
        self._event_store: List[DomainEvent] = []
        self._max_events_in_memory = max_events_in_memory

    def subscribe(
        self,
        event_type: Type[T],
        handler: Callable[[T], Any]
    ) -> None:
        """
        Subscribe to events of a specific type.

        Handlers are held by weak reference; the subscriber owns their
        lifetime.
        """
        if event_type not in self._handlers:
            self._handlers[event_type] = []

        if hasattr(handler, '__self__'):
            ref = weakref.WeakMethod(handler)
        else:
            ref = weakref.ref(handler)

        self._handlers[event_type].append(ref)

    def register(self, handler: EventHandler) -> None:
        """Subscribe an EventHandler to every event type it declares."""
        for event_type in handler.event_types:
            self.subscribe(event_type, handler.handle)

    def unsubscribe(
        self,
        event_type: Type[DomainEvent],
        handler: Callable
    ) -> None:
        """Unsubscribe from events."""
        if event_type in self._handlers:
            self._handlers[event_type] = [
                ref for ref in self._handlers[event_type]
                if ref() is not None and ref() != handler
            ]

    async def publish(
        self,
        event: DomainEvent,
        priority: EventPriority = EventPriority.NORMAL
    ) -> None:
        """
        Publish an event to all subscribers.

        Critical events are delivered to handlers one at a time in
        subscription order; normal events are delivered concurrently.
        """
        self._event_store.append(event)
        if len(self._event_store) > self._max_events_in_memory:
            self._event_store.pop(0)

        handlers = []
        for event_type in type(event).__mro__:
            if event_type in self._handlers:
                handlers.extend(
                    ref() for ref in self._handlers[event_type] if ref() is not None
                )

        if not handlers:
            return

        if priority == EventPriority.CRITICAL:
            for handler in handlers:
                await self._safe_handle(handler, event)
        else:
            await asyncio.gather(*(self._safe_handle(h, event) for h in handlers))

    def get_events(
        self,
        aggregate_id: Optional[str] = None,
        event_type: Optional[Type[DomainEvent]] = None
    ) -> List[DomainEvent]:
        """Get events from the store with optional filtering."""
        filtered_events = self._event_store

        if aggregate_id:
            filtered_events = [e for e in filtered_events if e.aggregate_id == aggregate_id]

        if event_type:
            filtered_events = [e for e in filtered_events if isinstance(e, event_type)]

        return filtered_events

    async def _safe_handle(self, handler: Callable, event: DomainEvent) -> None:
        """Run one handler, logging instead of propagating its errors."""
        try:
            result = handler(event)
            if asyncio.iscoroutine(result):
                await result
        except Exception:
            logger.exception(f"Error in event handler {handler} for {type(event).__name__}")
