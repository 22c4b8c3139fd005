"""Event bus for managing and dispatching domain events.

Events are published both from request handlers on the API loop and from
the price refresh job, which runs its own loop on a scheduler thread, so
bookkeeping is guarded by a lock.
"""

import asyncio
import inspect
import threading
from collections import defaultdict, deque
from datetime import datetime, timezone
from typing import Any, Callable, Deque, Dict, List, Optional, Type

from ..config.logging import get_logger
from .events import DomainEvent

logger = get_logger(__name__)

MAX_HISTORY_SIZE = 1000


class EventBus:
    """Event bus for publishing and subscribing to domain events."""

    def __init__(self, name: str = "default", max_history_size: int = MAX_HISTORY_SIZE):
        self.name = name
        self.logger = logger.bind(event_bus=name)

        self._lock = threading.Lock()
        self._handlers: Dict[Type[DomainEvent], List[Callable]] = defaultdict(list)
        self._event_history: Deque[Dict[str, Any]] = deque(maxlen=max_history_size)

        self._stats = {
            "events_published": 0,
            "handlers_executed": 0,
            "errors_count": 0,
            "last_event_time": None,
        }

    def subscribe(self, event_type: Type[DomainEvent], handler: Callable) -> bool:
        """
        Subscribe a handler to an event type.

        Args:
            event_type: Type of event to subscribe to
            handler: Handler function (sync or async)

        Returns:
            False if the handler was already subscribed to this type
        """
        with self._lock:
            if handler in self._handlers[event_type]:
                return False
            self._handlers[event_type].append(handler)
            total = len(self._handlers[event_type])

        self.logger.info(
            "Event handler subscribed",
            event_type=event_type.__name__,
            handler=getattr(handler, "__qualname__", repr(handler)),
            total_handlers=total,
        )
        return True

    async def publish(self, event: DomainEvent) -> Dict[str, Any]:
        """
        Publish an event and wait for all subscribed handlers.

        Async handlers run on the publisher's loop, sync handlers in a worker
        thread. Handler failures are logged and counted; they never propagate
        to the publisher.

        Returns:
            Dictionary with publication results
        """
        event_type = type(event)

        with self._lock:
            self._stats["events_published"] += 1
            self._stats["last_event_time"] = datetime.now(timezone.utc)
            self._event_history.append(self._summarize(event))
            handlers = list(self._handlers.get(event_type, []))

        results = await asyncio.gather(
            *(self._invoke(handler, event) for handler in handlers),
            return_exceptions=True,
        )

        failed = [
            (handler, result)
            for handler, result in zip(handlers, results)
            if isinstance(result, Exception)
        ]
        for handler, error in failed:
            self.logger.error(
                "Handler execution failed",
                event_type=event_type.__name__,
                event_id=event.event_id,
                handler=getattr(handler, "__qualname__", repr(handler)),
                error=str(error),
            )

        with self._lock:
            self._stats["handlers_executed"] += len(handlers)
            self._stats["errors_count"] += len(failed)

        return {
            "event_id": event.event_id,
            "handlers_executed": len(handlers),
            "successful_handlers": len(handlers) - len(failed),
            "failed_handlers": len(failed),
        }

    @staticmethod
    async def _invoke(handler: Callable, event: DomainEvent) -> Any:
        if inspect.iscoroutinefunction(handler):
            return await handler(event)
        return await asyncio.to_thread(handler, event)

    @staticmethod
    def _summarize(event: DomainEvent) -> Dict[str, Any]:
        summary = {
            "event_type": type(event).__name__,
            "event_id": event.event_id,
            "timestamp": event.timestamp.isoformat(),
        }
        owner_id = getattr(event, "owner_id", None)
        if owner_id is not None:
            summary["owner_id"] = owner_id
        return summary

    def get_statistics(self) -> Dict[str, Any]:
        """Get event bus statistics."""
        with self._lock:
            handler_counts = {
                event_type.__name__: len(handlers)
                for event_type, handlers in self._handlers.items()
                if handlers
            }
            stats = dict(self._stats)
            history_size = len(self._event_history)

        last_event_time = stats["last_event_time"]
        stats["last_event_time"] = last_event_time.isoformat() if last_event_time else None

        return {
            **stats,
            "registered_event_types": len(handler_counts),
            "handlers_by_event_type": handler_counts,
            "history_size": history_size,
        }

    def get_event_history(
        self, limit: int = 100, owner_id: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """Get recent event summaries, oldest first, optionally for one owner."""
        with self._lock:
            history = list(self._event_history)

        if owner_id is not None:
            history = [entry for entry in history if entry.get("owner_id") == owner_id]
        return history[-limit:] if limit > 0 else []


_global_event_bus: Optional[EventBus] = None


def get_event_bus() -> EventBus:
    """Get or create the global event bus instance."""
    global _global_event_bus

    if _global_event_bus is None:
        _global_event_bus = EventBus("global")

    return _global_event_bus


def set_event_bus(event_bus: Optional[EventBus]):
    """Set the global event bus instance."""
    global _global_event_bus
    _global_event_bus = event_bus
