"""Event-driven architecture components."""

from .event_bus import EventBus, get_event_bus, set_event_bus
from .event_handlers import (
    LedgerAuditHandler,
    PriceFeedStatusHandler,
    register_default_handlers,
)
from .events import (
    BalanceUpdatedEvent,
    DomainEvent,
    PriceFeedErrorEvent,
    QuotesRefreshedEvent,
    TradeExecutedEvent,
)

__all__ = [
    # Events
    "DomainEvent",
    "QuotesRefreshedEvent",
    "PriceFeedErrorEvent",
    "TradeExecutedEvent",
    "BalanceUpdatedEvent",
    # Event Bus
    "EventBus",
    "get_event_bus",
    "set_event_bus",
    # Event Handlers
    "LedgerAuditHandler",
    "PriceFeedStatusHandler",
    "register_default_handlers",
]
