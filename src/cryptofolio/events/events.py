"""Domain events for the paper trading ledger and price feed."""

from abc import ABC
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List
from uuid import uuid4


@dataclass
class DomainEvent(ABC):
    """Base class for all domain events."""

    event_id: str = field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    event_version: str = "1.0"
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary for serialization."""
        result = {
            "event_type": self.__class__.__name__,
            "event_id": self.event_id,
            "timestamp": self.timestamp.isoformat(),
            "event_version": self.event_version,
            "metadata": self.metadata,
        }

        for field_name, field_value in self.__dict__.items():
            if field_name not in ["event_id", "timestamp", "event_version", "metadata"]:
                if isinstance(field_value, datetime):
                    result[field_name] = field_value.isoformat()
                else:
                    result[field_name] = field_value

        return result


@dataclass
class QuotesRefreshedEvent(DomainEvent):
    """Event triggered when the price feed replaced its quote set."""

    quote_count: int = 0
    symbols: List[str] = field(default_factory=list)


@dataclass
class PriceFeedErrorEvent(DomainEvent):
    """Event triggered when a price refresh failed and stale quotes are kept."""

    error_message: str = ""
    stale_quote_count: int = 0


@dataclass
class TradeExecutedEvent(DomainEvent):
    """Event triggered when a buy or sell was committed to the ledger."""

    owner_id: str = ""
    portfolio_id: int = 0
    kind: str = ""
    symbol: str = ""
    quantity: float = 0.0
    price: float = 0.0
    gross_total: float = 0.0
    fee: float = 0.0
    cash_balance: float = 0.0
    position_closed: bool = False


@dataclass
class BalanceUpdatedEvent(DomainEvent):
    """Event triggered by a manual cash balance override."""

    owner_id: str = ""
    portfolio_id: int = 0
    previous_balance: float = 0.0
    new_balance: float = 0.0
