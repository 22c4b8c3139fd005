"""Event handlers for ledger and price feed events."""

from ..config.logging import get_logger, log_audit_event
from .event_bus import EventBus
from .events import (
    BalanceUpdatedEvent,
    PriceFeedErrorEvent,
    QuotesRefreshedEvent,
    TradeExecutedEvent,
)

logger = get_logger(__name__)


class LedgerAuditHandler:
    """Writes an audit trail entry for every ledger mutation."""

    async def handle_trade_executed(self, event: TradeExecutedEvent):
        log_audit_event(
            f"{event.kind}_executed",
            owner_id=event.owner_id,
            portfolio_id=event.portfolio_id,
            symbol=event.symbol,
            quantity=event.quantity,
            price=event.price,
            gross_total=event.gross_total,
            fee=event.fee,
            cash_balance=event.cash_balance,
            position_closed=event.position_closed,
        )

    async def handle_balance_updated(self, event: BalanceUpdatedEvent):
        log_audit_event(
            "balance_updated",
            owner_id=event.owner_id,
            portfolio_id=event.portfolio_id,
            previous_balance=event.previous_balance,
            new_balance=event.new_balance,
        )


class PriceFeedStatusHandler:
    """Logs price feed refresh outcomes."""

    def __init__(self):
        self.logger = logger.bind(handler="price_feed_status")

    async def handle_quotes_refreshed(self, event: QuotesRefreshedEvent):
        self.logger.debug(
            "Quotes refreshed",
            quote_count=event.quote_count,
        )

    async def handle_feed_error(self, event: PriceFeedErrorEvent):
        self.logger.warning(
            "Serving stale quotes",
            error=event.error_message,
            stale_quote_count=event.stale_quote_count,
        )


_audit_handler = LedgerAuditHandler()
_feed_status_handler = PriceFeedStatusHandler()


def register_default_handlers(event_bus: EventBus) -> None:
    """
    Subscribe the audit and feed status handlers to an event bus.

    Safe to call more than once; each handler is subscribed a single time.
    """
    event_bus.subscribe(TradeExecutedEvent, _audit_handler.handle_trade_executed)
    event_bus.subscribe(BalanceUpdatedEvent, _audit_handler.handle_balance_updated)
    event_bus.subscribe(QuotesRefreshedEvent, _feed_status_handler.handle_quotes_refreshed)
    event_bus.subscribe(PriceFeedErrorEvent, _feed_status_handler.handle_feed_error)
