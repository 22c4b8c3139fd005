"""Main portfolio service orchestration."""

import math
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.orm import Session

from ...config.logging import get_logger
from ...config.settings import Settings, get_settings
from ...events import (
    BalanceUpdatedEvent,
    EventBus,
    TradeExecutedEvent,
    get_event_bus,
)
from ...exceptions import InvalidAmount, InvalidQuantity, NoSuchPosition
from ..market.feed import PriceFeed, get_price_feed
from .models import (
    PortfolioSnapshot,
    PositionSnapshot,
    SellPreview,
    TradeResult,
    TransactionRecord,
)
from .portfolio_manager import PortfolioManager
from .trade_executor import TradeExecutor
from .valuation import apply_quotes, value_portfolio

logger = get_logger(__name__)


class PortfolioService:
    """Service for paper trading against live market quotes."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        price_feed: Optional[PriceFeed] = None,
        session_factory: Optional[Callable[[], Session]] = None,
        event_bus: Optional[EventBus] = None,
    ):
        self.logger = logger.bind(component="portfolio_service")
        self.settings = settings or get_settings()
        self.price_feed = price_feed or get_price_feed()
        self.event_bus = event_bus or get_event_bus()

        # Initialize component managers
        self.portfolio_manager = PortfolioManager(
            self.settings.starting_balance, session_factory=session_factory
        )
        self.trade_executor = TradeExecutor(
            self.settings.fee_rate,
            quantity_epsilon=self.settings.quantity_epsilon,
            session_factory=session_factory,
        )

    async def get_portfolio(self, owner_id: str) -> PortfolioSnapshot:
        """Load (or lazily create) an owner's portfolio."""
        return await self.portfolio_manager.get_snapshot(owner_id)

    async def get_dashboard(
        self, owner_id: str, transaction_limit: Optional[int] = 20
    ) -> Dict[str, Any]:
        """
        Build the full portfolio view at current market prices.

        Held positions are repriced from the latest quote set before
        valuation; positions without a quote keep their last known price.

        Args:
            owner_id: Portfolio owner identifier
            transaction_limit: Newest N transactions to include

        Returns:
            Dictionary with summary, positions, transactions and market signals
        """
        snapshot = await self.portfolio_manager.get_snapshot(
            owner_id, transaction_limit=transaction_limit
        )
        quotes = self.price_feed.quotes
        positions = apply_quotes(snapshot.positions, quotes)
        valuation = value_portfolio(snapshot.cash_balance, positions, quotes)
        last_updated = self.price_feed.last_updated

        summary = valuation.summary_dict()
        summary["updated_at"] = (
            last_updated or datetime.now(timezone.utc)
        ).isoformat()
        summary["transaction_count"] = snapshot.transaction_count

        return {
            "owner_id": snapshot.owner_id,
            "portfolio_id": snapshot.portfolio_id,
            "summary": summary,
            "positions": [p.to_dict() for p in valuation.positions],
            "transactions": [t.to_dict() for t in snapshot.transactions],
            "best_buy": valuation.best_buy.to_dict() if valuation.best_buy else None,
            "best_sell": valuation.best_sell.to_dict() if valuation.best_sell else None,
            "market": self.price_feed.status(),
        }

    async def buy(
        self, owner_id: str, symbol: str, amount: Optional[float] = None
    ) -> TradeResult:
        """
        Buy an asset for a currency amount at the current quote.

        Args:
            owner_id: Portfolio owner identifier
            symbol: Asset display symbol
            amount: Cash to spend, fee included (configured default if None)

        Returns:
            TradeResult of the committed buy

        Raises:
            FeedUnavailable: No current quote for the symbol
        """
        if amount is None:
            amount = self.settings.default_buy_amount

        snapshot = await self.portfolio_manager.get_snapshot(owner_id, transaction_limit=0)
        quote = self.price_feed.require_quote(symbol)

        result = await self.trade_executor.execute_buy(
            snapshot.portfolio_id,
            symbol=quote.symbol,
            name=quote.name,
            unit_price=quote.price,
            gross_amount=amount,
        )
        await self._publish_trade(snapshot, result)
        return result

    def _find_position(
        self, snapshot: PortfolioSnapshot, symbol: str
    ) -> PositionSnapshot:
        symbol = symbol.upper()
        for position in snapshot.positions:
            if position.symbol == symbol:
                return position
        raise NoSuchPosition(symbol)

    def _sell_price(self, position: PositionSnapshot) -> float:
        """Current quote price, or the position's last known price without one."""
        quote = self.price_feed.get_quote(position.symbol)
        return quote.price if quote else position.current_price

    @staticmethod
    def _sell_quantity(
        position: PositionSnapshot,
        quantity: Optional[float],
        percentage: Optional[float],
    ) -> float:
        if quantity is not None:
            return quantity
        if percentage is None:
            raise InvalidQuantity(position.symbol, 0.0, position.quantity)
        if not math.isfinite(percentage) or percentage <= 0 or percentage > 100:
            raise InvalidAmount(
                "Sell percentage must be greater than 0 and at most 100",
                amount=percentage,
            )
        if percentage == 100:
            return position.quantity
        return position.quantity * percentage / 100

    async def preview_sell(
        self,
        owner_id: str,
        symbol: str,
        quantity: Optional[float] = None,
        percentage: Optional[float] = None,
    ) -> SellPreview:
        """Proceeds of a prospective sell at the current price, without executing it."""
        snapshot = await self.portfolio_manager.get_snapshot(owner_id, transaction_limit=0)
        position = self._find_position(snapshot, symbol)
        return self.trade_executor.preview_sell(
            position,
            self._sell_quantity(position, quantity, percentage),
            self._sell_price(position),
        )

    async def sell(
        self,
        owner_id: str,
        symbol: str,
        quantity: Optional[float] = None,
        percentage: Optional[float] = None,
    ) -> TradeResult:
        """
        Sell a quantity, or a percentage, of a held position.

        Args:
            owner_id: Portfolio owner identifier
            symbol: Asset display symbol
            quantity: Units to sell
            percentage: Share of the holding to sell, used when quantity is None

        Returns:
            TradeResult of the committed sell
        """
        snapshot = await self.portfolio_manager.get_snapshot(owner_id, transaction_limit=0)
        position = self._find_position(snapshot, symbol)

        result = await self.trade_executor.execute_sell(
            snapshot.portfolio_id,
            symbol=position.symbol,
            name=position.name,
            quantity=self._sell_quantity(position, quantity, percentage),
            unit_price=self._sell_price(position),
        )
        await self._publish_trade(snapshot, result)
        return result

    async def update_balance(self, owner_id: str, new_balance: float) -> float:
        """
        Overwrite an owner's cash balance.

        Returns:
            The new cash balance
        """
        snapshot = await self.portfolio_manager.get_snapshot(owner_id, transaction_limit=0)
        previous_balance = await self.trade_executor.update_balance(
            snapshot.portfolio_id, new_balance
        )

        await self.event_bus.publish(
            BalanceUpdatedEvent(
                owner_id=owner_id,
                portfolio_id=snapshot.portfolio_id,
                previous_balance=previous_balance,
                new_balance=new_balance,
            )
        )
        return new_balance

    async def list_transactions(
        self, owner_id: str, limit: Optional[int] = None
    ) -> List[TransactionRecord]:
        return await self.portfolio_manager.list_transactions(owner_id, limit=limit)

    async def refresh_prices(self) -> Dict[str, Any]:
        """
        Refresh the quote set and copy new prices onto every held position.

        Positions are only repriced after a successful refresh.
        """
        refreshed = await self.price_feed.refresh()
        positions_updated = 0
        if refreshed:
            positions_updated = await self.trade_executor.refresh_position_prices(
                self.price_feed.quotes
            )

        return {
            "refreshed": refreshed,
            "positions_updated": positions_updated,
            **self.price_feed.status(),
        }

    async def _publish_trade(
        self, snapshot: PortfolioSnapshot, result: TradeResult
    ) -> None:
        transaction = result.transaction
        await self.event_bus.publish(
            TradeExecutedEvent(
                owner_id=snapshot.owner_id,
                portfolio_id=snapshot.portfolio_id,
                kind=transaction.kind,
                symbol=transaction.symbol,
                quantity=transaction.quantity,
                price=transaction.price,
                gross_total=transaction.gross_total,
                fee=transaction.fee,
                cash_balance=result.cash_balance,
                position_closed=result.position_closed,
            )
        )


@lru_cache()
def get_portfolio_service() -> PortfolioService:
    """Get the process-wide portfolio service."""
    return PortfolioService()
