"""Trade execution logic for buy and sell operations."""

import math
from typing import Callable, Iterable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...config.logging import get_logger
from ...exceptions import (
    InsufficientFunds,
    InvalidAmount,
    InvalidQuantity,
    NoSuchPosition,
    PortfolioNotFound,
    StoreUnavailable,
    TradeValidationError,
)
from ...ormdb.database import get_session_factory
from ...ormdb.repositories import (
    PortfolioRepository,
    PositionRepository,
    TransactionRepository,
)
from ..market.models import Quote
from .models import (
    BUY,
    SELL,
    PositionSnapshot,
    SellPreview,
    TradeResult,
    TransactionRecord,
)

logger = get_logger(__name__)


def _is_positive(value: float) -> bool:
    """True for finite values above zero; NaN and infinities fail."""
    return math.isfinite(value) and value > 0


class TradeExecutor:
    """
    Applies buys, sells and balance changes to the ledger.

    Every operation runs in its own session: all writes of a trade (position
    upsert or removal, transaction append, cash adjustment) are committed
    together or rolled back together.
    """

    def __init__(
        self,
        fee_rate: float,
        quantity_epsilon: float = 1e-9,
        session_factory: Optional[Callable[[], Session]] = None,
    ):
        self.logger = logger.bind(component="trade_executor")
        self.fee_rate = fee_rate
        self.quantity_epsilon = quantity_epsilon
        self.session_factory = session_factory

    def _open_session(self) -> Session:
        return (self.session_factory or get_session_factory())()

    def fee_for(self, gross_amount: float) -> float:
        return gross_amount * self.fee_rate

    @staticmethod
    def _check_unit_price(unit_price: float) -> None:
        if not _is_positive(unit_price):
            raise InvalidAmount("Unit price must be positive", amount=unit_price)

    async def execute_buy(
        self,
        portfolio_id: int,
        symbol: str,
        name: str,
        unit_price: float,
        gross_amount: float,
    ) -> TradeResult:
        """
        Spend a currency amount on an asset.

        The fee is taken out of the spend, so the acquired quantity is
        ``(gross_amount - fee) / unit_price`` while the cost basis grows by
        the full ``gross_amount``.

        Args:
            portfolio_id: Portfolio to trade in
            symbol: Asset display symbol
            name: Asset display name
            unit_price: Execution price per unit
            gross_amount: Cash to spend, fee included

        Returns:
            TradeResult with the new transaction, position and balance

        Raises:
            InvalidAmount: Non-positive or non-finite amount or price, or an
                amount too small to buy more than epsilon units
            InsufficientFunds: Amount exceeds the cash balance
        """
        symbol = symbol.upper()
        if not _is_positive(gross_amount):
            raise InvalidAmount("Buy amount must be positive", amount=gross_amount)
        self._check_unit_price(unit_price)

        session = self._open_session()

        try:
            portfolio_repo = PortfolioRepository(session)
            position_repo = PositionRepository(session)
            transaction_repo = TransactionRepository(session)

            portfolio = portfolio_repo.get_by_id(portfolio_id)
            if not portfolio:
                raise PortfolioNotFound(str(portfolio_id))

            if gross_amount > portfolio.cash_balance:
                raise InsufficientFunds(gross_amount, portfolio.cash_balance)

            fee = self.fee_for(gross_amount)
            quantity = (gross_amount - fee) / unit_price
            if quantity <= self.quantity_epsilon:
                raise InvalidAmount(
                    "Buy amount is too small to acquire a tradable quantity",
                    amount=gross_amount,
                )

            position = position_repo.get(portfolio_id, symbol)
            if position:
                new_quantity = position.quantity + quantity
                new_total_invested = position.total_invested + gross_amount
                position.quantity = new_quantity
                position.total_invested = new_total_invested
                position.average_cost = new_total_invested / new_quantity
                position.current_price = unit_price
                if name:
                    position.name = name
            else:
                position = position_repo.create(
                    portfolio_id=portfolio_id,
                    symbol=symbol,
                    name=name,
                    quantity=quantity,
                    average_cost=unit_price,
                    current_price=unit_price,
                    total_invested=gross_amount,
                )

            transaction = transaction_repo.append(
                portfolio_id=portfolio_id,
                kind=BUY,
                symbol=symbol,
                name=name,
                quantity=quantity,
                price=unit_price,
                gross_total=gross_amount,
                fee=fee,
            )

            portfolio.cash_balance = portfolio.cash_balance - gross_amount
            session.flush()
            session.commit()

            self.logger.info(
                "Executed buy",
                portfolio_id=portfolio_id,
                symbol=symbol,
                quantity=quantity,
                price=unit_price,
                gross_amount=gross_amount,
                fee=fee,
            )

            return TradeResult(
                transaction=TransactionRecord.from_orm(transaction),
                position=PositionSnapshot.from_orm(position),
                cash_balance=float(portfolio.cash_balance),
                net_amount=gross_amount - fee,
            )

        except (TradeValidationError, PortfolioNotFound):
            session.rollback()
            raise
        except SQLAlchemyError as e:
            session.rollback()
            self.logger.error("Failed to execute buy", error=str(e), exc_info=True)
            raise StoreUnavailable("buy", str(e)) from e
        finally:
            session.close()

    def _resolve_sell_quantity(self, position, quantity: float) -> float:
        """Validate a sell quantity against the held quantity.

        A request that would leave no more than epsilon units, including one
        within epsilon above the holding, is a sale of the whole holding, so
        the proceeds always cover every unit removed from the ledger.
        """
        if not _is_positive(quantity):
            raise InvalidQuantity(position.symbol, quantity, position.quantity)
        if quantity > position.quantity + self.quantity_epsilon:
            raise InvalidQuantity(position.symbol, quantity, position.quantity)
        if position.quantity - quantity <= self.quantity_epsilon:
            return position.quantity
        return quantity

    def preview_sell(
        self, position: PositionSnapshot, quantity: float, unit_price: float
    ) -> SellPreview:
        """Compute sell proceeds without touching the ledger."""
        self._check_unit_price(unit_price)
        quantity = self._resolve_sell_quantity(position, quantity)

        gross_amount = quantity * unit_price
        fee = self.fee_for(gross_amount)
        remaining = position.quantity - quantity

        return SellPreview(
            symbol=position.symbol,
            quantity=quantity,
            price=unit_price,
            gross_amount=gross_amount,
            fee=fee,
            net_amount=gross_amount - fee,
            remaining_quantity=remaining if remaining > self.quantity_epsilon else 0.0,
        )

    async def execute_sell(
        self,
        portfolio_id: int,
        symbol: str,
        name: str,
        quantity: float,
        unit_price: float,
    ) -> TradeResult:
        """
        Sell units of a held asset.

        A partial sale reduces the cost basis in proportion to the quantity
        sold and leaves the average cost unchanged. A sale leaving no more
        than epsilon units removes the position.

        Args:
            portfolio_id: Portfolio to trade in
            symbol: Asset display symbol
            name: Asset display name (recorded on the transaction)
            quantity: Units to sell
            unit_price: Execution price per unit

        Returns:
            TradeResult with the new transaction, remaining position and balance

        Raises:
            NoSuchPosition: Portfolio holds no position in the symbol
            InvalidQuantity: Quantity not positive or above the holding
            InvalidAmount: Non-positive price
        """
        symbol = symbol.upper()
        self._check_unit_price(unit_price)

        session = self._open_session()

        try:
            portfolio_repo = PortfolioRepository(session)
            position_repo = PositionRepository(session)
            transaction_repo = TransactionRepository(session)

            portfolio = portfolio_repo.get_by_id(portfolio_id)
            if not portfolio:
                raise PortfolioNotFound(str(portfolio_id))

            position = position_repo.get(portfolio_id, symbol)
            if not position:
                raise NoSuchPosition(symbol)

            quantity = self._resolve_sell_quantity(position, quantity)

            gross_amount = quantity * unit_price
            fee = self.fee_for(gross_amount)
            net_amount = gross_amount - fee

            new_quantity = position.quantity - quantity
            if new_quantity <= self.quantity_epsilon:
                # Full liquidation
                position_repo.delete(position)
                remaining = None
            else:
                sold_fraction = quantity / position.quantity
                position.total_invested = position.total_invested * (1 - sold_fraction)
                position.quantity = new_quantity
                position.current_price = unit_price
                remaining = position

            transaction = transaction_repo.append(
                portfolio_id=portfolio_id,
                kind=SELL,
                symbol=symbol,
                name=name or position.name,
                quantity=quantity,
                price=unit_price,
                gross_total=gross_amount,
                fee=fee,
            )

            portfolio.cash_balance = portfolio.cash_balance + net_amount
            session.flush()
            session.commit()

            self.logger.info(
                "Executed sell",
                portfolio_id=portfolio_id,
                symbol=symbol,
                quantity=quantity,
                price=unit_price,
                gross_amount=gross_amount,
                fee=fee,
                position_closed=remaining is None,
            )

            return TradeResult(
                transaction=TransactionRecord.from_orm(transaction),
                position=PositionSnapshot.from_orm(remaining) if remaining else None,
                cash_balance=float(portfolio.cash_balance),
                net_amount=net_amount,
            )

        except (TradeValidationError, PortfolioNotFound):
            session.rollback()
            raise
        except SQLAlchemyError as e:
            session.rollback()
            self.logger.error("Failed to execute sell", error=str(e), exc_info=True)
            raise StoreUnavailable("sell", str(e)) from e
        finally:
            session.close()

    async def update_balance(self, portfolio_id: int, new_balance: float) -> float:
        """
        Overwrite the cash balance.

        Returns:
            The previous cash balance

        Raises:
            InvalidAmount: Negative or non-finite balance
        """
        if not math.isfinite(new_balance):
            raise InvalidAmount("Balance must be a finite number", amount=new_balance)
        if new_balance < 0:
            raise InvalidAmount("Balance cannot be negative", amount=new_balance)

        session = self._open_session()

        try:
            portfolio_repo = PortfolioRepository(session)
            portfolio = portfolio_repo.get_by_id(portfolio_id)
            if not portfolio:
                raise PortfolioNotFound(str(portfolio_id))

            previous_balance = float(portfolio.cash_balance)
            portfolio_repo.set_cash_balance(portfolio, new_balance)
            session.commit()

            self.logger.info(
                "Updated cash balance",
                portfolio_id=portfolio_id,
                previous_balance=previous_balance,
                new_balance=new_balance,
            )
            return previous_balance

        except PortfolioNotFound:
            session.rollback()
            raise
        except SQLAlchemyError as e:
            session.rollback()
            self.logger.error("Failed to update balance", error=str(e), exc_info=True)
            raise StoreUnavailable("balance update", str(e)) from e
        finally:
            session.close()

    async def refresh_position_prices(
        self, quotes: Iterable[Quote], portfolio_id: Optional[int] = None
    ) -> int:
        """
        Copy quote prices onto matching positions.

        Unmatched positions keep their last known price; quantity and cost
        basis are untouched.

        Args:
            quotes: Current quote set
            portfolio_id: Restrict to one portfolio (all portfolios if None)

        Returns:
            Number of positions repriced
        """
        quotes = list(quotes)
        if not quotes:
            return 0

        session = self._open_session()

        try:
            position_repo = PositionRepository(session)
            if portfolio_id is None:
                portfolio_ids = [p.id for p in PortfolioRepository(session).get_all()]
            else:
                portfolio_ids = [portfolio_id]

            updated = 0
            for pid in portfolio_ids:
                for quote in quotes:
                    updated += position_repo.update_current_price(
                        pid, quote.symbol, quote.price
                    )

            session.commit()
            self.logger.debug("Position prices refreshed", positions_updated=updated)
            return updated

        except SQLAlchemyError as e:
            session.rollback()
            self.logger.error(
                "Failed to refresh position prices", error=str(e), exc_info=True
            )
            raise StoreUnavailable("price refresh", str(e)) from e
        finally:
            session.close()
