"""Tests for trade execution against the ledger."""

import math
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from cryptofolio.exceptions import (
    InsufficientFunds,
    InvalidAmount,
    InvalidQuantity,
    NoSuchPosition,
    PortfolioNotFound,
    StoreUnavailable,
)
from cryptofolio.ormdb.models import Portfolio, Position, Transaction
from cryptofolio.ormdb.repositories import PortfolioRepository
from cryptofolio.services.portfolio.models import BUY, SELL
from cryptofolio.services.portfolio.trade_executor import TradeExecutor

FEE_RATE = 0.001


@pytest.fixture
def executor(session_factory):
    return TradeExecutor(FEE_RATE, quantity_epsilon=1e-9, session_factory=session_factory)


@pytest.fixture
def portfolio_id(session_factory):
    session = session_factory()
    try:
        portfolio = PortfolioRepository(session).get_or_create("alice", 100.0)
        return portfolio.id
    finally:
        session.close()


def load_ledger(session_factory, portfolio_id):
    """Read back cash, positions and transactions for assertions."""
    session = session_factory()
    try:
        portfolio = session.get(Portfolio, portfolio_id)
        positions = {
            p.symbol: p
            for p in session.query(Position).filter_by(portfolio_id=portfolio_id)
        }
        transactions = (
            session.query(Transaction)
            .filter_by(portfolio_id=portfolio_id)
            .order_by(Transaction.id)
            .all()
        )
        return portfolio.cash_balance, positions, transactions
    finally:
        session.close()


class TestExecuteBuy:
    """Test buy execution."""

    @pytest.mark.asyncio
    async def test_buy_opens_position(self, executor, portfolio_id, session_factory):
        result = await executor.execute_buy(portfolio_id, "btc", "Bitcoin", 50000.0, 10.0)

        expected_quantity = (10.0 - 10.0 * FEE_RATE) / 50000.0
        assert result.cash_balance == pytest.approx(90.0)
        assert result.net_amount == pytest.approx(9.99)
        assert result.position.symbol == "BTC"
        assert result.position.quantity == pytest.approx(expected_quantity)
        assert result.position.average_cost == pytest.approx(50000.0)
        assert result.position.total_invested == pytest.approx(10.0)
        assert result.transaction.kind == BUY
        assert result.transaction.fee == pytest.approx(0.01)
        assert result.transaction.gross_total == pytest.approx(10.0)

        cash, positions, transactions = load_ledger(session_factory, portfolio_id)
        assert cash == pytest.approx(90.0)
        assert positions["BTC"].current_price == 50000.0
        assert len(transactions) == 1

    @pytest.mark.asyncio
    async def test_buy_merges_into_existing_position(
        self, executor, portfolio_id, session_factory
    ):
        await executor.execute_buy(portfolio_id, "BTC", "Bitcoin", 50000.0, 10.0)
        result = await executor.execute_buy(portfolio_id, "BTC", "Bitcoin", 60000.0, 10.0)

        q1 = 9.99 / 50000.0
        q2 = 9.99 / 60000.0
        assert result.position.quantity == pytest.approx(q1 + q2)
        assert result.position.total_invested == pytest.approx(20.0)
        assert result.position.average_cost == pytest.approx(20.0 / (q1 + q2))
        assert result.position.current_price == 60000.0

        cash, positions, transactions = load_ledger(session_factory, portfolio_id)
        assert cash == pytest.approx(80.0)
        assert list(positions) == ["BTC"]
        assert len(transactions) == 2

    @pytest.mark.asyncio
    async def test_buy_entire_balance(self, executor, portfolio_id):
        result = await executor.execute_buy(portfolio_id, "ETH", "Ethereum", 3000.0, 100.0)

        assert result.cash_balance == pytest.approx(0.0)

    @pytest.mark.asyncio
    async def test_insufficient_funds_changes_nothing(
        self, executor, portfolio_id, session_factory
    ):
        with pytest.raises(InsufficientFunds) as exc_info:
            await executor.execute_buy(portfolio_id, "BTC", "Bitcoin", 50000.0, 150.0)

        assert exc_info.value.status_code == 400
        cash, positions, transactions = load_ledger(session_factory, portfolio_id)
        assert cash == 100.0
        assert positions == {}
        assert transactions == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", [0.0, -5.0])
    async def test_non_positive_amount_rejected(self, executor, portfolio_id, amount):
        with pytest.raises(InvalidAmount):
            await executor.execute_buy(portfolio_id, "BTC", "Bitcoin", 50000.0, amount)

    @pytest.mark.asyncio
    async def test_non_positive_price_rejected(self, executor, portfolio_id):
        with pytest.raises(InvalidAmount):
            await executor.execute_buy(portfolio_id, "BTC", "Bitcoin", 0.0, 10.0)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "price,amount",
        [
            (50000.0, math.nan),
            (50000.0, math.inf),
            (math.nan, 10.0),
            (math.inf, 10.0),
        ],
    )
    async def test_non_finite_inputs_rejected(
        self, executor, portfolio_id, session_factory, price, amount
    ):
        with pytest.raises(InvalidAmount) as exc_info:
            await executor.execute_buy(portfolio_id, "BTC", "Bitcoin", price, amount)

        assert exc_info.value.status_code == 422
        cash, positions, transactions = load_ledger(session_factory, portfolio_id)
        assert cash == 100.0
        assert positions == {}
        assert transactions == []

    @pytest.mark.asyncio
    async def test_dust_amount_rejected(self, executor, portfolio_id, session_factory):
        # 0.00004 * 0.999 / 50000 is below one epsilon of BTC
        with pytest.raises(InvalidAmount):
            await executor.execute_buy(portfolio_id, "BTC", "Bitcoin", 50000.0, 0.00004)

        cash, positions, _ = load_ledger(session_factory, portfolio_id)
        assert cash == 100.0
        assert positions == {}

    @pytest.mark.asyncio
    async def test_unknown_portfolio(self, executor, isolated_db):
        with pytest.raises(PortfolioNotFound):
            await executor.execute_buy(999, "BTC", "Bitcoin", 50000.0, 10.0)

    @pytest.mark.asyncio
    async def test_store_failure_rolls_back(
        self, executor, portfolio_id, session_factory
    ):
        with patch(
            "cryptofolio.services.portfolio.trade_executor.TransactionRepository.append",
            side_effect=OperationalError("INSERT", {}, Exception("disk full")),
        ):
            with pytest.raises(StoreUnavailable) as exc_info:
                await executor.execute_buy(portfolio_id, "BTC", "Bitcoin", 50000.0, 10.0)

        assert exc_info.value.status_code == 503
        cash, positions, transactions = load_ledger(session_factory, portfolio_id)
        assert cash == 100.0
        assert positions == {}
        assert transactions == []


class TestExecuteSell:
    """Test sell execution."""

    @pytest.mark.asyncio
    async def test_partial_sell_scales_cost_basis(
        self, executor, portfolio_id, session_factory
    ):
        bought = await executor.execute_buy(portfolio_id, "BTC", "Bitcoin", 50000.0, 10.0)
        held = bought.position.quantity

        result = await executor.execute_sell(
            portfolio_id, "BTC", "Bitcoin", held / 2, 60000.0
        )

        gross = held / 2 * 60000.0
        assert result.transaction.kind == SELL
        assert result.transaction.gross_total == pytest.approx(gross)
        assert result.transaction.fee == pytest.approx(gross * FEE_RATE)
        assert result.net_amount == pytest.approx(gross * (1 - FEE_RATE))
        assert result.cash_balance == pytest.approx(90.0 + gross * (1 - FEE_RATE))
        assert result.position.quantity == pytest.approx(held / 2)
        assert result.position.total_invested == pytest.approx(5.0)
        assert result.position.average_cost == pytest.approx(50000.0)
        assert result.position.current_price == 60000.0
        assert not result.position_closed

    @pytest.mark.asyncio
    async def test_full_sell_removes_position(
        self, executor, portfolio_id, session_factory
    ):
        bought = await executor.execute_buy(portfolio_id, "BTC", "Bitcoin", 50000.0, 10.0)

        result = await executor.execute_sell(
            portfolio_id, "BTC", "Bitcoin", bought.position.quantity, 50000.0
        )

        assert result.position is None
        assert result.position_closed
        cash, positions, transactions = load_ledger(session_factory, portfolio_id)
        assert positions == {}
        assert [t.kind for t in transactions] == [BUY, SELL]
        # Round trip at the same price loses both fees
        assert cash == pytest.approx(100.0 - 0.01 - 9.99 * FEE_RATE)

    @pytest.mark.asyncio
    async def test_sell_within_epsilon_of_holding_is_full_sale(
        self, executor, portfolio_id, session_factory
    ):
        bought = await executor.execute_buy(portfolio_id, "BTC", "Bitcoin", 50000.0, 10.0)

        result = await executor.execute_sell(
            portfolio_id, "BTC", "Bitcoin", bought.position.quantity + 5e-10, 50000.0
        )

        assert result.position_closed
        assert result.transaction.quantity == pytest.approx(bought.position.quantity)

    @pytest.mark.asyncio
    async def test_sell_more_than_held(self, executor, portfolio_id, session_factory):
        bought = await executor.execute_buy(portfolio_id, "BTC", "Bitcoin", 50000.0, 10.0)

        with pytest.raises(InvalidQuantity) as exc_info:
            await executor.execute_sell(
                portfolio_id, "BTC", "Bitcoin", bought.position.quantity * 2, 50000.0
            )

        assert exc_info.value.status_code == 422
        cash, positions, transactions = load_ledger(session_factory, portfolio_id)
        assert cash == pytest.approx(90.0)
        assert positions["BTC"].quantity == pytest.approx(bought.position.quantity)
        assert len(transactions) == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("quantity", [0.0, -1.0, math.nan, math.inf])
    async def test_sell_non_positive_quantity(self, executor, portfolio_id, quantity):
        await executor.execute_buy(portfolio_id, "BTC", "Bitcoin", 50000.0, 10.0)

        with pytest.raises(InvalidQuantity):
            await executor.execute_sell(portfolio_id, "BTC", "Bitcoin", quantity, 50000.0)

    @pytest.mark.asyncio
    async def test_sell_without_position(self, executor, portfolio_id):
        with pytest.raises(NoSuchPosition) as exc_info:
            await executor.execute_sell(portfolio_id, "DOGE", "Dogecoin", 1.0, 0.1)

        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_sell_leaving_dust_sells_whole_holding(
        self, executor, portfolio_id, session_factory
    ):
        bought = await executor.execute_buy(portfolio_id, "BTC", "Bitcoin", 50000.0, 10.0)
        held = bought.position.quantity

        result = await executor.execute_sell(
            portfolio_id, "BTC", "Bitcoin", held - 5e-10, 50000.0
        )

        assert result.position_closed
        assert result.transaction.quantity == held
        assert result.cash_balance == pytest.approx(90.0 + held * 50000.0 * (1 - FEE_RATE))

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "fraction,failing_write",
        [
            (0.5, "TransactionRepository.append"),
            (1.0, "TransactionRepository.append"),
            (1.0, "PositionRepository.delete"),
        ],
    )
    async def test_store_failure_rolls_back(
        self, executor, portfolio_id, session_factory, fraction, failing_write
    ):
        bought = await executor.execute_buy(portfolio_id, "BTC", "Bitcoin", 50000.0, 10.0)
        held = bought.position.quantity

        with patch(
            f"cryptofolio.services.portfolio.trade_executor.{failing_write}",
            side_effect=OperationalError("WRITE", {}, Exception("disk full")),
        ):
            with pytest.raises(StoreUnavailable):
                await executor.execute_sell(
                    portfolio_id, "BTC", "Bitcoin", held * fraction, 60000.0
                )

        cash, positions, transactions = load_ledger(session_factory, portfolio_id)
        assert cash == pytest.approx(90.0)
        assert positions["BTC"].quantity == held
        assert positions["BTC"].total_invested == pytest.approx(10.0)
        assert positions["BTC"].current_price == 50000.0
        assert [t.kind for t in transactions] == [BUY]


class TestPreviewSell:
    """Test sell previews."""

    @pytest.mark.asyncio
    async def test_preview_matches_execution_without_writing(
        self, executor, portfolio_id, session_factory
    ):
        bought = await executor.execute_buy(portfolio_id, "BTC", "Bitcoin", 50000.0, 10.0)
        held = bought.position.quantity

        preview = executor.preview_sell(bought.position, held / 4, 60000.0)

        gross = held / 4 * 60000.0
        assert preview.gross_amount == pytest.approx(gross)
        assert preview.fee == pytest.approx(gross * FEE_RATE)
        assert preview.net_amount == pytest.approx(gross * (1 - FEE_RATE))
        assert preview.remaining_quantity == pytest.approx(held * 0.75)

        cash, _, transactions = load_ledger(session_factory, portfolio_id)
        assert cash == pytest.approx(90.0)
        assert len(transactions) == 1

    @pytest.mark.asyncio
    async def test_preview_rejects_excess_quantity(self, executor, portfolio_id):
        bought = await executor.execute_buy(portfolio_id, "BTC", "Bitcoin", 50000.0, 10.0)

        with pytest.raises(InvalidQuantity):
            executor.preview_sell(bought.position, 1.0, 60000.0)


class TestBalanceAndPrices:
    """Test balance overrides and position repricing."""

    @pytest.mark.asyncio
    async def test_update_balance_returns_previous(
        self, executor, portfolio_id, session_factory
    ):
        previous = await executor.update_balance(portfolio_id, 250.0)

        assert previous == 100.0
        cash, _, _ = load_ledger(session_factory, portfolio_id)
        assert cash == 250.0

    @pytest.mark.asyncio
    async def test_update_balance_to_zero(self, executor, portfolio_id, session_factory):
        await executor.update_balance(portfolio_id, 0.0)

        cash, _, _ = load_ledger(session_factory, portfolio_id)
        assert cash == 0.0

    @pytest.mark.asyncio
    async def test_negative_balance_rejected(
        self, executor, portfolio_id, session_factory
    ):
        with pytest.raises(InvalidAmount):
            await executor.update_balance(portfolio_id, -1.0)

        cash, _, _ = load_ledger(session_factory, portfolio_id)
        assert cash == 100.0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("balance", [math.nan, math.inf])
    async def test_non_finite_balance_rejected(
        self, executor, portfolio_id, session_factory, balance
    ):
        with pytest.raises(InvalidAmount):
            await executor.update_balance(portfolio_id, balance)

        cash, _, _ = load_ledger(session_factory, portfolio_id)
        assert cash == 100.0

    @pytest.mark.asyncio
    async def test_refresh_position_prices(
        self, executor, portfolio_id, session_factory, quote_factory
    ):
        bought = await executor.execute_buy(portfolio_id, "BTC", "Bitcoin", 50000.0, 10.0)
        await executor.execute_buy(portfolio_id, "ADA", "Cardano", 0.5, 10.0)

        updated = await executor.refresh_position_prices(
            [quote_factory("BTC", 65000.0), quote_factory("ETH", 3000.0)]
        )

        assert updated == 1
        _, positions, _ = load_ledger(session_factory, portfolio_id)
        assert positions["BTC"].current_price == 65000.0
        assert positions["BTC"].quantity == pytest.approx(bought.position.quantity)
        assert positions["BTC"].total_invested == pytest.approx(10.0)
        assert positions["ADA"].current_price == 0.5

    @pytest.mark.asyncio
    async def test_refresh_with_no_quotes(self, executor, portfolio_id):
        assert await executor.refresh_position_prices([]) == 0
