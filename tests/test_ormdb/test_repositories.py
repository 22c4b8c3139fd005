"""Tests for ledger repositories."""

from unittest.mock import Mock

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from cryptofolio.ormdb.database import check_database_health
from cryptofolio.ormdb.repositories import (
    PortfolioRepository,
    PositionRepository,
    TransactionRepository,
)


@pytest.fixture
def session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def portfolio(session):
    return PortfolioRepository(session).get_or_create("alice", 100.0)


class TestPortfolioRepository:
    """Test portfolio persistence."""

    def test_get_or_create_is_idempotent(self, session):
        repo = PortfolioRepository(session)

        first = repo.get_or_create("alice", 100.0)
        second = repo.get_or_create("alice", 500.0)

        assert first.id == second.id
        assert second.cash_balance == 100.0
        assert len(repo.get_all()) == 1

    def test_owner_is_unique(self, session, portfolio):
        from cryptofolio.ormdb.models import Portfolio

        session.add(Portfolio(owner_id="alice", cash_balance=1.0))
        with pytest.raises(IntegrityError):
            session.flush()
        session.rollback()

    def test_set_cash_balance(self, session, portfolio):
        repo = PortfolioRepository(session)

        repo.set_cash_balance(portfolio, 42.0)
        session.commit()

        assert repo.get_by_owner("alice").cash_balance == 42.0
        assert repo.get_by_id(portfolio.id).owner_id == "alice"
        assert repo.get_by_owner("nobody") is None


class TestPositionRepository:
    """Test position persistence."""

    def test_create_and_get(self, session, portfolio):
        repo = PositionRepository(session)
        repo.create(portfolio.id, "btc", "Bitcoin", 0.001, 50000.0, 50000.0, 50.0)
        session.commit()

        position = repo.get(portfolio.id, "BTC")

        assert position.symbol == "BTC"
        assert position.name == "Bitcoin"
        assert repo.get(portfolio.id, "btc").id == position.id

    def test_one_position_per_symbol(self, session, portfolio):
        repo = PositionRepository(session)
        repo.create(portfolio.id, "BTC", "Bitcoin", 0.001, 50000.0, 50000.0, 50.0)

        with pytest.raises(IntegrityError):
            repo.create(portfolio.id, "BTC", "Bitcoin", 0.002, 40000.0, 40000.0, 80.0)
        session.rollback()

    def test_list_ordered_by_symbol(self, session, portfolio):
        repo = PositionRepository(session)
        for symbol in ["SOL", "ADA", "BTC"]:
            repo.create(portfolio.id, symbol, symbol, 1.0, 1.0, 1.0, 1.0)
        session.commit()

        symbols = [p.symbol for p in repo.list_for_portfolio(portfolio.id)]

        assert symbols == ["ADA", "BTC", "SOL"]

    def test_update_current_price(self, session, portfolio):
        repo = PositionRepository(session)
        repo.create(portfolio.id, "ETH", "Ethereum", 0.01, 3000.0, 3000.0, 30.0)
        session.commit()

        assert repo.update_current_price(portfolio.id, "ETH", 3100.0) == 1
        assert repo.update_current_price(portfolio.id, "DOGE", 0.1) == 0
        session.commit()

        position = repo.get(portfolio.id, "ETH")
        assert position.current_price == 3100.0
        assert position.average_cost == 3000.0

    def test_delete(self, session, portfolio):
        repo = PositionRepository(session)
        position = repo.create(portfolio.id, "ETH", "Ethereum", 0.01, 3000.0, 3000.0, 30.0)

        repo.delete(position)
        session.commit()

        assert repo.get(portfolio.id, "ETH") is None


class TestTransactionRepository:
    """Test the append-only transaction log."""

    def test_newest_first_with_limit(self, session, portfolio):
        repo = TransactionRepository(session)
        for symbol in ["BTC", "ETH", "SOL"]:
            repo.append(portfolio.id, "buy", symbol, symbol, 1.0, 10.0, 10.0, 0.01)
        session.commit()

        all_records = repo.list_for_portfolio(portfolio.id)
        latest = repo.list_for_portfolio(portfolio.id, limit=2)

        assert [t.symbol for t in all_records] == ["SOL", "ETH", "BTC"]
        assert [t.symbol for t in latest] == ["SOL", "ETH"]
        assert repo.count_for_portfolio(portfolio.id) == 3


class TestDatabaseHealth:
    """Test the database health check."""

    def test_healthy(self, session_factory):
        health = check_database_health(session_factory)

        assert health["status"] == "healthy"
        assert health["connectivity"] is True
        assert health["ledger"] == {"portfolios": 0, "positions": 0, "transactions": 0}

    def test_unhealthy_on_store_error(self):
        factory = Mock(side_effect=OperationalError("SELECT 1", {}, Exception("disk I/O error")))

        health = check_database_health(factory)

        assert health["status"] == "unhealthy"
        assert health["connectivity"] is False
