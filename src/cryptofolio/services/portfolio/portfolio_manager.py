"""Portfolio creation and read access."""

from typing import Callable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...config.logging import get_logger
from ...exceptions import StoreUnavailable
from ...ormdb.database import get_session_factory
from ...ormdb.repositories import (
    PortfolioRepository,
    PositionRepository,
    TransactionRepository,
)
from .models import PortfolioSnapshot, PositionSnapshot, TransactionRecord

logger = get_logger(__name__)


class PortfolioManager:
    """Creates portfolios on first access and loads immutable snapshots of them."""

    def __init__(
        self,
        starting_balance: float,
        session_factory: Optional[Callable[[], Session]] = None,
    ):
        self.logger = logger.bind(component="portfolio_manager")
        self.starting_balance = starting_balance
        self.session_factory = session_factory

    def _open_session(self) -> Session:
        return (self.session_factory or get_session_factory())()

    async def get_snapshot(
        self, owner_id: str, transaction_limit: Optional[int] = None
    ) -> PortfolioSnapshot:
        """
        Load an owner's portfolio, creating it with the starting balance if absent.

        Args:
            owner_id: Portfolio owner identifier
            transaction_limit: Newest N transactions to include (all if None)

        Returns:
            PortfolioSnapshot with positions and newest-first transactions
        """
        session = self._open_session()

        try:
            portfolio_repo = PortfolioRepository(session)
            existed = portfolio_repo.get_by_owner(owner_id) is not None
            portfolio = portfolio_repo.get_or_create(owner_id, self.starting_balance)

            if not existed:
                self.logger.info(
                    "Created portfolio",
                    owner_id=owner_id,
                    portfolio_id=portfolio.id,
                    starting_balance=self.starting_balance,
                )

            positions = PositionRepository(session).list_for_portfolio(portfolio.id)
            transaction_repo = TransactionRepository(session)
            transactions = transaction_repo.list_for_portfolio(
                portfolio.id, limit=transaction_limit
            )

            return PortfolioSnapshot(
                portfolio_id=portfolio.id,
                owner_id=portfolio.owner_id,
                cash_balance=float(portfolio.cash_balance),
                positions=tuple(PositionSnapshot.from_orm(p) for p in positions),
                transactions=tuple(TransactionRecord.from_orm(t) for t in transactions),
                transaction_count=transaction_repo.count_for_portfolio(portfolio.id),
            )

        except SQLAlchemyError as e:
            session.rollback()
            self.logger.error(
                "Failed to load portfolio", owner_id=owner_id, error=str(e)
            )
            raise StoreUnavailable("load", str(e)) from e
        finally:
            session.close()

    async def list_transactions(
        self, owner_id: str, limit: Optional[int] = None
    ) -> List[TransactionRecord]:
        """Newest-first transaction history of an owner's portfolio."""
        snapshot = await self.get_snapshot(owner_id, transaction_limit=limit)
        return list(snapshot.transactions)
