"""Repository for portfolio operations."""

from typing import List, Optional

from sqlalchemy.exc import IntegrityError

from ..models import Portfolio
from .base import BaseRepository


class PortfolioRepository(BaseRepository):
    """Repository for portfolio operations."""

    def get_by_owner(self, owner_id: str) -> Optional[Portfolio]:
        """Get the portfolio belonging to an owner."""
        return (
            self.session.query(Portfolio)
            .filter(Portfolio.owner_id == owner_id)
            .first()
        )

    def get_by_id(self, portfolio_id: int) -> Optional[Portfolio]:
        """Get a portfolio by primary key."""
        return self.session.get(Portfolio, portfolio_id)

    def get_or_create(self, owner_id: str, starting_balance: float) -> Portfolio:
        """
        Get the owner's portfolio, creating it with the starting balance if absent.

        Commits when a new portfolio is created.
        """
        portfolio = self.get_by_owner(owner_id)
        if portfolio:
            return portfolio

        portfolio = Portfolio(owner_id=owner_id, cash_balance=starting_balance)
        self.session.add(portfolio)
        try:
            self.session.commit()
        except IntegrityError:
            # Another writer created it first
            self.session.rollback()
            existing = self.get_by_owner(owner_id)
            if existing is None:
                raise
            return existing

        self.session.refresh(portfolio)
        return portfolio

    def set_cash_balance(self, portfolio: Portfolio, cash_balance: float) -> Portfolio:
        """Stage a new cash balance on the portfolio."""
        portfolio.cash_balance = cash_balance
        self.session.flush()
        return portfolio

    def get_all(self) -> List[Portfolio]:
        """Get all portfolios."""
        return self.session.query(Portfolio).order_by(Portfolio.id).all()
