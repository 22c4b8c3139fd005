"""Repository for position operations."""

from typing import List, Optional

from ..models import Position
from .base import BaseRepository


class PositionRepository(BaseRepository):
    """Repository for position operations, unique on (portfolio, symbol)."""

    def get(self, portfolio_id: int, symbol: str) -> Optional[Position]:
        """Get the position a portfolio holds in a symbol."""
        return (
            self.session.query(Position)
            .filter(
                Position.portfolio_id == portfolio_id,
                Position.symbol == symbol.upper(),
            )
            .first()
        )

    def list_for_portfolio(self, portfolio_id: int) -> List[Position]:
        """Get all positions of a portfolio ordered by symbol."""
        return (
            self.session.query(Position)
            .filter(Position.portfolio_id == portfolio_id)
            .order_by(Position.symbol)
            .all()
        )

    def create(
        self,
        portfolio_id: int,
        symbol: str,
        name: str,
        quantity: float,
        average_cost: float,
        current_price: float,
        total_invested: float,
    ) -> Position:
        """Stage a new position."""
        position = Position(
            portfolio_id=portfolio_id,
            symbol=symbol.upper(),
            name=name,
            quantity=quantity,
            average_cost=average_cost,
            current_price=current_price,
            total_invested=total_invested,
        )
        self.session.add(position)
        self.session.flush()
        return position

    def delete(self, position: Position) -> None:
        """Stage removal of a position."""
        self.session.delete(position)
        self.session.flush()

    def update_current_price(self, portfolio_id: int, symbol: str, price: float) -> int:
        """Set the current price of a portfolio's position in a symbol.

        Returns:
            Number of positions updated (0 or 1)
        """
        updated = (
            self.session.query(Position)
            .filter(
                Position.portfolio_id == portfolio_id,
                Position.symbol == symbol.upper(),
            )
            .update({Position.current_price: price}, synchronize_session="fetch")
        )
        return updated
