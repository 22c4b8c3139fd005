"""Repository for the append-only transaction log."""

from typing import List, Optional

from ..models import Transaction
from .base import BaseRepository


class TransactionRepository(BaseRepository):
    """Repository for transaction log operations. Records are never updated."""

    def append(
        self,
        portfolio_id: int,
        kind: str,
        symbol: str,
        name: str,
        quantity: float,
        price: float,
        gross_total: float,
        fee: float,
    ) -> Transaction:
        """Stage a new transaction record."""
        transaction = Transaction(
            portfolio_id=portfolio_id,
            kind=kind,
            symbol=symbol.upper(),
            name=name,
            quantity=quantity,
            price=price,
            gross_total=gross_total,
            fee=fee,
        )
        self.session.add(transaction)
        self.session.flush()  # Get transaction ID
        return transaction

    def list_for_portfolio(
        self, portfolio_id: int, limit: Optional[int] = None
    ) -> List[Transaction]:
        """Get a portfolio's transactions, newest first."""
        query = (
            self.session.query(Transaction)
            .filter(Transaction.portfolio_id == portfolio_id)
            .order_by(Transaction.created_at.desc(), Transaction.id.desc())
        )
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def count_for_portfolio(self, portfolio_id: int) -> int:
        """Count a portfolio's transactions."""
        return (
            self.session.query(Transaction)
            .filter(Transaction.portfolio_id == portfolio_id)
            .count()
        )
