"""SQLAlchemy ORM models for the paper trading ledger."""

import datetime

from sqlalchemy import (
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .database import Base


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.UTC)


class Portfolio(Base):
    """Paper trading portfolio, one per owner."""

    __tablename__ = "portfolios"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(String, unique=True, nullable=False, index=True)
    cash_balance = Column(Float, nullable=False, default=100.0)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    positions = relationship(
        "Position", back_populates="portfolio", cascade="all, delete-orphan"
    )
    transactions = relationship(
        "Transaction", back_populates="portfolio", cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<Portfolio(owner_id='{self.owner_id}', cash_balance={self.cash_balance})>"


class Position(Base):
    """Current holding of one asset symbol within a portfolio."""

    __tablename__ = "positions"
    __table_args__ = (
        UniqueConstraint("portfolio_id", "symbol", name="uq_positions_portfolio_symbol"),
    )

    id = Column(Integer, primary_key=True, index=True)
    portfolio_id = Column(
        Integer, ForeignKey("portfolios.id"), nullable=False, index=True
    )
    symbol = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False, default="")

    quantity = Column(Float, nullable=False)
    average_cost = Column(Float, nullable=False)  # total_invested / quantity
    current_price = Column(Float, nullable=False, default=0.0)
    total_invested = Column(Float, nullable=False)  # cost basis of held quantity

    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    portfolio = relationship("Portfolio", back_populates="positions")

    def __repr__(self):
        return f"<Position(symbol='{self.symbol}', quantity={self.quantity}, average_cost={self.average_cost})>"


class Transaction(Base):
    """Append-only record of an executed buy or sell."""

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, index=True)
    portfolio_id = Column(
        Integer, ForeignKey("portfolios.id"), nullable=False, index=True
    )
    kind = Column(String, nullable=False)  # "buy" or "sell"
    symbol = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False, default="")
    quantity = Column(Float, nullable=False)
    price = Column(Float, nullable=False)
    gross_total = Column(Float, nullable=False)
    fee = Column(Float, nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False, index=True)

    portfolio = relationship("Portfolio", back_populates="transactions")

    def __repr__(self):
        return f"<Transaction(kind='{self.kind}', symbol='{self.symbol}', quantity={self.quantity}, price={self.price})>"
