"""Data models for the paper trading ledger."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from ..market.models import Quote

BUY = "buy"
SELL = "sell"


@dataclass(frozen=True)
class PositionSnapshot:
    """Immutable view of a held position."""

    id: int
    symbol: str
    name: str
    quantity: float
    average_cost: float
    current_price: float
    total_invested: float
    updated_at: Optional[datetime] = None

    @classmethod
    def from_orm(cls, position) -> "PositionSnapshot":
        return cls(
            id=position.id,
            symbol=position.symbol,
            name=position.name or "",
            quantity=float(position.quantity),
            average_cost=float(position.average_cost),
            current_price=float(position.current_price),
            total_invested=float(position.total_invested),
            updated_at=position.updated_at,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "symbol": self.symbol,
            "name": self.name,
            "quantity": self.quantity,
            "average_cost": self.average_cost,
            "current_price": self.current_price,
            "total_invested": self.total_invested,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


@dataclass(frozen=True)
class TransactionRecord:
    """Immutable view of a ledger transaction."""

    id: int
    kind: str  # "buy" or "sell"
    symbol: str
    name: str
    quantity: float
    price: float
    gross_total: float
    fee: float
    created_at: datetime

    @classmethod
    def from_orm(cls, transaction) -> "TransactionRecord":
        return cls(
            id=transaction.id,
            kind=transaction.kind,
            symbol=transaction.symbol,
            name=transaction.name or "",
            quantity=float(transaction.quantity),
            price=float(transaction.price),
            gross_total=float(transaction.gross_total),
            fee=float(transaction.fee),
            created_at=transaction.created_at,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind,
            "symbol": self.symbol,
            "name": self.name,
            "quantity": self.quantity,
            "price": self.price,
            "gross_total": self.gross_total,
            "fee": self.fee,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass(frozen=True)
class PortfolioSnapshot:
    """Immutable view of a portfolio and everything it owns."""

    portfolio_id: int
    owner_id: str
    cash_balance: float
    positions: Tuple[PositionSnapshot, ...]
    transactions: Tuple[TransactionRecord, ...]  # newest first
    transaction_count: int = 0  # full history size, independent of any limit


@dataclass(frozen=True)
class PositionValuation:
    """Derived metrics for one position."""

    position: PositionSnapshot
    current_value: float
    unrealized_pnl: float
    unrealized_pnl_pct: float
    weight_pct: float  # share of total portfolio value

    def to_dict(self) -> Dict[str, Any]:
        return {
            **self.position.to_dict(),
            "current_value": self.current_value,
            "unrealized_pnl": self.unrealized_pnl,
            "unrealized_pnl_pct": self.unrealized_pnl_pct,
            "weight_pct": self.weight_pct,
        }


@dataclass(frozen=True)
class PortfolioValuation:
    """Aggregate metrics for a portfolio at current prices."""

    cash_balance: float
    total_invested: float
    total_current_value: float
    total_portfolio_value: float
    total_pnl: float
    total_pnl_pct: float
    change_24h: float
    change_24h_pct: float
    positions: Tuple[PositionValuation, ...]
    best_buy: Optional[Quote]
    best_sell: Optional[PositionSnapshot]

    def summary_dict(self) -> Dict[str, Any]:
        return {
            "cash_balance": self.cash_balance,
            "total_invested": self.total_invested,
            "total_current_value": self.total_current_value,
            "total_portfolio_value": self.total_portfolio_value,
            "total_pnl": self.total_pnl,
            "total_pnl_pct": self.total_pnl_pct,
            "change_24h": self.change_24h,
            "change_24h_pct": self.change_24h_pct,
        }


@dataclass
class TradeResult:
    """Result of a committed buy or sell."""

    transaction: TransactionRecord
    position: Optional[PositionSnapshot]  # None when the position was closed
    cash_balance: float
    net_amount: float

    @property
    def position_closed(self) -> bool:
        return self.position is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "transaction": self.transaction.to_dict(),
            "position": self.position.to_dict() if self.position else None,
            "position_closed": self.position_closed,
            "cash_balance": self.cash_balance,
            "net_amount": self.net_amount,
        }


@dataclass(frozen=True)
class SellPreview:
    """Proceeds of a prospective sell, computed without touching the ledger."""

    symbol: str
    quantity: float
    price: float
    gross_amount: float
    fee: float
    net_amount: float
    remaining_quantity: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "symbol": self.symbol,
            "quantity": self.quantity,
            "price": self.price,
            "gross_amount": self.gross_amount,
            "fee": self.fee,
            "net_amount": self.net_amount,
            "remaining_quantity": self.remaining_quantity,
        }
